"""
Object storage for avatars, videos and other uploads.

Talks to any S3-compatible bucket through boto3. When no bucket is
configured, objects are kept in memory so the API runs without real
storage (development and tests).
"""
import logging
import os
import uuid

from flask import current_app

logger = logging.getLogger(__name__)

AVATAR_FOLDER = "avatar"


class StorageError(Exception):
    """Raised when a storage operation fails."""
    pass


class S3Storage:
    def __init__(self, bucket, endpoint_url=None, access_key_id=None,
                 secret_access_key=None, region='us-east-1', public_url=''):
        import boto3
        from botocore.config import Config

        self.bucket = bucket
        self.public_url = (public_url or '').rstrip('/')
        self._client = boto3.client(
            's3',
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
            region_name=region,
            config=Config(signature_version='s3v4', s3={'addressing_style': 'path'}),
        )
        logger.info(f"Initialized S3 storage for bucket {bucket}")

    def put(self, key, data, content_type=None):
        extra = {'ContentType': content_type} if content_type else {}
        try:
            self._client.put_object(Bucket=self.bucket, Key=key, Body=data, **extra)
        except Exception as e:
            logger.error(f"Failed to upload {key}: {e}")
            raise StorageError(f"Upload failed: {e}")
        return key

    def delete(self, key):
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            logger.error(f"Failed to delete {key}: {e}")
            raise StorageError(f"Delete failed: {e}")

    def url(self, key, expiry_seconds=3600):
        if self.public_url:
            return f"{self.public_url}/{key}"
        try:
            return self._client.generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket, 'Key': key},
                ExpiresIn=expiry_seconds,
            )
        except Exception as e:
            logger.error(f"Failed to sign url for {key}: {e}")
            raise StorageError(f"Presigned URL generation failed: {e}")


class MockStorage:
    """In-memory storage used when no bucket is configured."""

    def __init__(self):
        self.objects = {}

    def put(self, key, data, content_type=None):
        self.objects[key] = (data, content_type)
        logger.debug(f"Mock upload {key} ({len(data)} bytes)")
        return key

    def delete(self, key):
        self.objects.pop(key, None)

    def url(self, key, expiry_seconds=3600):
        return f"mock://storage/{key}"


def get_storage():
    """Storage bound to the current app, created on first use."""
    storage = current_app.extensions.get('coachhub_storage')
    if storage is None:
        cfg = current_app.config
        if cfg.get('STORAGE_BUCKET'):
            storage = S3Storage(
                bucket=cfg['STORAGE_BUCKET'],
                endpoint_url=cfg.get('STORAGE_ENDPOINT_URL'),
                access_key_id=cfg.get('STORAGE_ACCESS_KEY_ID'),
                secret_access_key=cfg.get('STORAGE_SECRET_ACCESS_KEY'),
                region=cfg.get('STORAGE_REGION', 'us-east-1'),
                public_url=cfg.get('STORAGE_PUBLIC_URL', ''),
            )
        else:
            logger.warning("STORAGE_BUCKET not set, using in-memory storage")
            storage = MockStorage()
        current_app.extensions['coachhub_storage'] = storage
    return storage


def unique_filename(filename):
    ext = os.path.splitext(filename or '')[1].lower()
    return f"{uuid.uuid4().hex}{ext}"


def upload_file(file_storage, folder):
    """Store a werkzeug upload under ``folder/`` and return the generated file name."""
    name = unique_filename(file_storage.filename)
    data = file_storage.read()
    get_storage().put(f"{folder}/{name}", data, file_storage.mimetype)
    return name


def delete_avatar(name):
    if not name:
        return
    try:
        get_storage().delete(f"{AVATAR_FOLDER}/{name}")
    except StorageError as e:
        logger.warning(f"Could not delete avatar {name}: {e}")


def replace_avatar(user, upload):
    """Upload a new avatar for ``user`` and drop the previous file. The caller commits."""
    try:
        new_name = upload_file(upload, AVATAR_FOLDER)
    except StorageError as e:
        logger.warning(f"Avatar upload failed for user {user.id}: {e}")
        return
    old_name = user.avatar
    user.avatar = new_name
    delete_avatar(old_name)
