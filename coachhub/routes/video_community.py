import logging
from datetime import timedelta

from flask import Blueprint, jsonify, request
from flask_jwt_extended import current_user, jwt_required

from coachhub.errors import ApiError, ForbiddenError, NotFoundError
from coachhub.extensions import db
from coachhub.models import PaymentTransaction, Video
from coachhub.models.payments import PAID_STATUSES, SUBSCRIPTION_TX_TYPES
from coachhub.utils.dates import utcnow
from coachhub.utils.formatting import parse_bool, parse_int
from coachhub.utils.payload import get_payload, get_upload
from coachhub.utils.storage import StorageError, upload_file

logger = logging.getLogger(__name__)

video_bp = Blueprint("video_community", __name__)

PREMIUM_WINDOW_DAYS = 30
VIDEO_FOLDER = "videos"


def has_premium_access(user_id):
    """A subscription payment that succeeded within the last 30 days."""
    since = utcnow() - timedelta(days=PREMIUM_WINDOW_DAYS)
    return PaymentTransaction.query.filter(
        PaymentTransaction.user_id == user_id,
        PaymentTransaction.type.in_(SUBSCRIPTION_TX_TYPES),
        PaymentTransaction.status.in_(PAID_STATUSES),
        PaymentTransaction.created_at >= since,
    ).first() is not None


@video_bp.route("/post", methods=["POST"])
@jwt_required()
def create_post():
    if not current_user.is_coach:
        raise ForbiddenError("Only coaches can post videos")

    data = get_payload()
    media = get_upload("media")
    video_url = (data.get("video_url") or "").strip() or None
    if not media and not video_url:
        raise ApiError("A video file or video_url is required")

    video = Video(
        coach_id=current_user.id,
        title=data.get("title"),
        description=data.get("description"),
        is_premium=parse_bool(data.get("is_premium")),
        video_url=video_url,
    )

    if media:
        try:
            key = f"{VIDEO_FOLDER}/{upload_file(media, VIDEO_FOLDER)}"
        except StorageError as e:
            logger.error(f"Failed to upload video for coach {current_user.id}: {e}")
            raise ApiError(f"Failed to upload video: {e}", 500)
        video.media_key = key
        video.mime_type = media.mimetype
        video.video_url = None

    try:
        db.session.add(video)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error saving video post: {e}")
        raise ApiError("Failed to create video post", 500)

    return jsonify({"success": True, "message": "Video post created successfully", "data": video.to_dict()}), 201


@video_bp.route("/list", methods=["GET"])
@jwt_required()
def list_videos():
    page = parse_int(request.args.get("page"), 1, minimum=1)
    per_page = parse_int(request.args.get("perPage"), 10, minimum=1, maximum=100)

    query = Video.query.filter(Video.deleted_at.is_(None))
    if not has_premium_access(current_user.id):
        query = query.filter(Video.is_premium.is_(False))

    videos = query.order_by(Video.created_at.desc(), Video.id.desc()) \
        .offset((page - 1) * per_page).limit(per_page).all()
    return jsonify({
        "success": True,
        "data": [v.to_dict() for v in videos],
        "page": page,
        "perPage": per_page,
    })


@video_bp.route("/<int:video_id>", methods=["GET"])
@jwt_required()
def get_video(video_id):
    video = Video.query.filter_by(id=video_id, deleted_at=None).first()
    if not video:
        raise NotFoundError("Video not found")
    if video.is_premium and video.coach_id != current_user.id and not has_premium_access(current_user.id):
        raise ForbiddenError("This video is for premium members only")

    video.view_count = (video.view_count or 0) + 1
    db.session.commit()
    return jsonify({"success": True, "data": video.to_dict()})
