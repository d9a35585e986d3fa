import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///coachhub.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT (bearer header)
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'your-secret-key-change-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    JWT_TOKEN_LOCATION = ['headers']
    JWT_HEADER_NAME = 'Authorization'
    JWT_HEADER_TYPE = 'Bearer'

    # Stripe
    STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY', '')
    STRIPE_WEBHOOK_SECRET = os.getenv('STRIPE_WEBHOOK_SECRET', '')

    # Object storage (S3 compatible). Empty bucket means in-memory mock mode.
    STORAGE_BUCKET = os.getenv('STORAGE_BUCKET', '')
    STORAGE_ENDPOINT_URL = os.getenv('STORAGE_ENDPOINT_URL') or None
    STORAGE_ACCESS_KEY_ID = os.getenv('STORAGE_ACCESS_KEY_ID', '')
    STORAGE_SECRET_ACCESS_KEY = os.getenv('STORAGE_SECRET_ACCESS_KEY', '')
    STORAGE_REGION = os.getenv('STORAGE_REGION', 'us-east-1')
    STORAGE_PUBLIC_URL = os.getenv('STORAGE_PUBLIC_URL', '')

    # Fees
    COACH_REGISTRATION_FEE = float(os.getenv('COACH_REGISTRATION_FEE', '10'))
    COACH_SUBSCRIPTION_FEE = float(os.getenv('COACH_SUBSCRIPTION_FEE', '49'))
    PLATFORM_FEE_PERCENT = float(os.getenv('PLATFORM_FEE_PERCENT', '0.25'))

    APP_BASE_URL = os.getenv('APP_BASE_URL', 'http://localhost:3000')

    # Mail
    MAIL_SERVER = os.getenv('MAIL_SERVER', 'localhost')
    MAIL_PORT = int(os.getenv('MAIL_PORT', '25'))
    MAIL_USE_TLS = _env_bool('MAIL_USE_TLS')
    MAIL_USERNAME = os.getenv('MAIL_USERNAME')
    MAIL_PASSWORD = os.getenv('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.getenv('MAIL_DEFAULT_SENDER', 'no-reply@coachhub.local')

    OTP_EXPIRES_MINUTES = int(os.getenv('OTP_EXPIRES_MINUTES', '15'))

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_ENABLED = True

    # Scheduler
    SCHEDULER_ENABLED = _env_bool('SCHEDULER_ENABLED', True)
    SCHEDULER_API_ENABLED = False

    # File Upload
    MAX_CONTENT_LENGTH = 200 * 1024 * 1024

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE', 'logs/app.log')

    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Socket.IO
    SOCKETIO_ASYNC_MODE = os.getenv('SOCKETIO_ASYNC_MODE', 'eventlet')


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL')
    PREFERRED_URL_SCHEME = 'https'


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-length'
    STRIPE_SECRET_KEY = 'sk_test_dummy'
    STRIPE_WEBHOOK_SECRET = 'whsec_test'
    STORAGE_BUCKET = ''
    RATELIMIT_ENABLED = False
    SCHEDULER_ENABLED = False
    MAIL_SUPPRESS_SEND = True
    LOG_FILE = None
    SOCKETIO_ASYNC_MODE = 'threading'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
