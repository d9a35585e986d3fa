import logging
import os

from flask import Flask
from flask_cors import CORS

from coachhub.config import config
from coachhub.extensions import db, ma, jwt, migrate, socketio, limiter, mail, scheduler
from coachhub.errors import register_error_handlers, error_response
from coachhub.utils.dates import utcnow
from coachhub.utils.log_config import configure_logging

logger = logging.getLogger(__name__)


def configure_scheduler(app):
    """Register and start the daily maintenance job once per process."""
    if not app.config.get('SCHEDULER_ENABLED') or scheduler.running:
        return

    scheduler.init_app(app)

    @scheduler.task('cron', id='daily_maintenance_job', day='*', hour=3)
    def daily_maintenance_job():
        from coachhub.tasks import run_daily_maintenance

        with app.app_context():
            run_daily_maintenance()

    scheduler.start()


def create_app(config_name=None):
    config_name = config_name or os.getenv('FLASK_CONFIG', 'default')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    configure_logging(app)

    db.init_app(app)
    ma.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    mail.init_app(app)
    CORS(app, resources={r"/*": {"origins": app.config.get('CORS_ORIGINS', '*')}})

    # handlers must be registered before the first server is created
    from coachhub.sockets import chat  # noqa: F401
    socketio.init_app(app, async_mode=app.config.get('SOCKETIO_ASYNC_MODE'))

    register_error_handlers(app)

    from coachhub.routes.auth import auth_bp
    from coachhub.routes.bookings import bookings_bp
    from coachhub.routes.reviews import reviews_bp
    from coachhub.routes.payments import stripe_bp, subscriptions_bp
    from coachhub.routes.chat import chat_bp
    from coachhub.routes.goals import goals_bp
    from coachhub.routes.badges import badges_bp
    from coachhub.routes.video_community import video_bp
    from coachhub.routes.coach_home import coach_home_bp
    from coachhub.routes.admin import admin_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(bookings_bp, url_prefix="/booking")
    app.register_blueprint(reviews_bp, url_prefix="/reviews")
    app.register_blueprint(stripe_bp, url_prefix="/payment/stripe")
    app.register_blueprint(subscriptions_bp, url_prefix="/subscriptions")
    app.register_blueprint(chat_bp, url_prefix="/chat")
    app.register_blueprint(goals_bp, url_prefix="/goals")
    app.register_blueprint(badges_bp, url_prefix="/badges")
    app.register_blueprint(video_bp, url_prefix="/video-community")
    app.register_blueprint(coach_home_bp, url_prefix="/coach-home")
    app.register_blueprint(admin_bp, url_prefix="/admin")

    configure_scheduler(app)

    return app


# JWT callbacks
@jwt.user_lookup_loader
def user_lookup_callback(_jwt_header, jwt_data):
    from coachhub.models import User

    identity = jwt_data["sub"]
    return db.session.get(User, int(identity))


@jwt.user_lookup_error_loader
def user_lookup_error_callback(_jwt_header, jwt_data):
    return error_response("User not found", 401)


@jwt.token_in_blocklist_loader
def check_if_token_revoked(_jwt_header, jwt_payload):
    """Refresh tokens are valid only while they match the jti stored on the user."""
    if jwt_payload.get("type") != "refresh":
        return False

    from coachhub.models import User

    user = db.session.get(User, int(jwt_payload["sub"]))
    if not user or not user.refresh_token_jti:
        return True
    if user.refresh_token_jti != jwt_payload.get("jti"):
        return True
    return bool(user.refresh_token_expires_at and user.refresh_token_expires_at < utcnow())
