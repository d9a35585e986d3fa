"""initial schema

Revision ID: 4f2b9c1d7e60
Revises:
Create Date: 2026-10-17 09:12:31.204118

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4f2b9c1d7e60'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('avatar', sa.String(length=255), nullable=True),
        sa.Column('phone_number', sa.String(length=50), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('objectives', sa.Text(), nullable=True),
        sa.Column('goals', sa.Text(), nullable=True),
        sa.Column('sports', sa.String(length=150), nullable=True),
        sa.Column('email_verified_at', sa.DateTime(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('billing_id', sa.String(length=255), nullable=True),
        sa.Column('two_factor_secret', sa.String(length=64), nullable=True),
        sa.Column('is_two_factor_enabled', sa.Boolean(), nullable=True),
        sa.Column('refresh_token_jti', sa.String(length=64), nullable=True),
        sa.Column('refresh_token_expires_at', sa.DateTime(), nullable=True),
        sa.Column('availability', sa.String(length=20), nullable=True),
        sa.Column('last_active', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("role IN ('admin','coach','athlete')"),
        sa.CheckConstraint("status IN ('active','blocked')"),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index('ix_users_email', ['email'], unique=True)
        batch_op.create_index('ix_users_role', ['role'], unique=False)
        batch_op.create_index('ix_users_status', ['status'], unique=False)
        batch_op.create_index('idx_users_role_status', ['role', 'status'], unique=False)

    op.create_table(
        'ucodes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('expired_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("type IN ('otp','verification','email_change')"),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ucodes_user_id', 'ucodes', ['user_id'], unique=False)

    op.create_table(
        'coach_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.Integer(), nullable=True),
        sa.Column('primary_specialty', sa.String(length=150), nullable=True),
        sa.Column('specialties', sa.JSON(), nullable=True),
        sa.Column('experience_level', sa.String(length=50), nullable=True),
        sa.Column('certifications', sa.JSON(), nullable=True),
        sa.Column('session_price', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('hourly_rate', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('hourly_currency', sa.String(length=3), nullable=True),
        sa.Column('session_duration_minutes', sa.Integer(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('rgpd_laws_agreement', sa.Boolean(), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=True),
        sa.Column('registration_fee_paid', sa.Boolean(), nullable=True),
        sa.Column('registration_fee_paid_at', sa.DateTime(), nullable=True),
        sa.Column('subscription_active', sa.Boolean(), nullable=True),
        sa.Column('subscription_started_at', sa.DateTime(), nullable=True),
        sa.Column('subscription_expires_at', sa.DateTime(), nullable=True),
        sa.Column('subscription_provider', sa.String(length=50), nullable=True),
        sa.Column('subscription_reference', sa.String(length=255), nullable=True),
        sa.Column('avg_rating', sa.Float(), nullable=True),
        sa.Column('rating_count', sa.Integer(), nullable=True),
        sa.Column('blocked_days', sa.JSON(), nullable=True),
        sa.Column('blocked_time_slots', sa.JSON(), nullable=True),
        sa.Column('weekend_days', sa.JSON(), nullable=True),
        sa.Column('available_days', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_coach_profiles_user_id', 'coach_profiles', ['user_id'], unique=True)
    op.create_index('ix_coach_profiles_status', 'coach_profiles', ['status'], unique=False)
    op.create_index('ix_coach_profiles_is_verified', 'coach_profiles', ['is_verified'], unique=False)

    op.create_table(
        'payment_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('provider', sa.String(length=50), nullable=True),
        sa.Column('reference_number', sa.String(length=255), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=True),
        sa.Column('paid_amount', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('paid_currency', sa.String(length=3), nullable=True),
        sa.Column('raw_status', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending','succeeded','paid','completed','failed','canceled','requires_action','expired')"
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payment_transactions_user_id', 'payment_transactions', ['user_id'], unique=False)
    op.create_index('ix_payment_transactions_reference_number', 'payment_transactions', ['reference_number'], unique=False)
    op.create_index('ix_payment_transactions_status', 'payment_transactions', ['status'], unique=False)
    op.create_index('idx_payment_tx_status_created', 'payment_transactions', ['status', 'created_at'], unique=False)

    op.create_table(
        'session_packages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=False),
        sa.Column('coach_profile_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('number_of_sessions', sa.Integer(), nullable=False),
        sa.Column('days_validity', sa.Integer(), nullable=True),
        sa.Column('total_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['coach_id'], ['users.id']),
        sa.ForeignKeyConstraint(['coach_profile_id'], ['coach_profiles.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_session_packages_coach_id', 'session_packages', ['coach_id'], unique=False)
    op.create_index('ix_session_packages_coach_profile_id', 'session_packages', ['coach_profile_id'], unique=False)

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=False),
        sa.Column('coach_profile_id', sa.Integer(), nullable=True),
        sa.Column('session_package_id', sa.Integer(), nullable=True),
        sa.Column('payment_transaction_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('google_map_link', sa.String(length=500), nullable=True),
        sa.Column('appointment_date', sa.DateTime(), nullable=True),
        sa.Column('session_time', sa.DateTime(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('session_price', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=True),
        sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('number_of_sessions', sa.Integer(), nullable=True),
        sa.Column('days_validity', sa.Integer(), nullable=True),
        sa.Column('total_completed_session', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('validation_token', sa.String(length=10), nullable=True),
        sa.Column('token_expires_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('PENDING','CONFIRMED','COMPLETED','CANCELLED')"),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['coach_id'], ['users.id']),
        sa.ForeignKeyConstraint(['coach_profile_id'], ['coach_profiles.id']),
        sa.ForeignKeyConstraint(['session_package_id'], ['session_packages.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['payment_transaction_id'], ['payment_transactions.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'], unique=False)
    op.create_index('ix_bookings_coach_id', 'bookings', ['coach_id'], unique=False)
    op.create_index('ix_bookings_coach_profile_id', 'bookings', ['coach_profile_id'], unique=False)
    op.create_index('ix_bookings_appointment_date', 'bookings', ['appointment_date'], unique=False)
    op.create_index('ix_bookings_status', 'bookings', ['status'], unique=False)
    op.create_index('idx_bookings_coach_date', 'bookings', ['coach_id', 'appointment_date'], unique=False)
    op.create_index('idx_bookings_user_date', 'bookings', ['user_id', 'appointment_date'], unique=False)

    op.create_table(
        'subscription_plans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=True),
        sa.Column('billing_interval', sa.String(length=10), nullable=True),
        sa.Column('features', sa.JSON(), nullable=True),
        sa.Column('stripe_product_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_price_id', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("billing_interval IN ('month','year')"),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'user_subscriptions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_customer_id', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('current_period_start', sa.DateTime(), nullable=True),
        sa.Column('current_period_end', sa.DateTime(), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=True),
        sa.Column('canceled_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('active','trialing','past_due','canceled','incomplete','incomplete_expired','unpaid')"
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['plan_id'], ['subscription_plans.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stripe_subscription_id'),
    )
    op.create_index('ix_user_subscriptions_user_id', 'user_subscriptions', ['user_id'], unique=False)
    op.create_index('ix_user_subscriptions_status', 'user_subscriptions', ['status'], unique=False)
    op.create_index('idx_user_subscription_user_status', 'user_subscriptions', ['user_id', 'status'], unique=False)

    op.create_table(
        'conversations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('creator_id', sa.Integer(), nullable=False),
        sa.Column('participant_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['creator_id'], ['users.id']),
        sa.ForeignKeyConstraint(['participant_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_conversations_creator_id', 'conversations', ['creator_id'], unique=False)
    op.create_index('ix_conversations_participant_id', 'conversations', ['participant_id'], unique=False)
    op.create_index('ix_conversations_updated_at', 'conversations', ['updated_at'], unique=False)
    op.create_index('idx_conversations_pair', 'conversations', ['creator_id', 'participant_id'], unique=False)

    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('conversation_id', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=False),
        sa.Column('receiver_id', sa.Integer(), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('sent','delivered','read')"),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id']),
        sa.ForeignKeyConstraint(['receiver_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_messages_conversation_id', 'messages', ['conversation_id'], unique=False)
    op.create_index('ix_messages_sender_id', 'messages', ['sender_id'], unique=False)
    op.create_index('ix_messages_receiver_id', 'messages', ['receiver_id'], unique=False)
    op.create_index('ix_messages_created_at', 'messages', ['created_at'], unique=False)

    op.create_table(
        'goals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=150), nullable=False),
        sa.Column('current_value', sa.String(length=50), nullable=True),
        sa.Column('target_value', sa.String(length=50), nullable=True),
        sa.Column('target_date', sa.Date(), nullable=True),
        sa.Column('frequency_per_week', sa.Integer(), nullable=True),
        sa.Column('motivation', sa.Text(), nullable=True),
        sa.Column('progress_percent', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['coach_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_goals_user_id', 'goals', ['user_id'], unique=False)
    op.create_index('ix_goals_coach_id', 'goals', ['coach_id'], unique=False)
    op.create_index('idx_goals_user_id', 'goals', ['user_id'], unique=False)

    op.create_table(
        'goal_progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('goal_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('previous_weight', sa.Float(), nullable=True),
        sa.Column('current_weight', sa.Float(), nullable=True),
        sa.Column('training_duration', sa.Integer(), nullable=True),
        sa.Column('calories_burned', sa.Integer(), nullable=True),
        sa.Column('calories_gained', sa.Integer(), nullable=True),
        sa.Column('sets_per_session', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('recorded_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['goal_id'], ['goals.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_goal_progress_goal_id', 'goal_progress', ['goal_id'], unique=False)
    op.create_index('ix_goal_progress_recorded_at', 'goal_progress', ['recorded_at'], unique=False)

    op.create_table(
        'goal_notes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('goal_id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=False),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['goal_id'], ['goals.id']),
        sa.ForeignKeyConstraint(['coach_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_goal_notes_goal_id', 'goal_notes', ['goal_id'], unique=False)

    op.create_table(
        'badges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('icon', sa.String(length=255), nullable=True),
        sa.Column('criteria', sa.JSON(), nullable=True),
        sa.Column('points', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_badges_key', 'badges', ['key'], unique=True)

    op.create_table(
        'user_badges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('badge_id', sa.Integer(), nullable=False),
        sa.Column('earned_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['badge_id'], ['badges.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'badge_id', name='uq_user_badge'),
    )
    op.create_index('ix_user_badges_user_id', 'user_badges', ['user_id'], unique=False)

    op.create_table(
        'coach_reviews',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=False),
        sa.Column('athlete_id', sa.Integer(), nullable=False),
        sa.Column('booking_id', sa.Integer(), nullable=True),
        sa.Column('review_text', sa.Text(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('rating IS NULL OR (rating >= 1 AND rating <= 5)'),
        sa.ForeignKeyConstraint(['coach_id'], ['coach_profiles.id']),
        sa.ForeignKeyConstraint(['athlete_id'], ['users.id']),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_id', 'athlete_id', name='uq_review_booking_athlete'),
    )
    op.create_index('ix_coach_reviews_coach_id', 'coach_reviews', ['coach_id'], unique=False)
    op.create_index('ix_coach_reviews_athlete_id', 'coach_reviews', ['athlete_id'], unique=False)

    op.create_table(
        'videos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('video_url', sa.String(length=500), nullable=True),
        sa.Column('media_key', sa.String(length=500), nullable=True),
        sa.Column('mime_type', sa.String(length=100), nullable=True),
        sa.Column('is_premium', sa.Boolean(), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['coach_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_videos_coach_id', 'videos', ['coach_id'], unique=False)
    op.create_index('ix_videos_is_premium', 'videos', ['is_premium'], unique=False)
    op.create_index('ix_videos_created_at', 'videos', ['created_at'], unique=False)

    op.create_table(
        'notification_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('status', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('notification_event_id', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=True),
        sa.Column('receiver_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.Integer(), nullable=True),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['notification_event_id'], ['notification_events.id']),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id']),
        sa.ForeignKeyConstraint(['receiver_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_notification_event_id', 'notifications', ['notification_event_id'], unique=False)
    op.create_index('ix_notifications_sender_id', 'notifications', ['sender_id'], unique=False)
    op.create_index('ix_notifications_receiver_id', 'notifications', ['receiver_id'], unique=False)
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'], unique=False)

    op.create_table(
        'marketplace_products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=True),
        sa.Column('brand_seller', sa.String(length=150), nullable=True),
        sa.Column('discount', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('image_name', sa.String(length=255), nullable=True),
        sa.Column('image_mime', sa.String(length=100), nullable=True),
        sa.Column('image_size', sa.Integer(), nullable=True),
        sa.Column('image_data', sa.LargeBinary(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_marketplace_products_is_active', 'marketplace_products', ['is_active'], unique=False)


def downgrade():
    op.drop_table('marketplace_products')
    op.drop_table('notifications')
    op.drop_table('notification_events')
    op.drop_table('videos')
    op.drop_table('coach_reviews')
    op.drop_table('user_badges')
    op.drop_table('badges')
    op.drop_table('goal_notes')
    op.drop_table('goal_progress')
    op.drop_table('goals')
    op.drop_table('messages')
    op.drop_table('conversations')
    op.drop_table('user_subscriptions')
    op.drop_table('subscription_plans')
    op.drop_table('bookings')
    op.drop_table('session_packages')
    op.drop_table('payment_transactions')
    op.drop_table('coach_profiles')
    op.drop_table('ucodes')
    op.drop_table('users')
