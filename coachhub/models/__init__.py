from .user import User, Ucode
from .coach_profile import CoachProfile
from .booking import Booking, SessionPackage

from .payments import PaymentTransaction
from .subscription_plans import SubscriptionPlan
from .subscription import UserSubscription

from .message import Conversation, Message
from .athlete_goals import Goal
from .goal_progress_log import GoalProgress, GoalNote
from .badges import Badge, UserBadge
from .feedbacks import CoachReview
from .workout_file import Video
from .notifications import NotificationEvent, Notification
from .equipments import MarketplaceProduct

__all__ = [
    "User",
    "Ucode",
    "CoachProfile",
    "Booking",
    "SessionPackage",
    "PaymentTransaction",
    "SubscriptionPlan",
    "UserSubscription",
    "Conversation",
    "Message",
    "Goal",
    "GoalProgress",
    "GoalNote",
    "Badge",
    "UserBadge",
    "CoachReview",
    "Video",
    "NotificationEvent",
    "Notification",
    "MarketplaceProduct",
]
