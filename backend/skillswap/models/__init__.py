# SQLAlchemy models - import in main.py so Base.metadata has all tables
from skillswap.models.user import User, RefreshToken
from skillswap.models.skill import SkillListingRow
from skillswap.models.swap import SwapRequestRow
from skillswap.models.conversation import Conversation, Message
from skillswap.models.notification import NotificationRow

__all__ = [
    "User",
    "RefreshToken",
    "SkillListingRow",
    "SwapRequestRow",
    "Conversation",
    "Message",
    "NotificationRow",
]
