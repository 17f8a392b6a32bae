"""
All database models. Imported here so Base.metadata sees them for create_all().
"""

from .base import OwnedBase
from .document import Document, ChatTurn
from .user import UserProfile

__all__ = [
    "OwnedBase",
    "Document", "ChatTurn",
    "UserProfile",
]
