from .base import Base
from .profile import UserProfile
from .chat import ChatRoom
from .match import MatchRecord
from .notification import Notification

__all__ = [
    'Base',
    'UserProfile',
    'ChatRoom',
    'MatchRecord',
    'Notification',
]
