from database.repositories.base import BaseRepository
from database.repositories.profile import ProfileRepository
from database.repositories.match import MatchRecordRepository
from database.repositories.chat import ChatRoomRepository
from database.repositories.notification import NotificationRepository

__all__ = [
    'BaseRepository',
    'ProfileRepository',
    'MatchRecordRepository',
    'ChatRoomRepository',
    'NotificationRepository',
]
