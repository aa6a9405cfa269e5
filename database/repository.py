import logging

from sqlalchemy.orm import Session

from database.repositories.chat import ChatRoomRepository
from database.repositories.match import MatchRecordRepository
from database.repositories.notification import NotificationRepository
from database.repositories.profile import ProfileRepository

logger = logging.getLogger(__name__)


class MatchingRepository:
    """
    All repositories bound to one Session.

    This is the object a unit of work yields: services reach the stores
    through ``profiles`` and ``relationships`` and every change made through
    them commits or rolls back together.
    """

    def __init__(self, db: Session):
        self.db = db
        self.profiles = ProfileRepository(db)
        self.relationships = MatchRecordRepository(db)
        self.chat_rooms = ChatRoomRepository(db)
        self.notifications = NotificationRepository(db)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
