import logging

from database.database import db_session_scope
from database.repositories.chat import ChatRoomRepository
from matchmaking.interfaces import ChatCollaborator

logger = logging.getLogger(__name__)


class DatabaseChatCollaborator(ChatCollaborator):
    """Creates chat rooms in the ``chat_room`` table, one per unordered pair."""

    def __init__(self, session_scope=db_session_scope):
        self._session_scope = session_scope

    def create_room(self, user_a: str, user_b: str, priority: bool = False) -> str:
        with self._session_scope() as session:
            room = ChatRoomRepository(session).get_or_create(user_a, user_b, priority=priority)
            return str(room.id)
