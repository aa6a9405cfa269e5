import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert

from database.models import ChatRoom
from database.repositories.base import BaseRepository
from matchmaking.models import pair_key

logger = logging.getLogger(__name__)


class ChatRoomRepository(BaseRepository):
    def get_by_pair(self, user_a: str, user_b: str) -> Optional[ChatRoom]:
        stmt = select(ChatRoom).where(ChatRoom.pair_key == pair_key(user_a, user_b))
        return self.db.execute(stmt).scalar_one_or_none()

    def get_or_create(self, user_a: str, user_b: str, priority: bool = False) -> ChatRoom:
        """
        Return the pair's room, creating it if needed.

        Concurrent callers for the same pair all get the same row: the insert
        is a no-op when the pair key already exists. A priority request
        upgrades an existing normal room.
        """
        first, second = sorted((str(user_a), str(user_b)))
        priority_level = 'high' if priority else 'normal'

        stmt = insert(ChatRoom).values(
            pair_key=pair_key(first, second),
            participant_a=first,
            participant_b=second,
            priority_level=priority_level
        ).on_conflict_do_nothing(index_elements=['pair_key'])
        result = self.db.execute(stmt)
        if result.rowcount:
            logger.info(f"Created {priority_level} chat room for {first} <-> {second}")

        room = self.get_by_pair(first, second)
        if priority and room.priority_level != 'high':
            room.priority_level = 'high'
            self.db.flush()
        return room
