import uuid

from sqlalchemy import Column, Text, TIMESTAMP, UniqueConstraint
from sqlalchemy.sql import text as sql_text
from sqlalchemy.dialects.postgresql import UUID

from .base import Base


class ChatRoom(Base):
    """Conversation channel for a matched pair. At most one per unordered pair."""
    __tablename__ = 'chat_room'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    pair_key = Column(Text, nullable=False)
    participant_a = Column(Text, nullable=False)
    participant_b = Column(Text, nullable=False)
    priority_level = Column(Text, nullable=False, default='normal')  # normal, high

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=sql_text("timezone('UTC', now())"))

    __table_args__ = (
        UniqueConstraint('pair_key', name='uq_chat_room_pair'),
    )
