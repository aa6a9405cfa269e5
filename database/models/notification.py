import uuid

from sqlalchemy import Column, Text, TIMESTAMP, UniqueConstraint, Index
from sqlalchemy.sql import text as sql_text
from sqlalchemy.dialects.postgresql import UUID, JSONB

from .base import Base


class Notification(Base):
    """
    In-app notification for match events.

    ``dedup_hash`` identifies the event (user + event type + match), so a
    re-delivered swipe can never notify the same user twice.
    """
    __tablename__ = 'notification'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)

    event_type = Column(Text, nullable=False)  # match, super_like, super_match
    title = Column(Text, nullable=False)
    body = Column(Text)
    priority = Column(Text, nullable=False, default='normal')
    payload = Column(JSONB, default={})

    # Deduplication key - hash of user + event type + match
    dedup_hash = Column(Text, nullable=False)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=sql_text("timezone('UTC', now())"))
    read_at = Column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('dedup_hash', name='uq_notification_dedup'),
        Index('idx_notification_user_created', 'user_id', 'created_at'),
    )
