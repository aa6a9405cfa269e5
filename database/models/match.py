import uuid

from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Boolean, Integer, UniqueConstraint, Index
from sqlalchemy.sql import text as sql_text
from sqlalchemy.dialects.postgresql import UUID, JSONB

from .base import Base


class MatchRecord(Base):
    """
    One direction of a swipe relationship (initiator -> target).

    A mutual match is two records, one per direction, both ``matched``.
    Status is written once at creation or moves exactly once from
    ``pending`` to a terminal state. Records are never deleted.
    """
    __tablename__ = 'match_record'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    initiator_id = Column(Text, ForeignKey('user_profile.user_id'), nullable=False)
    target_id = Column(Text, ForeignKey('user_profile.user_id'), nullable=False)

    status = Column(Text, nullable=False, default='pending')  # pending, matched, rejected

    # Null for rejections
    compatibility_score = Column(Integer, nullable=True)
    compatibility_factors = Column(JSONB, default={})
    match_reasons = Column(JSONB, default=[])
    match_quality = Column(Text, nullable=True)  # LOW, MEDIUM, HIGH

    super_liked = Column(Boolean, nullable=False, default=False)
    chat_room_id = Column(UUID(as_uuid=True), ForeignKey('chat_room.id'), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=sql_text("timezone('UTC', now())"))
    responded_at = Column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('initiator_id', 'target_id', name='uq_match_record_pair'),
        Index('idx_match_record_target_status', 'target_id', 'status'),
        Index('idx_match_record_initiator_status', 'initiator_id', 'status'),
        Index('idx_match_record_missing_room', 'status', postgresql_where=chat_room_id.is_(None)),
    )
