from sqlalchemy import Column, Text, TIMESTAMP, Float, Index, func
from sqlalchemy.sql import text as sql_text
from sqlalchemy.dialects.postgresql import JSONB

from .base import Base


class UserProfile(Base):
    """
    Matching profile of one entrepreneur or funder.

    Role-specific attributes (industries, investment range, timeline, ...)
    live in the ``attributes`` JSONB column; the columns the candidate query
    filters on are kept as real columns.
    """
    __tablename__ = 'user_profile'

    user_id = Column(Text, primary_key=True)
    role = Column(Text, nullable=False)  # entrepreneur, funder
    display_name = Column(Text)

    subscription_tier = Column(Text, nullable=False, default='Basic')
    verification_level = Column(Text, nullable=False, default='None')

    attributes = Column(JSONB, default={})

    # Carried for display only, never scored
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=sql_text("timezone('UTC', now())"))
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=sql_text("timezone('UTC', now())"), onupdate=func.now())

    __table_args__ = (
        Index('idx_user_profile_role_tier', 'role', 'subscription_tier'),
    )
