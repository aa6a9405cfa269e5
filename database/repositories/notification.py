import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert

from database.models import Notification
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository):
    def exists(self, dedup_hash: str) -> bool:
        stmt = select(Notification.id).where(Notification.dedup_hash == dedup_hash)
        return self.db.execute(stmt).first() is not None

    def record(
        self,
        user_id: str,
        event_type: str,
        title: str,
        body: str,
        priority: str,
        payload: Dict[str, Any],
        dedup_hash: str,
        notification_id: Optional[Any] = None
    ) -> Optional[str]:
        """Insert a notification. Returns its id, or None if the dedup hash was already recorded."""
        values = {}
        if notification_id is not None:
            values["id"] = uuid.UUID(str(notification_id))
        stmt = insert(Notification).values(
            **values,
            user_id=str(user_id),
            event_type=event_type,
            title=title,
            body=body,
            priority=priority,
            payload=payload or {},
            dedup_hash=dedup_hash
        ).on_conflict_do_nothing(index_elements=['dedup_hash']).returning(Notification.id)
        row = self.db.execute(stmt).first()
        return str(row[0]) if row else None

    def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == str(user_id))
        if unread_only:
            stmt = stmt.where(Notification.read_at.is_(None))
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
        return self.db.execute(stmt).scalars().all()

    def mark_read(self, user_id: str, notification_id: Any) -> int:
        result = self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == str(user_id))
            .values(read_at=datetime.now(timezone.utc))
        )
        return result.rowcount
