import hashlib
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select, update, text, and_, or_

from database.models import MatchRecord
from database.repositories.base import BaseRepository
from matchmaking.interfaces import DuplicateRecord, RelationshipStore
from matchmaking.models import MatchQuality, MatchRecordDTO, MatchStatus, pair_key

logger = logging.getLogger(__name__)


def pair_lock_key(user_a: str, user_b: str) -> int:
    """Stable signed 64-bit advisory lock key for an unordered pair."""
    digest = hashlib.sha256(pair_key(user_a, user_b).encode('utf-8')).digest()
    return int.from_bytes(digest[:8], 'big', signed=True)


def _quality_value(quality) -> Optional[str]:
    if quality is None:
        return None
    return MatchQuality(quality).value


def to_dto(row: MatchRecord) -> MatchRecordDTO:
    return MatchRecordDTO(
        id=str(row.id),
        initiator_id=row.initiator_id,
        target_id=row.target_id,
        status=MatchStatus(row.status),
        compatibility_score=row.compatibility_score,
        compatibility_factors=dict(row.compatibility_factors or {}),
        match_reasons=list(row.match_reasons or []),
        match_quality=MatchQuality(row.match_quality) if row.match_quality else None,
        super_liked=bool(row.super_liked),
        chat_room_id=str(row.chat_room_id) if row.chat_room_id else None,
        created_at=row.created_at,
        responded_at=row.responded_at,
    )


class MatchRecordRepository(BaseRepository, RelationshipStore):
    """
    Directional match records over PostgreSQL.

    ``lock_pair`` takes a transaction-scoped advisory lock, so it must be
    called inside the transaction that mutates the pair and is released on
    commit or rollback.
    """

    def lock_pair(self, user_a: str, user_b: str) -> None:
        self.db.execute(
            text("SELECT pg_advisory_xact_lock(:key)").bindparams(key=pair_lock_key(user_a, user_b))
        )

    def _select_pair(self, initiator_id: str, target_id: str):
        return select(MatchRecord).where(
            MatchRecord.initiator_id == str(initiator_id),
            MatchRecord.target_id == str(target_id)
        )

    def get(self, initiator_id: str, target_id: str) -> Optional[MatchRecordDTO]:
        row = self.db.execute(self._select_pair(initiator_id, target_id)).scalar_one_or_none()
        return to_dto(row) if row else None

    def get_pending(self, initiator_id: str, target_id: str) -> Optional[MatchRecordDTO]:
        stmt = self._select_pair(initiator_id, target_id).where(
            MatchRecord.status == MatchStatus.PENDING.value
        )
        row = self.db.execute(stmt).scalar_one_or_none()
        return to_dto(row) if row else None

    def create(
        self,
        initiator_id: str,
        target_id: str,
        status: MatchStatus,
        compatibility_score: Optional[int] = None,
        compatibility_factors: Optional[Dict[str, float]] = None,
        match_reasons: Optional[List[str]] = None,
        match_quality: Optional[str] = None,
        super_liked: bool = False
    ) -> MatchRecordDTO:
        record = MatchRecord(
            initiator_id=str(initiator_id),
            target_id=str(target_id),
            status=MatchStatus(status).value,
            compatibility_score=compatibility_score,
            compatibility_factors=compatibility_factors or {},
            match_reasons=match_reasons or [],
            match_quality=_quality_value(match_quality),
            super_liked=super_liked,
        )
        try:
            self.add_in_savepoint(record)
        except DuplicateRecord:
            logger.info(f"Match record {initiator_id} -> {target_id} already exists")
            raise

        self.db.refresh(record)
        return to_dto(record)

    def transition(
        self,
        initiator_id: str,
        target_id: str,
        to_status: MatchStatus,
        responded_at: Optional[datetime] = None
    ) -> Optional[MatchRecordDTO]:
        stmt = (
            update(MatchRecord)
            .where(
                MatchRecord.initiator_id == str(initiator_id),
                MatchRecord.target_id == str(target_id),
                MatchRecord.status == MatchStatus.PENDING.value
            )
            .values(
                status=MatchStatus(to_status).value,
                responded_at=responded_at or datetime.now(timezone.utc)
            )
            .returning(MatchRecord)
        )
        row = self.db.execute(stmt).scalars().first()
        if row is None:
            return None
        logger.info(f"Match record {initiator_id} -> {target_id}: pending -> {row.status}")
        return to_dto(row)

    def attach_scores(
        self,
        initiator_id: str,
        target_id: str,
        compatibility_score: int,
        compatibility_factors: Dict[str, float],
        match_reasons: List[str],
        match_quality: Optional[str],
        super_liked: Optional[bool] = None
    ) -> Optional[MatchRecordDTO]:
        values = {
            'compatibility_score': compatibility_score,
            'compatibility_factors': compatibility_factors,
            'match_reasons': match_reasons,
            'match_quality': _quality_value(match_quality),
        }
        if super_liked is not None:
            values['super_liked'] = super_liked

        stmt = (
            update(MatchRecord)
            .where(
                MatchRecord.initiator_id == str(initiator_id),
                MatchRecord.target_id == str(target_id)
            )
            .values(**values)
            .returning(MatchRecord)
        )
        row = self.db.execute(stmt).scalars().first()
        return to_dto(row) if row else None

    def attach_chat_room(self, user_a: str, user_b: str, chat_room_id: str) -> int:
        stmt = (
            update(MatchRecord)
            .where(
                or_(
                    and_(MatchRecord.initiator_id == str(user_a), MatchRecord.target_id == str(user_b)),
                    and_(MatchRecord.initiator_id == str(user_b), MatchRecord.target_id == str(user_a))
                ),
                MatchRecord.chat_room_id.is_(None)
            )
            .values(chat_room_id=uuid.UUID(str(chat_room_id)))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount

    def find_missing_rooms(self, limit: int = 100) -> List[MatchRecordDTO]:
        stmt = select(MatchRecord).where(
            MatchRecord.status == MatchStatus.MATCHED.value,
            MatchRecord.chat_room_id.is_(None)
        ).order_by(MatchRecord.created_at).limit(limit)
        return [to_dto(row) for row in self.db.execute(stmt).scalars().all()]

    def list_matched(self, user_id: str) -> List[MatchRecordDTO]:
        stmt = select(MatchRecord).where(
            MatchRecord.initiator_id == str(user_id),
            MatchRecord.status == MatchStatus.MATCHED.value
        ).order_by(MatchRecord.created_at.desc())
        return [to_dto(row) for row in self.db.execute(stmt).scalars().all()]
