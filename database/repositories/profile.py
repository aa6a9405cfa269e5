import logging
from typing import Iterable, List, Optional

from sqlalchemy import select, and_, or_

from database.models import MatchRecord, UserProfile
from database.repositories.base import BaseRepository
from matchmaking.interfaces import ProfileStore
from matchmaking.models import Criteria, ProfileSnapshot, Role, SubscriptionTier, build_snapshot

logger = logging.getLogger(__name__)

ALL_TIER_LABELS = [tier.label for tier in SubscriptionTier]


def to_snapshot(row: UserProfile) -> ProfileSnapshot:
    location = None
    if row.latitude is not None and row.longitude is not None:
        location = (row.latitude, row.longitude)
    return build_snapshot(
        user_id=row.user_id,
        role=row.role,
        attributes=row.attributes,
        subscription_tier=row.subscription_tier,
        verification_level=row.verification_level,
        location=location,
        display_name=row.display_name,
    )


class ProfileRepository(BaseRepository, ProfileStore):
    def get(self, user_id: str) -> Optional[ProfileSnapshot]:
        row = self.db.get(UserProfile, str(user_id))
        return to_snapshot(row) if row else None

    def list_candidates(
        self,
        role: Role,
        exclude_ids: Iterable[str],
        tier_ceiling: SubscriptionTier,
        filters: Optional[Criteria] = None,
        exclude_related_to: Optional[str] = None
    ) -> List[ProfileSnapshot]:
        visible = [tier.label for tier in SubscriptionTier.parse(tier_ceiling).accessible_tiers()]

        stmt = select(UserProfile).where(
            UserProfile.role == Role(role).value,
            # Unknown tier labels count as Basic, which every tier can see
            or_(
                UserProfile.subscription_tier.in_(visible),
                UserProfile.subscription_tier.notin_(ALL_TIER_LABELS)
            )
        )

        exclude = [str(user_id) for user_id in exclude_ids]
        if exclude:
            stmt = stmt.where(UserProfile.user_id.notin_(exclude))

        if filters is not None and filters.verified_only:
            stmt = stmt.where(UserProfile.verification_level != 'None')

        if exclude_related_to:
            related = select(MatchRecord.id).where(
                or_(
                    and_(
                        MatchRecord.initiator_id == str(exclude_related_to),
                        MatchRecord.target_id == UserProfile.user_id
                    ),
                    and_(
                        MatchRecord.initiator_id == UserProfile.user_id,
                        MatchRecord.target_id == str(exclude_related_to)
                    )
                )
            )
            stmt = stmt.where(~related.exists())

        stmt = stmt.order_by(UserProfile.user_id)
        rows = self.db.execute(stmt).scalars().all()
        logger.debug(f"Listed {len(rows)} {Role(role).value} candidates up to tier {visible[-1]}")
        return [to_snapshot(row) for row in rows]
