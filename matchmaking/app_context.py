from dataclasses import dataclass
from typing import Optional

from matchmaking.config_loader import AppConfig
from matchmaking.discovery.service import CandidateDiscoveryService
from matchmaking.models import SubscriptionTier
from matchmaking.quota.service import QuotaService
from matchmaking.quota.store import RedisCounterStore
from matchmaking.scorer.service import CompatibilityScorer
from matchmaking.swipe.service import SwipeService
from notification.service import NotificationService


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    This eliminates duplicate wiring code and provides a single source
    of truth for service instantiation. DB access is obtained via
    match_uow() inside each service call.
    """
    config: AppConfig
    scorer: CompatibilityScorer
    quota_service: QuotaService
    discovery_service: CandidateDiscoveryService
    swipe_service: SwipeService
    notification_service: Optional[NotificationService] = None

    @classmethod
    def build(cls, config: AppConfig) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration

        Returns:
            Fully wired AppContext instance
        """
        from database.chat import DatabaseChatCollaborator
        from database.database import configure_engine
        from database.uow import match_uow

        configure_engine(
            config.database.url,
            pool_size=config.database.pool_size,
            max_overflow=config.database.max_overflow
        )

        scorer = CompatibilityScorer(config.scoring)

        quota_service = QuotaService(
            store=RedisCounterStore.from_url(config.redis.url),
            config=config.quota,
            tier_resolver=cls._profile_tier_resolver(match_uow),
            key_prefix=config.redis.key_prefix
        )

        # Notification Service (lazy - only if enabled)
        notification_service = None
        if config.notifications and config.notifications.enabled:
            notification_service = cls._build_notification_service(config)

        discovery_service = CandidateDiscoveryService(
            uow_factory=match_uow,
            scorer=scorer,
            quota=quota_service,
            config=config.discovery
        )

        swipe_service = SwipeService(
            uow_factory=match_uow,
            scorer=scorer,
            quota=quota_service,
            chat=DatabaseChatCollaborator(),
            notifier=notification_service
        )

        return cls(
            config=config,
            scorer=scorer,
            quota_service=quota_service,
            discovery_service=discovery_service,
            swipe_service=swipe_service,
            notification_service=notification_service
        )

    @staticmethod
    def _profile_tier_resolver(uow_factory):
        """Tier lookup for quota calls that do not pass a tier explicitly."""
        def resolve(user_id: str) -> Optional[SubscriptionTier]:
            with uow_factory() as repo:
                profile = repo.profiles.get(user_id)
            return profile.subscription_tier if profile else None
        return resolve

    @staticmethod
    def _build_notification_service(config: AppConfig) -> NotificationService:
        notification_config = config.notifications
        return NotificationService(
            redis_url=notification_config.redis_url or config.redis.url,
            use_async_queue=notification_config.use_async_queue,
            base_url=notification_config.base_url
        )
