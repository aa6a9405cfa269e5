#!/usr/bin/env python3
"""
Notification Service with Deduplication

Delivers match events (match, super_like, super_match) to users through the
configured channels, either via a Redis Queue worker or synchronously.

Every event carries a dedup hash built from the user, event type, match and
counterpart. The in-app channel stores it under a unique constraint, so a
swipe that is re-delivered never notifies the same user twice.

Usage:
    from notification.service import NotificationService

    service = NotificationService(redis_url="redis://localhost:6379/0")
    service.notify("user-1", MatchEvent(event_type="match", title="It's a match!", body="..."))
"""

import hashlib
import logging
import os
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from redis import Redis
from rq import Queue, Retry

from matchmaking.interfaces import MatchEvent, NotificationCollaborator
from notification.channels import NotificationChannelFactory, RateLimitException

logger = logging.getLogger(__name__)

QUEUE_NAME = 'notifications'


class NotificationPriority(Enum):
    """Priority levels for notifications."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def parse(cls, value: str) -> "NotificationPriority":
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.NORMAL


def generate_dedup_hash(
    user_id: str,
    event_type: str,
    match_id: Optional[str],
    counterpart_id: Optional[str]
) -> str:
    """Hash uniquely identifying one user-facing event."""
    key = f"{user_id}|{event_type}|{match_id or ''}|{counterpart_id or ''}"
    return hashlib.sha256(key.encode('utf-8')).hexdigest()


class NotificationService(NotificationCollaborator):
    """
    Main notification service.

    Coordinates:
    1. Deduplication key generation
    2. Queueing for async processing (via RQ), or sync delivery
    3. Channel fan-out (in the task)
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        use_async_queue: bool = True,
        channels: Optional[List[str]] = None,
        base_url: Optional[str] = None
    ):
        """
        Initialize notification service.

        Args:
            redis_url: Redis connection URL
            use_async_queue: Whether to use async queue or sync mode
            channels: Channel types to deliver to (default: in_app, realtime)
            base_url: Base URL for links in notifications
        """
        self.redis_url = redis_url or os.environ.get('REDIS_URL', 'redis://localhost:6379/0')
        self.base_url = base_url or os.environ.get('BASE_URL', 'http://localhost:8080')
        self.channels = channels or ['in_app', 'realtime']

        if not use_async_queue:
            logger.info("Async queue disabled via config. Using sync mode.")
            self.redis_conn = None
            self.queue = None
            self.async_mode = False
        else:
            try:
                self.redis_conn = Redis.from_url(self.redis_url)
                # Validate connection with ping before using
                self.redis_conn.ping()
                self.queue = Queue(QUEUE_NAME, connection=self.redis_conn)
                self.async_mode = True
                logger.info("Notification service connected to Redis")
            except Exception as e:
                logger.error(f"Redis connection failed: {e}. Falling back to sync mode.")
                self.redis_conn = None
                self.queue = None
                self.async_mode = False

    def build_notification_data(self, user_id: str, event: MatchEvent) -> Dict[str, Any]:
        payload = dict(event.payload or {})
        if event.match_id:
            payload.setdefault('match_id', event.match_id)
            payload.setdefault('link', f"{self.base_url}/matches/{event.match_id}")
        if event.counterpart_id:
            payload.setdefault('counterpart_id', event.counterpart_id)

        return {
            'notification_id': str(uuid.uuid4()),
            'user_id': str(user_id),
            'event_type': event.event_type,
            'title': event.title,
            'body': event.body,
            'priority': NotificationPriority.parse(event.priority).value,
            'payload': payload,
            'dedup_hash': generate_dedup_hash(user_id, event.event_type, event.match_id, event.counterpart_id),
            'channels': list(self.channels),
        }

    def notify(self, user_id: str, event: MatchEvent) -> Optional[str]:
        """
        Send a match event to ``user_id``.

        Returns:
            Notification (or queued job) id, None if suppressed as duplicate
        """
        notification_data = self.build_notification_data(user_id, event)

        if self.async_mode:
            # Retry transient failures with increasing delays
            retry_policy = Retry(max=3, interval=[10, 30, 60])
            # High priority events jump the queue
            at_front = notification_data['priority'] in ('high', 'urgent')
            job = self.queue.enqueue(
                process_notification_task,
                notification_data,
                job_timeout='2m',
                result_ttl=86400,
                retry=retry_policy,
                at_front=at_front
            )
            logger.info(f"Queued {event.event_type} notification for {user_id} as job {job.id}")
            return job.id

        return process_notification_task(notification_data)

    def get_queue_status(self) -> Dict[str, Any]:
        """Get queue status."""
        if not self.async_mode:
            return {'status': 'sync_mode', 'queue_length': 0}

        try:
            return {
                'status': 'active',
                'queue_length': len(self.queue),
                'redis_connected': self.redis_conn.ping()
            }
        except Exception as e:
            return {'status': 'error', 'error': str(e)}


# Worker task - must be at module level for RQ
def process_notification_task(notification_data: Dict[str, Any]) -> Optional[str]:
    """
    Deliver one notification (called by the RQ worker or inline in sync mode).

    The in-app channel runs first and decides deduplication: if the event was
    already recorded, no other channel is tried.
    """
    notification_id = notification_data['notification_id']
    user_id = notification_data['user_id']
    event_type = notification_data['event_type']
    channels = notification_data.get('channels') or ['in_app']

    metadata = {
        'notification_id': notification_id,
        'event_type': event_type,
        'priority': notification_data.get('priority', 'normal'),
        'payload': notification_data.get('payload', {}),
        'dedup_hash': notification_data['dedup_hash'],
    }

    logger.info(f"Processing notification {notification_id} ({event_type}) for {user_id}")

    ordered = sorted(channels, key=lambda c: 0 if c == 'in_app' else 1)
    for channel_type in ordered:
        channel = NotificationChannelFactory.get_channel(channel_type)
        try:
            delivered = channel.send(user_id, notification_data['title'], notification_data['body'], metadata)
        except RateLimitException as e:
            logger.warning(f"Rate limited by {channel_type} (retry after {e.retry_after}s)")
            raise

        if channel_type == 'in_app' and not delivered:
            return None

    return notification_id
