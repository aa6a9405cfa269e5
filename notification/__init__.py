"""
Notification Module

Match event notifications with deduplication and async processing.

Usage:
    from notification import NotificationService

    service = NotificationService(redis_url="redis://localhost:6379/0")
    service.notify("user-1", event)
"""

from notification.channels import (
    NotificationChannel,
    InAppChannel,
    RealtimeChannel,
    NotificationChannelFactory,
    RateLimitException,
)

from notification.service import (
    NotificationService,
    NotificationPriority,
    generate_dedup_hash,
    process_notification_task,
)

__all__ = [
    # Channels
    'NotificationChannel',
    'InAppChannel',
    'RealtimeChannel',
    'NotificationChannelFactory',
    'RateLimitException',
    # Service
    'NotificationService',
    'NotificationPriority',
    'generate_dedup_hash',
    'process_notification_task',
]
