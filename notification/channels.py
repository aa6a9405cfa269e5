#!/usr/bin/env python3
"""
Notification Channels

Delivery targets for match events:
- in_app: persisted to the ``notification`` table (source of truth, deduplicated)
- realtime: pushed to a realtime gateway over HTTP so connected clients update

Usage:
    from notification.channels import NotificationChannelFactory

    channel = NotificationChannelFactory.get_channel('in_app')
    channel.send(user_id, title, body, metadata)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any
import logging
import os

import requests

from database.database import db_session_scope
from database.repositories.notification import NotificationRepository

logger = logging.getLogger(__name__)


class RateLimitException(Exception):
    """Raised when a channel's upstream asks us to back off."""

    def __init__(self, message: str, retry_after: int = 60):
        super().__init__(message)
        self.retry_after = retry_after


class NotificationChannel(ABC):
    """
    Abstract base class for all notification channels.

    Any channel can be used interchangeably by the notification task.
    """

    @property
    @abstractmethod
    def channel_type(self) -> str:
        """Return the channel type identifier."""
        pass

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        """
        Send a notification through this channel.

        Args:
            recipient: Target user id
            subject: Notification title
            body: Notification body
            metadata: Event metadata (event_type, priority, dedup_hash, payload, ...)

        Returns:
            True if delivered, False if the channel suppressed it
        """
        pass


class InAppChannel(NotificationChannel):
    """In-app notification channel (stores in database)."""

    def __init__(self, session_scope=db_session_scope):
        self._session_scope = session_scope

    @property
    def channel_type(self) -> str:
        return 'in_app'

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        """Store notification for in-app display. False when already recorded."""
        with self._session_scope() as session:
            notification_id = NotificationRepository(session).record(
                user_id=recipient,
                event_type=metadata.get('event_type', 'general'),
                title=subject,
                body=body,
                priority=metadata.get('priority', 'normal'),
                payload=metadata.get('payload', {}),
                dedup_hash=metadata['dedup_hash'],
                notification_id=metadata.get('notification_id')
            )

        if notification_id is None:
            logger.info(f"[IN_APP] Duplicate {metadata.get('event_type')} for {recipient} suppressed")
            return False

        logger.info(f"[IN_APP] User: {recipient}, Title: {subject}")
        return True


class RealtimeChannel(NotificationChannel):
    """
    Pushes events to a realtime gateway (websocket fan-out) via HTTP POST.

    The gateway URL comes from REALTIME_GATEWAY_URL; without it the channel
    is a no-op.
    """

    def __init__(self, gateway_url: str = None, timeout_seconds: int = 5):
        self.gateway_url = gateway_url or os.environ.get('REALTIME_GATEWAY_URL', '')
        self.timeout_seconds = timeout_seconds

    @property
    def channel_type(self) -> str:
        return 'realtime'

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        if not self.gateway_url:
            logger.debug("Realtime gateway not configured, skipping push")
            return False

        payload = {
            'user_id': recipient,
            'type': metadata.get('event_type'),
            'title': subject,
            'body': body,
            'priority': metadata.get('priority', 'normal'),
            'data': metadata.get('payload', {}),
        }
        response = requests.post(self.gateway_url, json=payload, timeout=self.timeout_seconds)

        if response.status_code == 429:
            retry_after = int(response.headers.get('Retry-After', 60))
            raise RateLimitException("Realtime gateway rate limited", retry_after=retry_after)

        response.raise_for_status()
        logger.info(f"[REALTIME] Pushed {metadata.get('event_type')} to {recipient}")
        return True


class NotificationChannelFactory:
    """
    Factory for creating notification channels.

    New channels are added with ``register_channel`` without modifying the
    factory.
    """

    # Registry of available channels
    _channels: Dict[str, type] = {
        'in_app': InAppChannel,
        'realtime': RealtimeChannel,
    }

    @classmethod
    def get_channel(cls, channel_type: str) -> NotificationChannel:
        """
        Get a notification channel instance by type.

        Raises:
            ValueError: If channel type is not registered
        """
        channel_class = cls._channels.get(channel_type.lower())
        if not channel_class:
            raise ValueError(f"Unknown channel type: {channel_type}. "
                             f"Available: {', '.join(cls._channels.keys())}")

        return channel_class()

    @classmethod
    def register_channel(cls, channel_type: str, channel_class: type):
        if not issubclass(channel_class, NotificationChannel):
            raise ValueError("Channel class must extend NotificationChannel")

        cls._channels[channel_type.lower()] = channel_class
        logger.info(f"Registered new channel type: {channel_type}")

    @classmethod
    def list_channels(cls) -> list:
        return list(cls._channels.keys())
