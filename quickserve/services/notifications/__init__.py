"""
Notification Service Factory

Returns Mock or Real notification service based on ENV_MODE.

Usage:
    from quickserve.services.notifications import get_notification_service

    service = get_notification_service()
    service.send_order_confirmation(...)
"""

import logging
from functools import lru_cache

from quickserve.core.config import get_settings
from quickserve.services.notifications.base import (
    BaseNotificationService,
    ConfirmationResult,
    NotificationResult,
)
from quickserve.services.notifications.mock import MockNotificationService

logger = logging.getLogger(__name__)


@lru_cache()
def get_notification_service() -> BaseNotificationService:
    """Get the configured notification service."""
    settings = get_settings()

    if settings.use_real_services:
        # Provider SDKs are only imported when they will be used
        from quickserve.services.notifications.real import RealNotificationService

        logger.info(f"Notification Service: Using RealNotificationService ({settings.env_mode.value} mode)")
        return RealNotificationService(settings)

    logger.info("Notification Service: Using MockNotificationService (development mode)")
    return MockNotificationService(settings.restaurant_name, failure_rate=0.05)


def reset_notification_service() -> None:
    """Clear the cached service instance."""
    get_notification_service.cache_clear()


__all__ = [
    "get_notification_service",
    "reset_notification_service",
    "BaseNotificationService",
    "ConfirmationResult",
    "NotificationResult",
    "MockNotificationService",
]
