"""
Mock Notification Service

Stands in for SendGrid and Twilio during development and tests. Nothing
leaves the process: every "delivered" message is logged and appended to
``sent`` so callers can inspect it.
"""

import logging
import random
import uuid
from typing import Optional

from quickserve.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)

logger = logging.getLogger(__name__)


class MockNotificationService(BaseNotificationService):
    """
    In-memory notification service.

    Attributes:
        failure_rate: Probability of a simulated delivery failure (0.0-1.0)
        sent: Every message "delivered", newest last
    """

    def __init__(self, restaurant_name: str, failure_rate: float = 0.0):
        super().__init__(restaurant_name)
        self.failure_rate = failure_rate
        self.sent: list[dict] = []
        logger.info(f"MockNotificationService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    def _deliver(self, channel: str, to: str, **fields) -> NotificationResult:
        if random.random() < self.failure_rate:
            logger.warning(f"Mock {channel} to {to} failed (simulated)")
            return NotificationResult(
                success=False,
                error_message=f"Simulated {channel} failure",
                provider="mock",
            )

        message_id = f"{channel}_mock_{uuid.uuid4().hex[:12]}"
        self.sent.append({"channel": channel, "to": to, "id": message_id, **fields})
        logger.info(f"Mock {channel} sent to {to} (ID: {message_id})")
        return NotificationResult(success=True, message_id=message_id, provider="mock")

    def send_sms(self, to_phone: str, message: str) -> NotificationResult:
        return self._deliver("sms", to_phone, body=message)

    def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        return self._deliver("email", to_email, subject=subject, body=body_text or body_html)

    def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True
