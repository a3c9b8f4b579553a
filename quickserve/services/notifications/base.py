"""
Notification Service Abstract Base Class

Defines the interface for sending Email and SMS confirmations.
Supports both Mock (development) and Real (production) implementations.

Methods are synchronous: they are called from Celery tasks, which may run
inline (eager mode) inside the API's event loop.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


@dataclass
class ConfirmationResult:
    """Outcome of a confirmation fan-out (email plus optional SMS)."""
    email: Optional[NotificationResult] = None
    sms: Optional[NotificationResult] = None
    channels: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return any(r is not None and r.success for r in (self.email, self.sms))

    def to_dict(self) -> dict:
        """Convert to dictionary for the task result backend."""
        return {
            "success": self.success,
            "channels": self.channels,
            "email_sent": bool(self.email and self.email.success),
            "sms_sent": bool(self.sms and self.sms.success),
        }


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    def __init__(self, restaurant_name: str):
        self.restaurant_name = restaurant_name

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    def send_sms(self, to_phone: str, message: str) -> NotificationResult:
        """Send an SMS message."""
        pass

    @abstractmethod
    def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check service connectivity."""
        pass

    # =========================================================================
    # CONFIRMATIONS (shared by every provider)
    # =========================================================================

    def _fan_out(
        self,
        email: str,
        phone: Optional[str],
        subject: str,
        message: str,
        body_html: str,
    ) -> ConfirmationResult:
        result = ConfirmationResult()

        result.email = self.send_email(
            to_email=email,
            subject=subject,
            body_html=body_html,
            body_text=message,
        )
        result.channels.append("email")

        if phone:
            result.sms = self.send_sms(phone, message)
            result.channels.append("sms")

        return result

    def send_order_confirmation(
        self,
        order_number: str,
        customer_name: str,
        customer_email: str,
        customer_phone: Optional[str],
        total: float,
        item_count: int,
        payment_method: str,
    ) -> ConfirmationResult:
        """Send order confirmation via email and, when a phone is on file, SMS."""
        message = (
            f"Hi {customer_name}! Your order {order_number} has been received.\n"
            f"Items: {item_count}\n"
            f"Total: {total:.2f} ({payment_method})\n"
            f"Thank you for ordering from {self.restaurant_name}!"
        )
        body_html = (
            f"<h1>Order Received</h1>"
            f"<p>Hi {customer_name},</p>"
            f"<p>Your order <strong>{order_number}</strong> is now pending.</p>"
            f"<p>Total: <strong>{total:.2f}</strong></p>"
        )
        return self._fan_out(
            email=customer_email,
            phone=customer_phone,
            subject=f"Order {order_number} - {self.restaurant_name}",
            message=message,
            body_html=body_html,
        )

    def send_reservation_confirmation(
        self,
        customer_name: str,
        customer_email: str,
        customer_phone: Optional[str],
        date: str,
        time: str,
        guests: int,
    ) -> ConfirmationResult:
        """Send table reservation confirmation."""
        party = f"{guests} {'person' if guests == 1 else 'people'}"
        message = (
            f"Hi {customer_name}! Your table for {party} on {date} at {time} "
            f"is confirmed. See you at {self.restaurant_name}!"
        )
        body_html = (
            f"<h1>Table Reserved</h1>"
            f"<p>Hi {customer_name},</p>"
            f"<p>{party.capitalize()} on <strong>{date}</strong> at <strong>{time}</strong>.</p>"
        )
        return self._fan_out(
            email=customer_email,
            phone=customer_phone,
            subject=f"Reservation confirmed - {self.restaurant_name}",
            message=message,
            body_html=body_html,
        )
