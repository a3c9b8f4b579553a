"""
Real Notification Service

Delivers confirmations through SendGrid (email) and Twilio (SMS). A channel
without credentials is skipped: its sends report failure and are logged,
the other channel keeps working.
"""

import logging
from typing import Optional

from python_http_client.exceptions import HTTPError as SendGridHTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from quickserve.core.config import Settings
from quickserve.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)

logger = logging.getLogger(__name__)

SENDGRID_ACCEPTED = (200, 201, 202)


def _not_sent(provider: str, reason: str) -> NotificationResult:
    return NotificationResult(success=False, error_message=reason, provider=provider)


class RealNotificationService(BaseNotificationService):
    """
    SendGrid + Twilio notification service.

    Args:
        settings: Source of provider credentials, sender identities and
            the restaurant name used in message text
    """

    def __init__(self, settings: Settings):
        super().__init__(settings.restaurant_name)
        self.email_sender = settings.sendgrid_from_email
        self.sms_sender = settings.twilio_phone_number

        self.sendgrid: Optional[SendGridAPIClient] = None
        if settings.sendgrid_api_key:
            self.sendgrid = SendGridAPIClient(settings.sendgrid_api_key)
        else:
            logger.warning("SENDGRID_API_KEY not set; email confirmations disabled")

        self.twilio: Optional[TwilioClient] = None
        if settings.twilio_account_sid and settings.twilio_auth_token:
            self.twilio = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
        else:
            logger.warning("Twilio credentials not set; SMS confirmations disabled")

        logger.info(
            f"RealNotificationService ready "
            f"(email={'on' if self.sendgrid else 'off'}, sms={'on' if self.twilio else 'off'})"
        )

    @property
    def provider_name(self) -> str:
        return "real"

    def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        if self.sendgrid is None:
            return _not_sent("sendgrid", "SendGrid not configured")

        mail = Mail(
            from_email=self.email_sender,
            to_emails=to_email,
            subject=subject,
            html_content=body_html,
            plain_text_content=body_text,
        )
        try:
            response = self.sendgrid.send(mail)
        except SendGridHTTPError as e:
            logger.error(f"SendGrid rejected email to {to_email}: {e}")
            return _not_sent("sendgrid", str(e))

        accepted = response.status_code in SENDGRID_ACCEPTED
        log = logger.info if accepted else logger.warning
        log(f"SendGrid answered {response.status_code} for {to_email}")
        return NotificationResult(
            success=accepted,
            message_id=response.headers.get("X-Message-Id"),
            provider="sendgrid",
        )

    def send_sms(self, to_phone: str, message: str) -> NotificationResult:
        if self.twilio is None:
            return _not_sent("twilio", "Twilio not configured")

        try:
            sms = self.twilio.messages.create(body=message, from_=self.sms_sender, to=to_phone)
        except TwilioException as e:
            logger.error(f"Twilio rejected SMS to {to_phone}: {e}")
            return _not_sent("twilio", str(e))

        logger.info(f"SMS {sms.sid} sent to {to_phone}")
        return NotificationResult(success=True, message_id=sms.sid, provider="twilio")

    def health_check(self) -> bool:
        """Healthy when at least one channel is configured."""
        return self.sendgrid is not None or self.twilio is not None
