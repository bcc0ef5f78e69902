"""
SMS sender (Twilio).

Without Twilio credentials the message is logged instead of sent.
Like the email sender, nothing here raises.
"""
import logging
from typing import Optional

from twilio.rest import Client

from safestart.config import get_settings

logger = logging.getLogger(__name__)


class SmsService:

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self._client: Optional[Client] = None

    @property
    def configured(self) -> bool:
        return bool(
            self.settings.TWILIO_ACCOUNT_SID
            and self.settings.TWILIO_AUTH_TOKEN
            and self.settings.TWILIO_FROM_NUMBER
        )

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = Client(self.settings.TWILIO_ACCOUNT_SID, self.settings.TWILIO_AUTH_TOKEN)
        return self._client

    def send_sms(self, to_number: Optional[str], body: str) -> bool:
        if not to_number:
            return False

        if not self.configured:
            logger.info(f"[SMS/console] -> {to_number}: {body}")
            return False

        try:
            message = self._get_client().messages.create(
                from_=self.settings.TWILIO_FROM_NUMBER,
                to=to_number,
                body=body,
            )
            logger.info(f"SMS sent to {to_number} (sid={message.sid})")
            return True
        except Exception:
            logger.exception(f"Failed to send SMS to {to_number}")
            return False

    def send_welcome_sms(self, to_number: Optional[str], full_name: str, company_name: str) -> bool:
        return self.send_sms(
            to_number,
            f"Welcome to SafeStart, {full_name}! Your {company_name} account is ready. "
            f"Sign in at {self.settings.FRONTEND_URL}/login",
        )

    def send_password_reset_sms(self, to_number: Optional[str]) -> bool:
        return self.send_sms(
            to_number,
            "SafeStart: a password reset was requested for your account. "
            "Check your email for the reset link. If this wasn't you, ignore this message.",
        )

    def send_inspection_reminder_sms(self, to_number: Optional[str], vehicle_label: str) -> bool:
        return self.send_sms(
            to_number,
            f"SafeStart: you have a pending inspection for vehicle {vehicle_label}.",
        )

    def send_issue_alert_sms(self, to_number: Optional[str], vehicle_label: str, severity: str, description: str) -> bool:
        summary = description if len(description) <= 100 else description[:97] + "..."
        return self.send_sms(
            to_number,
            f"SafeStart {severity.upper()} issue on {vehicle_label}: {summary}",
        )


sms_service = SmsService()
