"""SMTP email sender."""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from safestart import email_templates
from safestart.config import get_settings

logger = logging.getLogger(__name__)


class EmailService:
    """
    Transactional email via SMTP.

    Every method returns True on success and False otherwise. Nothing here
    raises: callers run these as background tasks after their commit.
    """

    def __init__(self, settings=None):
        self.settings = settings or get_settings()

    @property
    def configured(self) -> bool:
        return bool(self.settings.SMTP_HOST)

    def send_email(self, to_email: str, subject: str, html_body: str, text_body: Optional[str] = None) -> bool:
        if not self.configured:
            logger.warning(f"SMTP not configured, email to {to_email} not sent: {subject}")
            return False

        try:
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = formataddr((self.settings.EMAIL_FROM_NAME, self.settings.EMAIL_FROM))
            message["To"] = to_email
            if text_body:
                message.attach(MIMEText(text_body, "plain"))
            message.attach(MIMEText(html_body, "html"))

            with smtplib.SMTP(self.settings.SMTP_HOST, self.settings.SMTP_PORT, timeout=10) as server:
                if self.settings.SMTP_USE_TLS:
                    server.starttls()
                if self.settings.SMTP_USERNAME:
                    server.login(self.settings.SMTP_USERNAME, self.settings.SMTP_PASSWORD)
                server.send_message(message)

            logger.info(f"Email sent to {to_email}: {subject}")
            return True
        except Exception:
            logger.exception(f"Failed to send email to {to_email}: {subject}")
            return False

    def send_welcome_email(self, to_email: str, full_name: str, company_name: str, role: str) -> bool:
        subject, html, text = email_templates.welcome(
            full_name, company_name, role, f"{self.settings.FRONTEND_URL}/login"
        )
        return self.send_email(to_email, subject, html, text)

    def send_password_reset_email(self, to_email: str, full_name: str, reset_token: str) -> bool:
        reset_url = f"{self.settings.FRONTEND_URL}/reset-password?token={reset_token}"
        subject, html, text = email_templates.password_reset(
            full_name, reset_url, self.settings.PASSWORD_RESET_EXPIRE_MINUTES
        )
        return self.send_email(to_email, subject, html, text)

    def send_inspection_reminder_email(
        self, to_email: str, full_name: str, vehicle_label: str, template_name: str, inspection_id: str
    ) -> bool:
        subject, html, text = email_templates.inspection_reminder(
            full_name,
            vehicle_label,
            template_name,
            f"{self.settings.FRONTEND_URL}/inspections/{inspection_id}",
        )
        return self.send_email(to_email, subject, html, text)

    def send_issue_notification_email(
        self,
        to_email: str,
        full_name: str,
        vehicle_label: str,
        severity: str,
        description: str,
        reporter_name: str,
        issue_id: str,
    ) -> bool:
        subject, html, text = email_templates.issue_notification(
            full_name,
            vehicle_label,
            severity,
            description,
            reporter_name,
            f"{self.settings.FRONTEND_URL}/issues/{issue_id}",
        )
        return self.send_email(to_email, subject, html, text)


email_service = EmailService()
