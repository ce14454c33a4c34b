# enrollment_portal/services/notifications.py

import smtplib
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Dict, Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from enrollment_portal.core.config import settings
from enrollment_portal.models.notification import Notification

logger = logging.getLogger(__name__)


class CredentialsNotifier:
    """Delivers login credentials to a newly approved student."""

    def credentials_subject(self) -> str:
        raise NotImplementedError

    def send_credentials(self, to_email: str, temp_password: str, display_name: str) -> Dict[str, Any]:
        """Returns {"success": bool, "error"?: str, "skipped"?: bool}; should not raise."""
        raise NotImplementedError


class EmailService(CredentialsNotifier):
    """Service for sending email notifications"""

    def __init__(self):
        self.smtp_server = settings.SMTP_SERVER
        self.smtp_port = settings.SMTP_PORT
        self.smtp_username = settings.SMTP_USERNAME
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.FROM_EMAIL or self.smtp_username
        self.school_name = settings.SCHOOL_NAME

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> Dict[str, Any]:
        """Send an email notification"""
        if not self.smtp_username or not self.smtp_password:
            logger.warning("SMTP credentials not configured - email notification skipped")
            return {"success": False, "skipped": True, "error": "SMTP not configured"}

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = self.from_email
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=30) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            logger.info(f"Email sent successfully to {to_email}")
            return {"success": True}

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email sending failed: {e}")
            return {"success": False, "error": str(e)}

    def credentials_subject(self) -> str:
        return f"Your {self.school_name} Student Portal Credentials"

    def send_credentials(self, to_email: str, temp_password: str, display_name: str) -> Dict[str, Any]:
        html = f"""
          <p>Hello <strong>{display_name}</strong>,</p>
          <p>Your student registration has been <strong>approved</strong> and your online account has been created.</p>
          <p><strong>Login Details</strong><br/>
             Email: <strong>{to_email}</strong><br/>
             Temporary Password: <strong>{temp_password}</strong>
          </p>
          <p>Please log in immediately and change your password.</p>
          <p>{self.school_name} Administration</p>
        """
        text = (
            f"Your account has been approved.\n"
            f"Email: {to_email}\n"
            f"Temporary Password: {temp_password}"
        )
        return self.send_email(to_email, self.credentials_subject(), html, text)


class NotificationLog:
    """Records delivery outcomes; message bodies are not kept."""

    def __init__(self, db: Session):
        self.db = db

    def record(self, recipient: str, subject: str, result: Dict[str, Any], channel: str = "EMAIL") -> Notification:
        if result.get("success"):
            status = "SENT"
        elif result.get("skipped"):
            status = "SKIPPED"
        else:
            status = "FAILED"
        error = result.get("error")
        n = Notification(
            channel=channel,
            recipient=recipient,
            subject=subject,
            status=status,
            error=str(error)[:512] if error else None,
        )
        self.db.add(n)
        return n

    def recent(self, recipient: Optional[str] = None, limit: int = 100) -> list[Notification]:
        query = select(Notification)
        if recipient:
            query = query.where(Notification.recipient == recipient)
        return list(self.db.execute(query.order_by(Notification.id.desc()).limit(limit)).scalars().all())


def get_email_service() -> EmailService:
    return EmailService()
