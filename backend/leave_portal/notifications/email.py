"""Email delivery: SMTP or SendGrid.

Prefers SendGrid when an API key is configured, falls back to SMTP. In dry-run
mode, or with neither provider configured, messages are written to the log
instead of being sent.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import httpx

from leave_portal.core.config import Settings
from leave_portal.core.errors import NotificationError
from leave_portal.notifications.messages import EmailMessage

logger = logging.getLogger(__name__)


class EmailService:
    """Send emails via SMTP or SendGrid."""

    SENDGRID_API_BASE = "https://api.sendgrid.com/v3"

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        """True if at least one email provider is configured."""
        return bool(self.settings.SENDGRID_API_KEY) or bool(self.settings.SMTP_USER)

    async def send(self, message: EmailMessage) -> None:
        if self.settings.EMAIL_DRY_RUN or not self.is_configured:
            logger.warning(
                "[DRY_RUN] would send to=%s subject=%r link=%s",
                message.to,
                message.subject,
                message.link,
            )
            return
        if self.settings.SENDGRID_API_KEY:
            await self._send_via_sendgrid(message)
        else:
            await asyncio.to_thread(self._send_via_smtp, message)

    async def _send_via_sendgrid(self, message: EmailMessage) -> None:
        """Send email via SendGrid v3 API."""
        url = f"{self.SENDGRID_API_BASE}/mail/send"
        payload = {
            "personalizations": [{"to": [{"email": message.to}]}],
            "from": {"email": self.settings.SMTP_FROM_EMAIL},
            "subject": message.subject,
            "content": [
                {"type": "text/plain", "value": message.body_text},
                {"type": "text/html", "value": message.body_html},
            ],
        }
        headers = {
            "Authorization": f"Bearer {self.settings.SENDGRID_API_KEY}",
            "Content-Type": "application/json",
        }

        try:
            if self._http_client is not None:
                resp = await self._http_client.post(url, json=payload, headers=headers, timeout=30.0)
            else:
                async with httpx.AsyncClient() as client:
                    resp = await client.post(url, json=payload, headers=headers, timeout=30.0)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("SendGrid error: %s - %s", e.response.status_code, e.response.text)
            raise NotificationError(f"SendGrid rejected message to {message.to}") from e
        except httpx.HTTPError as e:
            raise NotificationError(f"SendGrid request failed: {e}") from e
        logger.info("Email sent via SendGrid to %s", message.to)

    def _send_via_smtp(self, message: EmailMessage) -> None:
        """Send email via SMTP. Blocking; called from a worker thread."""
        msg = MIMEMultipart("alternative")
        msg["From"] = self.settings.SMTP_FROM_EMAIL
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg.attach(MIMEText(message.body_text, "plain"))
        msg.attach(MIMEText(message.body_html, "html"))

        try:
            with smtplib.SMTP(self.settings.SMTP_HOST, self.settings.SMTP_PORT, timeout=20) as server:
                if self.settings.SMTP_USE_TLS:
                    server.starttls()
                if self.settings.SMTP_USER and self.settings.SMTP_PASSWORD:
                    server.login(self.settings.SMTP_USER, self.settings.SMTP_PASSWORD)
                server.sendmail(self.settings.SMTP_FROM_EMAIL, [message.to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP delivery to {message.to} failed: {e}") from e
        logger.info("Email sent via SMTP to %s", message.to)
