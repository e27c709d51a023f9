"""
Transactional email through the Mailgun HTTP API.

Sending never raises: every outcome comes back as a DeliveryResult so that the
caller decides whether a failure matters (it does for invitations, it must not
for logins).
"""

import httpx
from pydantic import BaseModel
from typing import Optional
from constants import MAILGUN_API_KEY, MAILGUN_DOMAIN, MAILGUN_BASE_URL, MAIL_FROM, MAIL_TIMEOUT_SECONDS
from logging_config import get_logger

logger = get_logger(__name__)

SENDER_NAME = "Open Spaces Live"


class DeliveryResult(BaseModel):
    success: bool
    error: Optional[str] = None


class MailgunMailer:
    def __init__(
        self,
        api_key: Optional[str] = MAILGUN_API_KEY,
        domain: Optional[str] = MAILGUN_DOMAIN,
        sender: Optional[str] = MAIL_FROM,
        base_url: str = MAILGUN_BASE_URL,
        timeout: float = MAIL_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.domain = domain
        self.sender = sender
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.domain and self.sender)

    async def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> DeliveryResult:
        if not self.configured:
            logger.error("Mailgun environment variables are not set. Email not sent.")
            return DeliveryResult(success=False, error="Email service is not configured.")

        data = {
            "from": f"{SENDER_NAME} <{self.sender}>",
            "to": to,
            "subject": subject,
            "text": text,
        }
        if html:
            data["html"] = html

        endpoint = f"{self.base_url}/{self.domain}/messages"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(endpoint, data=data, auth=("api", self.api_key))
        except httpx.HTTPError as e:
            logger.error(f"Error sending email to {to}: {e}", exc_info=True)
            return DeliveryResult(success=False, error=str(e))

        if response.status_code >= 300:
            try:
                message = response.json().get("message")
            except ValueError:
                message = None
            logger.error(f"Mailgun rejected email to {to}: {response.status_code} {message}")
            return DeliveryResult(success=False, error=message or "Failed to send email")

        logger.info(f"Email '{subject}' sent to {to}")
        return DeliveryResult(success=True)

    async def send_login_link(self, to: str, link: str) -> DeliveryResult:
        return await self.send(
            to,
            subject="Your Open Spaces Login Link",
            text=f"Click the link to log in: {link}",
            html=(
                "<p>Click the link below to log in to Open Spaces Live.</p>"
                f'<p><a href="{link}">{link}</a></p>'
                "<p>This link will expire in 15 minutes.</p>"
            ),
        )

    async def send_invitation(self, to: str, link: str, role: str, inviter_email: str) -> DeliveryResult:
        return await self.send(
            to,
            subject="You have been invited to Open Spaces Live!",
            text=f"You have been invited to join Open Spaces Live as a {role}. Click the link to log in: {link}",
            html=(
                f"<p>You have been invited by {inviter_email} to join Open Spaces Live as a "
                f"<strong>{role}</strong>.</p>"
                "<p>Click the link below to log in and get started:</p>"
                f'<p><a href="{link}">{link}</a></p>'
                "<p>This invitation link is valid for 7 days.</p>"
            ),
        )


mailer = MailgunMailer()


def get_mailer() -> MailgunMailer:
    return mailer
