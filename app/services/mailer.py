"""
Transactional email through the SendGrid v3 API.

Sending is best-effort: failures are logged and reported in the returned
DeliveryResult, never raised.
"""
from __future__ import annotations

import html as html_lib
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from app.core.config import settings
from app.services.delivery import DeliveryResult

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridMailer:
    def __init__(
        self,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.SENDGRID_API_KEY
        self.sender = sender or settings.SENDGRID_SENDER
        self._transport = transport

    async def send(
        self,
        to: str,
        subject: str,
        text: str,
        html: str,
        reply_to: Optional[str] = None,
    ) -> DeliveryResult:
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.sender},
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": text},
                {"type": "text/html", "value": html},
            ],
        }
        if reply_to:
            payload["reply_to"] = {"email": reply_to}
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                resp = await client.post(
                    SENDGRID_URL,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Email to %s failed: %s", to, exc)
            return DeliveryResult.failure(str(exc))
        logger.info("Email '%s' sent to %s", subject, to)
        return DeliveryResult.success()

    async def send_password_reset(self, email: str, code: str) -> DeliveryResult:
        link = f"{settings.RESET_LINK_BASE_URL}?{urlencode({'email': email, 'code': code})}"
        text = (
            "Hello,\n\n"
            "You asked to reset your MindCare password. Your verification code is "
            f"{code}, or open the link below:\n\n{link}\n\n"
            f"The code expires in {settings.RESET_CODE_TTL_MINUTES} minutes.\n\n"
            "If you did not ask for this, ignore this email.\n\n"
            "The MindCare team"
        )
        html = (
            "<p>Hello,</p>"
            "<p>You asked to reset your MindCare password. "
            f"Your verification code is <strong>{code}</strong>.</p>"
            f'<p><a href="{html_lib.escape(link)}">Reset password</a></p>'
            f"<p>The code expires in {settings.RESET_CODE_TTL_MINUTES} minutes.</p>"
            "<p>If you did not ask for this, ignore this email.</p>"
            "<p>The MindCare team</p>"
        )
        return await self.send(email, "Password reset - MindCare", text, html)

    async def send_contact(
        self,
        name: Optional[str],
        email: str,
        subject: Optional[str],
        message: str,
    ) -> DeliveryResult:
        who = f"{name} <{email}>" if name else email
        text = f"From: {who}\n\n{message}"
        html = (
            f"<p><strong>From:</strong> {html_lib.escape(who)}</p>"
            f"<p>{html_lib.escape(message)}</p>"
        )
        return await self.send(
            settings.SUPPORT_INBOX,
            f"[Support] {subject or 'Contact'}",
            text,
            html,
            reply_to=email,
        )


_mailer: Optional[SendGridMailer] = None


def get_mailer() -> SendGridMailer:
    global _mailer
    if _mailer is None:
        _mailer = SendGridMailer()
    return _mailer
