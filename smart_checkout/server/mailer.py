"""
MODULE OVERVIEW:
Receipt delivery through an HTTP mail provider.

WHAT IS HAPPENING HERE:
Most transactional mail providers (SendGrid, Postmark, Mailgun...) accept a JSON POST
with a bearer key. We shape the payload like SendGrid's v3 API. Every failure, including
a provider that was never configured, surfaces as `ReceiptDeliveryError` so the payment
route can answer 500 without knowing anything about HTTP.
"""

import httpx
from loguru import logger

from smart_checkout.shared.errors import ReceiptDeliveryError


class ReceiptMailer:
    def __init__(
        self,
        api_url: str | None,
        api_key: str | None,
        sender: str | None,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.timeout_s = timeout_s
        # Tests inject an httpx.MockTransport here
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_url and self.api_key and self.sender)

    async def send(self, to: str, subject: str, html: str) -> None:
        if not self.configured:
            raise ReceiptDeliveryError("Email provider not configured")

        payload = {
            "from": {"email": self.sender},
            "personalizations": [{"to": [{"email": to}], "subject": subject}],
            "content": [{"type": "text/html", "value": html}],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                resp = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ReceiptDeliveryError(f"Email provider unreachable: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise ReceiptDeliveryError(f"Email send failed {resp.status_code}: {resp.text[:200]}")

        logger.info(f"receipt sent to={to}")
