"""
Transactional email client for the Resend HTTP API.
"""

from __future__ import annotations

import logging

import httpx

from core.http_errors import response_error_message

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class EmailError(Exception):
    """Raised when the email provider rejects or fails a send."""


class EmailClient:
    """Sends one HTML email per call. No retries."""

    def __init__(self, client: httpx.AsyncClient, api_key: str, api_url: str = RESEND_API_URL):
        self._client = client
        self.api_url = api_url
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def send(self, sender: str, to: list[str], subject: str, html: str) -> str:
        """Send the email and return the provider's message id."""
        payload = {"from": sender, "to": to, "subject": subject, "html": html}

        try:
            resp = await self._client.post(self.api_url, json=payload, headers=self._headers)
        except httpx.HTTPError as exc:
            logger.error("Email send to %s failed: %s", ", ".join(to), exc)
            raise EmailError(str(exc) or exc.__class__.__name__) from exc

        if resp.is_error:
            message = response_error_message(resp)
            logger.error("Email provider returned %d: %s", resp.status_code, message)
            raise EmailError(message)

        try:
            message_id = str(resp.json().get("id", ""))
        except (ValueError, AttributeError):
            message_id = ""
        logger.info("Email '%s' sent to %s (id=%s)", subject, ", ".join(to), message_id or "?")
        return message_id
