"""WhatsApp gateway client.

Sends one text message per call through the WhatsApp Cloud API
(``POST {api_url}/{phone_number_id}/messages``) using ``httpx``.

Every provider failure mode (auth, invalid destination, rate limit, other
HTTP errors, transport errors, timeouts) is normalized into
``SendResult(success=False, error=...)``.  Nothing here retries and no
state is kept between calls, so the same arguments can be sent again
safely.

Safety: destination numbers and message bodies are never logged.
"""
from __future__ import annotations

import logging
from typing import Protocol

import httpx

from app.core.settings import Settings, get_settings
from app.normalization.phone_normalizer import to_whatsapp_id
from app.notification.models import Channel, ChannelType, SendResult

logger = logging.getLogger(__name__)

_STATUS_REASONS: dict[int, str] = {
    400: "invalid request or destination",
    401: "authentication failed",
    403: "not permitted to message this destination",
    404: "unknown sender phone number id",
    429: "rate limited by provider",
}


class MessageSender(Protocol):
    def is_configured(self) -> bool:
        ...

    def send(self, destination: Channel, message: str) -> SendResult:
        ...


def _provider_error_text(response: httpx.Response) -> str:
    """Best-effort extraction of the provider's error message."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return ""


# ---------------------------------------------------------------------------
# WhatsAppSender
# ---------------------------------------------------------------------------

class WhatsAppSender:
    """Synchronous client for the WhatsApp Cloud API.

    Parameters
    ----------
    api_url:
        Graph API base URL.  Defaults to ``settings.whatsapp_api_url``.
    phone_number_id:
        Sender phone number id.  Defaults to
        ``settings.whatsapp_phone_number_id``.
    access_token:
        Bearer token.  Defaults to ``settings.whatsapp_access_token``.
    timeout_s:
        Per-request timeout in seconds.  Defaults to
        ``settings.whatsapp_timeout_s``.
    """

    def __init__(
        self,
        *,
        api_url: str | None = None,
        phone_number_id: str | None = None,
        access_token: str | None = None,
        timeout_s: float | None = None,
    ) -> None:
        settings = get_settings()
        self.api_url = (api_url or settings.whatsapp_api_url).rstrip("/")
        self.phone_number_id = phone_number_id or settings.whatsapp_phone_number_id
        self.access_token = access_token or settings.whatsapp_access_token
        self.timeout_s = timeout_s if timeout_s is not None else settings.whatsapp_timeout_s

    def is_configured(self) -> bool:
        return bool(self.phone_number_id and self.access_token)

    def send(self, destination: Channel, message: str) -> SendResult:
        """Send *message* to *destination* and report the outcome. Never raises."""
        if destination.channel_type is not ChannelType.WHATSAPP:
            return SendResult(success=False, error=f"Unsupported channel {destination.channel_type}")
        if not self.is_configured():
            return SendResult(success=False, error="WhatsApp gateway is not configured")

        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to_whatsapp_id(destination.destination),
            "type": "text",
            "text": {"preview_url": False, "body": message},
        }
        try:
            response = httpx.post(
                f"{self.api_url}/{self.phone_number_id}/messages",
                json=payload,
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=self.timeout_s,
            )
        except httpx.TimeoutException:
            logger.warning("WhatsApp send timed out after %ss", self.timeout_s)
            return SendResult(success=False, error=f"timeout: no response after {self.timeout_s}s")
        except httpx.HTTPError as exc:
            logger.warning("WhatsApp transport error: %s", exc.__class__.__name__)
            return SendResult(success=False, error=f"transport error: {exc}")

        if response.is_success:
            return SendResult(success=True)

        reason = _STATUS_REASONS.get(response.status_code, f"HTTP {response.status_code}")
        detail = _provider_error_text(response)
        logger.warning("WhatsApp send rejected: status=%d", response.status_code)
        return SendResult(success=False, error=f"{reason}: {detail}" if detail else reason)


# ---------------------------------------------------------------------------
# DryRunWhatsAppSender
# ---------------------------------------------------------------------------

class DryRunWhatsAppSender:
    """Gateway that never sends anything and always reports success."""

    def is_configured(self) -> bool:
        return True

    def send(self, destination: Channel, message: str) -> SendResult:
        logger.info("DRY_RUN: %s message simulated (%d chars)", destination.channel_type, len(message))
        return SendResult(success=True)


def build_sender(settings: Settings | None = None) -> MessageSender:
    """Return the sender selected by configuration."""
    settings = settings or get_settings()
    if settings.whatsapp_dry_run:
        return DryRunWhatsAppSender()
    return WhatsAppSender(
        api_url=settings.whatsapp_api_url,
        phone_number_id=settings.whatsapp_phone_number_id,
        access_token=settings.whatsapp_access_token,
        timeout_s=settings.whatsapp_timeout_s,
    )
