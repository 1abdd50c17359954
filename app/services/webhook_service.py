"""
Relay of CRM events to the configured GoHighLevel webhook.

``WebhookRelay.forward`` is a transparent proxy: it posts the payload as JSON
and hands back the upstream status and body untouched. The ``notify_*``
helpers build the funnel event payloads on top of it. Lead and customer
notifications are fire-and-forget, payout notification raises so the caller
can refuse to mark the client paid.
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.models.client import Client
from app.services.payout_service import payout_amount


log = get_logger(__name__)

WEBHOOK_URL_SETTING = "GHL_WEBHOOK_URL"


class WebhookError(Exception):
    pass


class WebhookNotConfigured(WebhookError):
    def __init__(self):
        super().__init__(f"{WEBHOOK_URL_SETTING} not configured")


class WebhookUnreachable(WebhookError):
    pass


class WebhookRejected(WebhookError):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"GHL webhook returned status {status_code}")


@dataclass(frozen=True)
class RelayResponse:
    status_code: int
    body: str
    content_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class WebhookRelay:
    def __init__(
        self,
        url: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.url)

    def forward(self, payload: Any) -> RelayResponse:
        if not self.url:
            raise WebhookNotConfigured()

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as http:
                response = http.post(
                    self.url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as exc:
            log.error("GHL webhook proxy error: %s", exc)
            raise WebhookUnreachable(str(exc)) from exc

        return RelayResponse(
            status_code=response.status_code,
            body=response.text,
            content_type=response.headers.get("content-type"),
        )

    # ---------------- FUNNEL EVENTS ----------------

    def notify_lead(self, client: Client, fingerprint: Optional[str] = None) -> bool:
        payload = {
            "event": "new_lead",
            "email": client.email,
            "name": client.name,
            "va_name": client.va_name,
            "hire_type": client.hire_type,
            "affiliate_id": client.affiliate_id,
            "am_fingerprint": fingerprint,
        }
        return self._notify_quietly(payload)

    def notify_customer(self, client: Client) -> bool:
        payload = {
            "event": "customer",
            "email": client.email,
            "name": client.name,
            "affiliate_id": client.affiliate_id,
            "status": "hired",
        }
        return self._notify_quietly(payload)

    def notify_payout(self, client: Client) -> RelayResponse:
        payload = {
            "event": "payout",
            "email": client.email,
            "name": client.name,
            "affiliate_id": client.affiliate_id,
            "hire_type": client.hire_type,
            "payout_amount": payout_amount(client.hire_type),
            "status": "paid",
        }
        result = self.forward(payload)
        if not result.ok:
            raise WebhookRejected(result.status_code, result.body)
        return result

    def _notify_quietly(self, payload: dict) -> bool:
        try:
            result = self.forward(payload)
        except WebhookError as exc:
            log.warning("GHL %s notification skipped: %s", payload["event"], exc)
            return False

        if not result.ok:
            log.warning(
                "GHL %s notification returned status %s",
                payload["event"],
                result.status_code,
            )
            return False
        return True


def get_webhook_relay() -> WebhookRelay:
    return WebhookRelay(settings.GHL_WEBHOOK_URL, timeout=settings.WEBHOOK_TIMEOUT_SECONDS)
