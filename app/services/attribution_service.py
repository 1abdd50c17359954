"""
Referral attribution.

Every page load re-derives attribution from the query string
(``?am_id=<token>&am_fingerprint=<token>``) and overwrites what the browser
had stored, so the most recent visit wins and a direct visit clears it.
Storage sits behind the ``AttributionStorage`` port; the web layer plugs in
``CookieAttributionStorage``.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

from starlette.requests import Request
from starlette.responses import Response


AFFILIATE_KEY = "am_id"
FINGERPRINT_KEY = "am_fingerprint"


@dataclass(frozen=True)
class AttributionState:
    affiliate_id: Optional[str] = None
    fingerprint: Optional[str] = None


class AttributionStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self, key: str) -> None: ...


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def capture(query_params: Mapping[str, str]) -> AttributionState:
    return AttributionState(
        affiliate_id=_clean(query_params.get(AFFILIATE_KEY)),
        fingerprint=_clean(query_params.get(FINGERPRINT_KEY)),
    )


def persist(state: AttributionState, storage: AttributionStorage) -> None:
    for key, value in (
        (AFFILIATE_KEY, state.affiliate_id),
        (FINGERPRINT_KEY, state.fingerprint),
    ):
        if value:
            storage.set(key, value)
        else:
            storage.clear(key)


def load(storage: AttributionStorage) -> AttributionState:
    return AttributionState(
        affiliate_id=_clean(storage.get(AFFILIATE_KEY)),
        fingerprint=_clean(storage.get(FINGERPRINT_KEY)),
    )


class CookieAttributionStorage:
    """Reads from the incoming request, writes to the outgoing response.

    Cookies are scoped to a single canonical domain (host-only when none is
    configured). Reads reflect writes made through the same instance.
    """

    def __init__(
        self,
        request: Request,
        response: Optional[Response] = None,
        domain: Optional[str] = None,
        max_age_days: int = 30,
    ):
        self.request = request
        self.response = response
        self.domain = domain
        self.max_age = max_age_days * 24 * 60 * 60
        self._pending: dict = {}

    def get(self, key: str) -> Optional[str]:
        if key in self._pending:
            return self._pending[key]
        return self.request.cookies.get(key)

    def set(self, key: str, value: str) -> None:
        self._pending[key] = value
        if self.response is not None:
            self.response.set_cookie(
                key,
                value,
                max_age=self.max_age,
                path="/",
                domain=self.domain,
                samesite="lax",
            )

    def clear(self, key: str) -> None:
        self._pending[key] = None
        if self.response is not None:
            self.response.delete_cookie(key, path="/", domain=self.domain, samesite="lax")
