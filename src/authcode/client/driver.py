# OAuth client driver: authorization code flow against the authcode provider.
# Created: 2026-10-19
#
# Issues and verifies anti-forgery state, builds the authorization URL,
# exchanges the code for a token, then calls the protected resource.

from __future__ import annotations

import logging
import threading
import time
import urllib.parse
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx

from authcode.oauth2.tokens import SecureTokenGenerator, UrlSafeTokenGenerator

if TYPE_CHECKING:
    from authcode.config import Settings

logger = logging.getLogger(__name__)


class ClientFlowError(Exception):
    """Base class for client-side flow failures."""

    status_code: int = 500


class InvalidState(ClientFlowError):
    """Callback carried a state this client never issued, or already used."""

    status_code = 400


class ProviderError(ClientFlowError):
    """The provider answered non-2xx, or could not be reached."""

    status_code = 500


class StateStore:
    """Single-use anti-forgery state values with a TTL."""

    def __init__(
        self,
        generator: SecureTokenGenerator | None = None,
        ttl: float | None = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._generator = generator or UrlSafeTokenGenerator()
        self._ttl = ttl or None
        self._clock = clock
        self._states: dict[str, float | None] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._states)

    def issue(self) -> str:
        """Remember a fresh state. Expired states are pruned first."""
        state = self._generator.generate()
        now = self._clock()
        expires_at = now + self._ttl if self._ttl else None
        with self._lock:
            if self._ttl:
                expired = [s for s, exp in self._states.items() if exp is not None and now > exp]
                for s in expired:
                    del self._states[s]
            self._states[state] = expires_at
        return state

    def consume(self, state: str) -> bool:
        """Return True exactly once for a live state issued by this store."""
        with self._lock:
            if state not in self._states:
                return False
            expires_at = self._states.pop(state)
        return expires_at is None or self._clock() <= expires_at


class OAuthClientDriver:
    """Drives the authorization code grant for one registered client.

    Args:
        provider_url: Base URL of the authorization server.
        client_id: This client's id.
        client_secret: This client's secret.
        redirect_uri: Callback registered with the provider.
        timeout: Deadline (seconds) for each provider call.
        states: State store; a fresh one is created if omitted.
        transport: Optional httpx transport, e.g. ``httpx.ASGITransport`` in tests.
    """

    def __init__(
        self,
        provider_url: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 15.0,
        states: StateStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.provider_url = provider_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self.states = states if states is not None else StateStore()
        self._transport = transport

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> OAuthClientDriver:
        return cls(
            provider_url=settings.provider_url,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            redirect_uri=settings.client_redirect_uri,
            timeout=settings.http_timeout,
            states=StateStore(
                UrlSafeTokenGenerator(settings.token_bytes),
                ttl=settings.state_ttl_seconds,
            ),
        )

    def issue_state(self) -> str:
        return self.states.issue()

    def consume_state(self, state: str) -> bool:
        return self.states.consume(state)

    def authorization_url(self, state: str) -> str:
        """Provider /authorize URL to send the user agent to."""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": state,
        }
        return f"{self.provider_url}/authorize?{urllib.parse.urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for an access token."""
        try:
            async with self._http() as client:
                resp = await client.post(
                    f"{self.provider_url}/token",
                    data={
                        "grant_type": "authorization_code",
                        "code": code,
                        "redirect_uri": self.redirect_uri,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                    },
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Token exchange failed: %s", exc)
            raise ProviderError(f"Token exchange failed: {exc}") from exc

        access_token = data.get("access_token")
        if not access_token:
            raise ProviderError("Token response did not include an access_token")
        logger.info("Obtained access token for client %s", self.client_id)
        return access_token

    async def fetch_resource(self, access_token: str) -> dict[str, Any]:
        """Call the protected resource with the bearer token."""
        try:
            async with self._http() as client:
                resp = await client.get(
                    f"{self.provider_url}/resource",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Resource request failed: %s", exc)
            raise ProviderError(f"Resource request failed: {exc}") from exc

    async def complete(self, code: str, state: str) -> dict[str, Any]:
        """Finish the flow from a callback: verify state, exchange, fetch."""
        if not self.consume_state(state):
            raise InvalidState("Invalid state parameter")
        access_token = await self.exchange_code(code)
        return await self.fetch_resource(access_token)
