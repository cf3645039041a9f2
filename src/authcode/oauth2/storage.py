# In-memory OAuth2 code and token storage.
# Created: 2026-10-19
#
# Both stores are shared by concurrent requests. Issuance is an atomic
# insert-and-return-key and code redemption an atomic check-and-delete,
# each done under the store's lock.

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from authcode.oauth2.models import AccessToken, AuthorizationGrant, TokenIdentity
from authcode.oauth2.tokens import SecureTokenGenerator, UrlSafeTokenGenerator

logger = logging.getLogger(__name__)

DEFAULT_CODE_TTL = 600.0

# Collisions need two equal 128+ bit random strings; bail out rather than spin.
_MAX_ISSUE_ATTEMPTS = 8


class CodeStore:
    """Single-use authorization codes.

    Codes expire ``ttl`` seconds after issuance. A ``ttl`` of 0 or None keeps
    them until redeemed.
    """

    def __init__(
        self,
        generator: SecureTokenGenerator | None = None,
        ttl: float | None = DEFAULT_CODE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._generator = generator or UrlSafeTokenGenerator()
        self._ttl = ttl or None
        self._clock = clock
        self._codes: dict[str, tuple[AuthorizationGrant, float | None]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._codes)

    def __contains__(self, code: object) -> bool:
        return code in self._codes

    def issue(self, grant: AuthorizationGrant) -> str:
        """Store *grant* under a fresh code. Expired codes are pruned first."""
        now = self._clock()
        expires_at = now + self._ttl if self._ttl else None
        with self._lock:
            self._prune_locked(now)
            for _ in range(_MAX_ISSUE_ATTEMPTS):
                code = self._generator.generate()
                if code not in self._codes:
                    self._codes[code] = (grant, expires_at)
                    return code
        raise RuntimeError("Could not generate a unique authorization code")

    def redeem(self, code: str) -> AuthorizationGrant | None:
        """Look up and delete *code* in one step. Returns None if unusable."""
        with self._lock:
            entry = self._codes.pop(code, None)
        if entry is None:
            return None
        grant, expires_at = entry
        if expires_at is not None and self._clock() > expires_at:
            logger.debug("Authorization code for client %s expired", grant.client_id)
            return None
        return grant

    def cleanup_expired(self) -> int:
        """Remove expired codes. Returns count removed."""
        now = self._clock()
        with self._lock:
            return self._prune_locked(now)

    def _prune_locked(self, now: float) -> int:
        if self._ttl is None:
            return 0
        expired = [
            code
            for code, (_, expires_at) in self._codes.items()
            if expires_at is not None and now > expires_at
        ]
        for code in expired:
            del self._codes[code]
        if expired:
            logger.debug("Pruned %d expired authorization codes", len(expired))
        return len(expired)


class TokenStore:
    """Issued access tokens. No deletion path: tokens live for the process."""

    def __init__(self, generator: SecureTokenGenerator | None = None):
        self._generator = generator or UrlSafeTokenGenerator()
        self._tokens: dict[str, AccessToken] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token: object) -> bool:
        return token in self._tokens

    def issue(self, identity: TokenIdentity) -> str:
        with self._lock:
            for _ in range(_MAX_ISSUE_ATTEMPTS):
                token = self._generator.generate()
                if token not in self._tokens:
                    self._tokens[token] = AccessToken(
                        token=token,
                        client_id=identity.client_id,
                        username=identity.username,
                    )
                    return token
        raise RuntimeError("Could not generate a unique access token")

    def lookup(self, token: str) -> AccessToken | None:
        return self._tokens.get(token)
