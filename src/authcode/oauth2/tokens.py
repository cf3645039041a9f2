# Opaque identifier generation for codes, tokens and client state.
# Created: 2026-10-19

from __future__ import annotations

import secrets
from typing import Protocol, runtime_checkable

# 16 bytes = 128 bits, the floor for anything used as a bearer secret.
MIN_TOKEN_BYTES = 16
DEFAULT_TOKEN_BYTES = 32


@runtime_checkable
class SecureTokenGenerator(Protocol):
    """Produces fixed-length, high-entropy, URL-safe strings."""

    def generate(self) -> str: ...


class UrlSafeTokenGenerator:
    """``secrets.token_urlsafe`` with a configurable byte length."""

    def __init__(self, nbytes: int = DEFAULT_TOKEN_BYTES):
        if nbytes < MIN_TOKEN_BYTES:
            raise ValueError(f"nbytes must be at least {MIN_TOKEN_BYTES}, got {nbytes}")
        self.nbytes = nbytes

    def generate(self) -> str:
        return secrets.token_urlsafe(self.nbytes)
