# Shared fixtures.
# Created: 2026-10-19

import itertools
import os

import pytest

from authcode.client.app import reset_client_driver
from authcode.config import get_settings
from authcode.oauth2.server import reset_oauth_server
from authcode.security.audit import reset_audit_logger

CLIENT_ID = "abc123"
CLIENT_SECRET = "sooper-secret"
REDIRECT_URI = "http://localhost:4000/callback"
USERNAME = "alice"
PASSWORD = "password123"


class CountingGenerator:
    """Deterministic stand-in for the secure token generator."""

    def __init__(self, prefix: str = "tok"):
        self.prefix = prefix
        self._counter = itertools.count(1)

    def generate(self) -> str:
        return f"{self.prefix}-{next(self._counter):04d}"


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Keep config, audit log and singletons out of the real home directory."""
    for key in list(os.environ):
        if key.startswith("AUTHCODE_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("AUTHCODE_CONFIG_DIR", str(tmp_path / "config"))
    get_settings.cache_clear()
    reset_oauth_server()
    reset_audit_logger()
    reset_client_driver()
    yield
    get_settings.cache_clear()
    reset_oauth_server()
    reset_audit_logger()
    reset_client_driver()


@pytest.fixture
def clock():
    return FakeClock()
