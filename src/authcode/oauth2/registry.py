# Static registry of OAuth2 clients and resource owners.
# Created: 2026-10-19
#
# Read-only after construction. Lookups are linear over a small set.

from __future__ import annotations

import hmac
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from authcode.oauth2.models import Client, ResourceOwner

if TYPE_CHECKING:
    from authcode.config import Settings

logger = logging.getLogger(__name__)


class RegistryError(ValueError):
    """Raised when registry seed data is inconsistent."""


def _same(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode(), b.encode())


class Registry:
    """Registered clients and resource-owner credentials."""

    def __init__(self, clients: Iterable[Client] = (), users: Iterable[ResourceOwner] = ()):
        self._clients: tuple[Client, ...] = tuple(clients)
        self._users: tuple[ResourceOwner, ...] = tuple(users)
        self._check_unique("client_id", [c.client_id for c in self._clients])
        self._check_unique("username", [u.username for u in self._users])
        for client in self._clients:
            if not client.redirect_uris:
                raise RegistryError(f"Client {client.client_id!r} has no redirect URIs")

    @staticmethod
    def _check_unique(field_name: str, values: list[str]) -> None:
        seen: set[str] = set()
        for value in values:
            if value in seen:
                raise RegistryError(f"Duplicate {field_name}: {value!r}")
            seen.add(value)

    @classmethod
    def from_settings(cls, settings: Settings) -> Registry:
        registry = cls(
            clients=[
                Client(
                    client_id=c.client_id,
                    client_secret=c.client_secret,
                    redirect_uris=frozenset(c.redirect_uris),
                )
                for c in settings.clients
            ],
            users=[ResourceOwner(username=u.username, password=u.password) for u in settings.users],
        )
        logger.debug(
            "Registry loaded: %d clients, %d users", len(registry.clients), len(registry.users)
        )
        return registry

    @property
    def clients(self) -> tuple[Client, ...]:
        return self._clients

    @property
    def users(self) -> tuple[ResourceOwner, ...]:
        return self._users

    def find_client(self, client_id: str) -> Client | None:
        for client in self._clients:
            if client.client_id == client_id:
                return client
        return None

    def find_client_with_secret(self, client_id: str, client_secret: str) -> Client | None:
        client = self.find_client(client_id)
        if client is None or not _same(client.client_secret, client_secret):
            return None
        return client

    def find_user(self, username: str, password: str) -> ResourceOwner | None:
        for user in self._users:
            if user.username == username:
                return user if _same(user.password, password) else None
        return None
