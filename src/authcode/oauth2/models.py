# OAuth2 data models.
# Created: 2026-10-19

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Client:
    """Registered OAuth2 client."""

    client_id: str
    client_secret: str
    redirect_uris: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class ResourceOwner:
    """A user who can approve access for a client."""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class AuthorizationGrant:
    """What an authorization code stands for. Consumed exactly once."""

    client_id: str
    redirect_uri: str
    username: str


@dataclass(frozen=True)
class TokenIdentity:
    """The (client, resource owner) pair an access token authorizes."""

    client_id: str
    username: str


@dataclass(frozen=True)
class AccessToken:
    """Issued bearer token. Lives for the lifetime of the process."""

    token: str
    client_id: str
    username: str
    token_type: str = "Bearer"


@dataclass(frozen=True)
class AuthorizationRequest:
    """Validated first leg of /authorize, echoed into the login form."""

    client_id: str
    redirect_uri: str
    response_type: str
    state: str = ""
