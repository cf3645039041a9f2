# OAuth2 error taxonomy.
# Created: 2026-10-19
#
# Every failure is a client-input error surfaced as a 4xx. Nothing here is
# retried server-side.

from __future__ import annotations


class OAuthError(Exception):
    """Base class for protocol failures."""

    error: str = "invalid_request"
    status_code: int = 400
    description: str = "Invalid request"

    def __init__(self, description: str | None = None):
        if description is not None:
            self.description = description
        super().__init__(self.description)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "detail": self.description}


class InvalidClient(OAuthError):
    error = "invalid_client"
    description = "Unknown client or bad client credentials"


class InvalidRedirectUri(OAuthError):
    error = "invalid_redirect_uri"
    description = "Redirect URI is not registered for this client"


class InvalidCredentials(OAuthError):
    error = "invalid_credentials"
    description = "Invalid username or password"


class UnsupportedResponseType(OAuthError):
    error = "unsupported_response_type"
    description = "Unsupported response type"


class UnsupportedGrantType(OAuthError):
    error = "unsupported_grant_type"
    description = "Unsupported grant type"


class InvalidGrant(OAuthError):
    """Bad, expired, already used, or mismatched authorization code."""

    error = "invalid_grant"
    description = "Invalid authorization code"


class MissingAuthorization(OAuthError):
    error = "missing_authorization"
    status_code = 401
    description = "Missing Authorization header"


class InvalidToken(OAuthError):
    error = "invalid_token"
    status_code = 401
    description = "Invalid access token"
