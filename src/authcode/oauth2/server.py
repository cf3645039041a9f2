# OAuth2 Authorization Server: authorization code grant.
# Created: 2026-10-19
#
# Three operations over explicitly owned stores:
#   authorize: validate client + redirect URI, collect credentials, issue a code
#   exchange: authenticate the client, redeem the code once, issue a token
#   authenticate: resolve a bearer token for the protected resource
#
# No transport here; the FastAPI routers in authcode.api wrap these calls.

from __future__ import annotations

import logging
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from authcode.oauth2.errors import (
    InvalidClient,
    InvalidCredentials,
    InvalidGrant,
    InvalidRedirectUri,
    InvalidToken,
    MissingAuthorization,
    UnsupportedGrantType,
    UnsupportedResponseType,
)
from authcode.oauth2.models import (
    AccessToken,
    AuthorizationGrant,
    AuthorizationRequest,
    Client,
    TokenIdentity,
)
from authcode.oauth2.registry import Registry
from authcode.oauth2.storage import CodeStore, TokenStore
from authcode.oauth2.tokens import UrlSafeTokenGenerator
from authcode.security.audit import AuditLogger, AuditSeverity

logger = logging.getLogger(__name__)

RESPONSE_TYPE_CODE = "code"
GRANT_TYPE_AUTHORIZATION_CODE = "authorization_code"
TOKEN_TYPE_BEARER = "Bearer"


def append_query(url: str, params: dict[str, str]) -> str:
    """Append *params* to the query of *url*, keeping any existing parameters."""
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend(params.items())
    return urlunsplit(parts._replace(query=urlencode(query)))


def _redact(value: str) -> str:
    return f"{value[:6]}…" if len(value) > 6 else "…"


class AuthorizationServer:
    """OAuth2 authorization server for the authorization code grant."""

    def __init__(
        self,
        registry: Registry,
        codes: CodeStore | None = None,
        tokens: TokenStore | None = None,
        audit: AuditLogger | None = None,
    ):
        self.registry = registry
        self.codes = codes if codes is not None else CodeStore()
        self.tokens = tokens if tokens is not None else TokenStore()
        self.audit = audit

    # ------------------------------------------------------------------
    # Authorization endpoint
    # ------------------------------------------------------------------

    def _resolve_client(self, client_id: str, redirect_uri: str) -> Client:
        client = self.registry.find_client(client_id)
        if client is None:
            logger.info("Authorization rejected: unknown client %r", client_id)
            raise InvalidClient("Missing client")
        if redirect_uri not in client.redirect_uris:
            logger.info("Authorization rejected: unregistered redirect URI for %s", client_id)
            raise InvalidRedirectUri("Invalid client or redirect URI")
        return client

    def begin_authorization(
        self,
        client_id: str,
        redirect_uri: str,
        response_type: str,
        state: str = "",
    ) -> AuthorizationRequest:
        """First leg: validate the client and redirect URI.

        Returns the request to echo into the credential form, unchanged.
        """
        self._resolve_client(client_id, redirect_uri)
        return AuthorizationRequest(
            client_id=client_id,
            redirect_uri=redirect_uri,
            response_type=response_type,
            state=state,
        )

    def grant(
        self,
        client_id: str,
        redirect_uri: str,
        response_type: str,
        username: str,
        password: str,
        state: str = "",
    ) -> str:
        """Second leg: check credentials and issue a code.

        Returns the URL to redirect the user agent to.
        """
        # Re-validate: the form post may not have come through the first leg.
        self._resolve_client(client_id, redirect_uri)

        user = self.registry.find_user(username, password)
        if user is None:
            logger.info("Authorization rejected: bad credentials for client %s", client_id)
            self._audit(
                "login_rejected",
                client_id,
                f"user:{username}",
                status="block",
                severity=AuditSeverity.WARNING,
            )
            raise InvalidCredentials()

        if response_type != RESPONSE_TYPE_CODE:
            raise UnsupportedResponseType()

        code = self.codes.issue(
            AuthorizationGrant(
                client_id=client_id,
                redirect_uri=redirect_uri,
                username=user.username,
            )
        )
        logger.info("Authorization code issued to %s for %s", client_id, user.username)
        self._audit("code_issued", client_id, f"user:{user.username}", code=_redact(code))

        params = {"code": code}
        if state:
            params["state"] = state
        return append_query(redirect_uri, params)

    # ------------------------------------------------------------------
    # Token endpoint
    # ------------------------------------------------------------------

    def exchange(
        self,
        grant_type: str,
        code: str,
        redirect_uri: str,
        client_id: str,
        client_secret: str,
    ) -> dict[str, str]:
        """Exchange an authorization code for an access token.

        The code is redeemed before the binding check, so a request whose
        client or redirect URI does not match still consumes it.
        """
        if grant_type != GRANT_TYPE_AUTHORIZATION_CODE:
            raise UnsupportedGrantType()

        if self.registry.find_client_with_secret(client_id, client_secret) is None:
            logger.info("Token request rejected: bad client credentials for %r", client_id)
            self._audit(
                "exchange_rejected",
                client_id,
                "client",
                status="block",
                severity=AuditSeverity.WARNING,
                reason="invalid_client",
            )
            raise InvalidClient("Invalid client credentials")

        grant = self.codes.redeem(code)
        if grant is None:
            logger.info("Token request rejected: unknown or used code from %s", client_id)
            self._audit(
                "exchange_rejected",
                client_id,
                "code",
                status="block",
                severity=AuditSeverity.ALERT,
                reason="unknown_or_used_code",
            )
            raise InvalidGrant()

        if grant.client_id != client_id or grant.redirect_uri != redirect_uri:
            logger.warning(
                "Token request rejected: code issued to %s presented by %s",
                grant.client_id,
                client_id,
            )
            self._audit(
                "exchange_rejected",
                client_id,
                f"user:{grant.username}",
                status="block",
                severity=AuditSeverity.ALERT,
                reason="binding_mismatch",
            )
            raise InvalidGrant("Authorization code was not issued for this client or redirect URI")

        token = self.tokens.issue(TokenIdentity(client_id=client_id, username=grant.username))
        logger.info("Access token issued to %s for %s", client_id, grant.username)
        self._audit("token_issued", client_id, f"user:{grant.username}")
        return {"access_token": token, "token_type": TOKEN_TYPE_BEARER}

    # ------------------------------------------------------------------
    # Resource endpoint
    # ------------------------------------------------------------------

    def authenticate(self, authorization: str | None) -> AccessToken:
        """Resolve an ``Authorization: Bearer <token>`` header to its token record."""
        if not authorization:
            raise MissingAuthorization()

        scheme, _, credentials = authorization.strip().partition(" ")
        if scheme.lower() != "bearer" or not credentials.strip():
            raise InvalidToken()

        token = self.tokens.lookup(credentials.strip())
        if token is None:
            raise InvalidToken()
        return token

    def _audit(self, action: str, actor: str, target: str, **kwargs) -> None:
        if self.audit is not None:
            self.audit.log_oauth_event(action, actor, target, **kwargs)


# Singleton
_server: AuthorizationServer | None = None


def create_oauth_server(settings=None) -> AuthorizationServer:
    """Build a server wired from settings: registry, stores, audit log."""
    from authcode.config import get_settings
    from authcode.security.audit import get_audit_logger

    settings = settings or get_settings()
    generator = UrlSafeTokenGenerator(settings.token_bytes)
    return AuthorizationServer(
        registry=Registry.from_settings(settings),
        codes=CodeStore(generator, ttl=settings.code_ttl_seconds),
        tokens=TokenStore(generator),
        audit=get_audit_logger(),
    )


def get_oauth_server() -> AuthorizationServer:
    global _server
    if _server is None:
        _server = create_oauth_server()
    return _server


def reset_oauth_server() -> None:
    global _server
    _server = None
