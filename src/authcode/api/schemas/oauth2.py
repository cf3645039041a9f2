# OAuth2 schemas.
# Created: 2026-10-19

from __future__ import annotations

from pydantic import BaseModel


class TokenResponse(BaseModel):
    """Token endpoint success response."""

    access_token: str
    token_type: str = "Bearer"


class ResourceResponse(BaseModel):
    """Protected resource payload."""

    message: str


class ErrorResponse(BaseModel):
    """Error envelope for every 4xx the provider returns."""

    error: str
    detail: str


class HealthResponse(BaseModel):
    status: str = "ok"
    clients: int
    pending_codes: int
    issued_tokens: int
