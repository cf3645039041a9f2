# Health router.
# Created: 2026-10-19

from __future__ import annotations

from fastapi import APIRouter

from authcode.api.schemas.oauth2 import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health():
    """Liveness plus store sizes."""
    from authcode.oauth2.server import get_oauth_server

    server = get_oauth_server()
    return HealthResponse(
        clients=len(server.registry.clients),
        pending_codes=len(server.codes),
        issued_tokens=len(server.tokens),
    )
