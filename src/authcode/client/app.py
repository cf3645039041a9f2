# Client application: link page and OAuth callback.
# Created: 2026-10-19

from __future__ import annotations

import html
import logging

from fastapi import APIRouter, FastAPI, Query
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from authcode.client.driver import ClientFlowError, OAuthClientDriver, ProviderError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Client"])

_LINK_HTML = """<!DOCTYPE html>
<html><head><title>authcode client</title></head><body>
<a href="{auth_url}">Login with OAuth Provider</a>
</body></html>"""

# Singleton
_driver: OAuthClientDriver | None = None


def get_client_driver() -> OAuthClientDriver:
    global _driver
    if _driver is None:
        from authcode.config import get_settings

        _driver = OAuthClientDriver.from_settings(get_settings())
    return _driver


def reset_client_driver() -> None:
    global _driver
    _driver = None


@router.get("/", response_class=HTMLResponse)
async def index():
    """Start the flow: a link to the provider carrying a fresh state."""
    driver = get_client_driver()
    auth_url = driver.authorization_url(driver.issue_state())
    return HTMLResponse(_LINK_HTML.format(auth_url=html.escape(auth_url)))


@router.get("/callback")
async def callback(
    code: str | None = Query(None),
    state: str | None = Query(None),
    error: str | None = Query(None),
):
    """Receive the code, exchange it, and show the protected resource."""
    if error:
        return PlainTextResponse(f"Authorization failed: {error}", status_code=400)
    if not code or not state:
        return PlainTextResponse("Missing code or state in query parameters", status_code=400)

    try:
        resource = await get_client_driver().complete(code, state)
    except ProviderError:
        logger.exception("OAuth flow failed")
        return PlainTextResponse("An error occurred", status_code=500)
    except ClientFlowError as exc:
        return PlainTextResponse(str(exc), status_code=exc.status_code)
    return JSONResponse(resource)


def create_client_app() -> FastAPI:
    app = FastAPI(title="authcode client", version="0.1.0")
    app.include_router(router)
    return app


def run_client_app(host: str = "127.0.0.1", port: int = 4000, dev: bool = False) -> None:
    """Start the client application."""
    import uvicorn

    logger.info("Client app listening at http://%s:%d", host, port)
    if dev:
        uvicorn.run(
            "authcode.client.app:create_client_app",
            factory=True,
            host=host,
            port=port,
            reload=True,
            log_level="debug",
        )
    else:
        uvicorn.run(create_client_app(), host=host, port=port)
