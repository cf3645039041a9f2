# OAuth2 router: authorize, token, protected resource.
# Created: 2026-10-19

from __future__ import annotations

import html
import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from authcode.api.schemas.oauth2 import ErrorResponse, ResourceResponse, TokenResponse
from authcode.oauth2.errors import OAuthError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["OAuth2"])

_LOGIN_HTML = """<!DOCTYPE html>
<html><head><title>Login</title>
<style>
body {{ font-family: system-ui; max-width: 420px; margin: 40px auto; padding: 20px; }}
label {{ display: block; margin: 12px 0 4px; }}
input[type=text], input[type=password] {{ width: 100%; padding: 8px; box-sizing: border-box; }}
button {{ margin-top: 16px; padding: 10px 24px; border: none; border-radius: 6px;
  background: #2563eb; color: white; font-size: 16px; cursor: pointer; }}
</style></head><body>
<h2>Login</h2>
<p>Sign in to authorize <strong>{client_id}</strong>.</p>
<form method="POST" action="/authorize">
<input type="hidden" name="client_id" value="{client_id}">
<input type="hidden" name="redirect_uri" value="{redirect_uri}">
<input type="hidden" name="response_type" value="{response_type}">
<input type="hidden" name="state" value="{state}">
<label>Username <input type="text" name="username" autocomplete="username"></label>
<label>Password <input type="password" name="password" autocomplete="current-password"></label>
<button type="submit">Authorize</button>
</form></body></html>"""

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
}


def _error_response(exc: OAuthError) -> JSONResponse:
    headers = None
    if exc.status_code == 401:
        headers = {"WWW-Authenticate": f'Bearer error="{exc.error}"'}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def _server():
    from authcode.oauth2.server import get_oauth_server

    return get_oauth_server()


@router.get("/authorize", response_class=HTMLResponse, responses=_ERROR_RESPONSES)
async def authorize(
    client_id: str = Query(""),
    redirect_uri: str = Query(""),
    response_type: str = Query(""),
    state: str = Query(""),
):
    """Validate the client and show the resource-owner login form."""
    try:
        auth_request = _server().begin_authorization(
            client_id=client_id,
            redirect_uri=redirect_uri,
            response_type=response_type,
            state=state,
        )
    except OAuthError as exc:
        return _error_response(exc)

    page = _LOGIN_HTML.format(
        client_id=html.escape(auth_request.client_id),
        redirect_uri=html.escape(auth_request.redirect_uri),
        response_type=html.escape(auth_request.response_type),
        state=html.escape(auth_request.state),
    )
    return HTMLResponse(page)


@router.post("/authorize", responses=_ERROR_RESPONSES)
async def authorize_submit(request: Request):
    """Check submitted credentials and redirect back to the client with a code."""
    form = await request.form()
    try:
        location = _server().grant(
            client_id=str(form.get("client_id", "")),
            redirect_uri=str(form.get("redirect_uri", "")),
            response_type=str(form.get("response_type", "")),
            username=str(form.get("username", "")),
            password=str(form.get("password", "")),
            state=str(form.get("state", "")),
        )
    except OAuthError as exc:
        return _error_response(exc)
    return RedirectResponse(location, status_code=302)


@router.post("/token", response_model=TokenResponse, responses=_ERROR_RESPONSES)
async def token_exchange(request: Request):
    """Exchange an authorization code for an access token (form-encoded body)."""
    form = await request.form()
    try:
        result = _server().exchange(
            grant_type=str(form.get("grant_type", "")),
            code=str(form.get("code", "")),
            redirect_uri=str(form.get("redirect_uri", "")),
            client_id=str(form.get("client_id", "")),
            client_secret=str(form.get("client_secret", "")),
        )
    except OAuthError as exc:
        return _error_response(exc)
    return JSONResponse(result, headers={"Cache-Control": "no-store", "Pragma": "no-cache"})


@router.get("/resource", response_model=ResourceResponse, responses=_ERROR_RESPONSES)
async def protected_resource(request: Request):
    """Return the protected payload for the resource owner behind the bearer token."""
    try:
        token = _server().authenticate(request.headers.get("Authorization"))
    except OAuthError as exc:
        logger.info("Resource request rejected: %s", exc.error)
        return _error_response(exc)
    return ResourceResponse(message=f"Hello, {token.username}! This is your protected resource.")
