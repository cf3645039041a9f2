"""Authorization server application for ``authcode serve``.

Builds the FastAPI app with the OAuth2 routers mounted at the root
(``/authorize``, ``/token``, ``/resource``) plus ``/health``, and runs it
under uvicorn.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def create_api_app():
    """Build the authorization server FastAPI application."""
    from fastapi import FastAPI

    from authcode.api import mount_routers
    from authcode.oauth2.server import get_oauth_server

    app = FastAPI(
        title="authcode provider",
        description="OAuth2 authorization code grant: authorize, token, protected resource.",
        version="0.1.0",
    )

    # Build the registry and stores at startup so bad seed data fails fast.
    server = get_oauth_server()
    logger.info(
        "Authorization server ready: %d clients, %d users",
        len(server.registry.clients),
        len(server.registry.users),
    )

    mount_routers(app)
    return app


def run_api_server(
    host: str = "127.0.0.1",
    port: int = 3000,
    dev: bool = False,
) -> None:
    """Start the authorization server."""
    import uvicorn

    logger.info("OAuth 2.0 provider listening at http://%s:%d", host, port)

    if dev:
        import pathlib

        src_dir = str(pathlib.Path(__file__).resolve().parent.parent)
        uvicorn.run(
            "authcode.api.serve:create_api_app",
            factory=True,
            host=host,
            port=port,
            reload=True,
            reload_dirs=[src_dir],
            reload_includes=["*.py"],
            log_level="debug",
        )
    else:
        app = create_api_app()
        uvicorn.run(app, host=host, port=port)
