# Authorization server HTTP layer.
# Created: 2026-10-19
#
# mount_routers(app) registers the provider routers at the application root.

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

# Routers are imported inside mount_routers() to keep `import authcode.api` light.
_ROUTERS: list[tuple[str, str, str]] = [
    # (module_path, attr_name, tag)
    ("authcode.api.oauth2", "router", "OAuth2"),
    ("authcode.api.health", "router", "Health"),
]


def mount_routers(app: FastAPI) -> None:
    """Mount all provider routers on *app*."""
    from fastapi import APIRouter

    for module_path, attr_name, tag in _ROUTERS:
        mod = importlib.import_module(module_path)
        router: APIRouter = getattr(mod, attr_name)
        app.include_router(router)
        logger.debug("Mounted router: %s (%s)", module_path, tag)
