"""
Static asset delegate.

Everything outside the API prefix (including "/") is handed to Starlette's
StaticFiles, which serves index.html for directory paths. Without a
configured directory those paths answer 404.
"""

import logging

from fastapi import FastAPI, status
from fastapi.staticfiles import StaticFiles

from .config import Settings
from .errors import RoutingError

logger = logging.getLogger(__name__)


def mount_static(app: FastAPI, settings: Settings) -> None:
    """
    Attach the static asset collaborator to the application.

    Must run after the API routes are included: the mount at "/" matches
    every path, so it has to come last.
    """
    if settings.STATIC_DIR is not None:
        logger.info("Serving static assets", extra={"static_dir": str(settings.STATIC_DIR)})
        app.mount(
            "/",
            StaticFiles(directory=settings.STATIC_DIR, html=True),
            name="static",
        )
        return

    @app.get("/{path:path}", include_in_schema=False)
    async def static_not_configured(path: str):
        raise RoutingError(status.HTTP_404_NOT_FOUND, "Not Found")
