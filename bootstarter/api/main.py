"""
FastAPI app assembly: logging, OpenAPI metadata and versioned router wiring.
"""
import logging
from typing import Iterable, Optional

from fastapi import APIRouter, FastAPI

from bootstarter.utils.settings import BootstarterSettings, get_settings

logger = logging.getLogger(__name__)


def configure_logging(level_name: str) -> int:
    level_name = (level_name or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level)
    logger.setLevel(level)
    return level


def create_app(
    routers: Iterable[APIRouter],
    *,
    settings: Optional[BootstarterSettings] = None,
) -> FastAPI:
    """Build the application and mount every router once per API version.

    With ``API_VERSIONS=1,2`` a router with prefix ``/products`` answers on
    ``/v1/products`` and ``/v2/products``.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    logger.info("app_startup: log_level=%s", settings.log_level.upper())

    metadata = {
        "title": settings.api_title,
        "description": settings.api_description,
        "version": settings.api_version,
    }
    if settings.contact:
        metadata["contact"] = settings.contact
    app = FastAPI(**metadata)

    # Avoid implicit trailing-slash redirects for predictable URLs
    app.router.redirect_slashes = False

    routers = list(routers)
    for version in settings.api_versions:
        for router in routers:
            app.include_router(router, prefix=f"/v{version}")
    logger.info(
        "app_routes: routers=%d versions=%s", len(routers), ",".join(settings.api_versions)
    )

    @app.get("/versions", tags=["meta"])
    def get_versions():
        return {
            "api_version": settings.api_version,
            "versions": [f"v{version}" for version in settings.api_versions],
        }

    return app


__all__ = ["create_app", "configure_logging"]
