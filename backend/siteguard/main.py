"""
SiteGuard API application
"""
import logging

from fastapi import FastAPI

from siteguard import __version__
from siteguard.api import router as scans_router
from siteguard.core.config import settings
from siteguard.middleware import setup_middleware

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    application = FastAPI(
        title="SiteGuard",
        description="Website security posture scanner",
        version=__version__,
    )
    setup_middleware(application)
    application.include_router(scans_router)

    @application.get("/health", tags=["Health"])
    async def health():
        return {"status": "healthy", "version": __version__}

    return application


app = create_app()
