"""FieldMap - map engine service.

Main FastAPI application.
"""

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from mapapp.config import settings
from mapapp.routers.geo import router as geo_router


def configure_logging() -> None:
    """Route loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if settings.debug else settings.log_level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging()
    logger.info(f"{settings.app_name} map engine starting")
    logger.info(
        f"Navigation timeout {settings.navigation_timeout_s:g}s, "
        f"padding {settings.extent_padding_ratio:.0%}, "
        f"strict edges {'on' if settings.containment_strict_edges else 'off'}"
    )
    yield
    logger.info(f"{settings.app_name} map engine stopped")


app = FastAPI(
    title=settings.app_name,
    description="Coordinate normalization and map navigation engine",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(geo_router)


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.app_name}
