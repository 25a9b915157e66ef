"""
FastAPI application entry point for the gallery backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gallery import __version__
from gallery.config import Settings, get_settings
from gallery.dependencies import init_dependencies, shutdown_dependencies
from gallery.exceptions import GalleryException
from gallery.logging_config import configure_logging
from gallery.routes import router

logger = logging.getLogger(__name__)


async def gallery_exception_handler(
    request: Request, exc: GalleryException
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc.__cause__ or exc,
        )
    else:
        logger.warning(
            "%s %s rejected: %s (%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.details,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        init_dependencies(settings)
        logger.info(
            "Gallery backend v%s serving on http://%s:%d",
            __version__,
            settings.host,
            settings.port,
        )
        yield
        logger.info("Shutting down gallery backend")
        shutdown_dependencies()

    app = FastAPI(title="Gallery Backend", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(GalleryException, gallery_exception_handler)
    app.include_router(router)
    return app


app = create_app()
