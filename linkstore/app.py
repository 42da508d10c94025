"""
FastAPI application entry point for the link storage service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linkstore.config import Settings, get_settings
from linkstore.dependencies import StorageServices, build_services
from linkstore.routes import router


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[StorageServices] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services.start()
        try:
            yield
        finally:
            services.shutdown()

    app = FastAPI(title="Link Store", version="0.1.0", lifespan=lifespan)
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.include_router(router, prefix=settings.api_prefix)
    return app
