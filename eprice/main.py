"""
Main application entry point for the Electricity Price API service.
Initializes FastAPI app, assembles services, and starts the server.
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from eprice.api.routes import router as api_router
from eprice.config import settings
from eprice.container import Services, build_services
from eprice.logging_config import setup_logging


def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        services: Pre-built service graph. Built from settings at startup when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        setup_logging()
        owns_services = app.state.services is None
        if owns_services:
            app.state.services = build_services(settings)

        yield

        # Shutdown
        if owns_services:
            await app.state.services.aclose()

    app = FastAPI(
        title="Electricity Price API",
        description="Day-ahead electricity prices with Elering and ENTSO-E fallback",
        version="1.0.0",
        docs_url="/docs" if settings.api_debug else None,
        redoc_url="/redoc" if settings.api_debug else None,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def count_incoming_requests(request: Request, call_next):
        if app.state.services is not None:
            app.state.services.monitor.increment_incoming()
        return await call_next(request)

    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "eprice.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
