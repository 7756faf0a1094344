"""FastAPI application factory."""

import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from goodchoice.infra.media_storage import DEFAULT_MEDIA_ROOT, PUBLIC_PREFIX
from goodchoice.observability.correlation import CORRELATION_ID_HEADER, correlation_scope
from goodchoice.observability.logging import get_logger
from goodchoice.services import Services

from .routers import public
from .routes import artifacts, webhooks_whatsapp

logger = get_logger(__name__)


def _cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ALLOW_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app(services: Services | None = None) -> FastAPI:
    """Create the app.

    Args:
        services: Collaborators to use. Defaults to a Services container that
            builds everything from environment variables on first use.
    """
    services = services or Services()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info("application starting")
        yield
        await services.aclose()
        logger.info("application stopped")

    app = FastAPI(
        title="Good Choice Archive",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        with correlation_scope(request.headers.get(CORRELATION_ID_HEADER)) as cid:
            response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = cid
        return response

    app.include_router(public.router)
    app.include_router(webhooks_whatsapp.router)
    app.include_router(artifacts.router)

    app.mount(
        PUBLIC_PREFIX,
        StaticFiles(directory=os.environ.get("MEDIA_ROOT", DEFAULT_MEDIA_ROOT), check_dir=False),
        name="uploads",
    )

    return app
