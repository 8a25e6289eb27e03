from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from messaging_service.api.middleware.request_context import RequestContextMiddleware
from messaging_service.api.v1.routers import conversations, health, messages, users, ws
from messaging_service.application.exceptions import (
    AppError,
    ForbiddenError,
    NotFoundError,
    TransportFailureError,
    UnknownIdentityError,
    ValidationError,
)
from messaging_service.config import settings
from messaging_service.infrastructure.auth.verifiers import build_verifier
from messaging_service.infrastructure.db.session import AsyncSessionLocal, engine
from messaging_service.infrastructure.db.uow import make_uow_factory
from messaging_service.infrastructure.ws.fanout import DeliveryFanout
from messaging_service.infrastructure.ws.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[AppError], int] = {
    NotFoundError: 404,
    ForbiddenError: 403,
    ValidationError: 422,
    UnknownIdentityError: 422,
    TransportFailureError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    logger.info("Messaging service started")

    yield

    await app.state.fanout.aclose()
    await engine.dispose()
    logger.info("Messaging service stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Marketplace Messaging Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.session_factory = AsyncSessionLocal
    app.state.uow_factory = make_uow_factory(AsyncSessionLocal)
    app.state.verifier = build_verifier(settings)
    app.state.registry = ConnectionRegistry()
    app.state.fanout = DeliveryFanout(app.state.registry)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(messages.router)
    app.include_router(conversations.router)
    app.include_router(users.router)
    app.include_router(ws.router)

    return app


def _status_for(exc: AppError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return 400


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(_req: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(
            status_code=_status_for(exc),
            content={"detail": exc.detail, "code": exc.code},
        )
