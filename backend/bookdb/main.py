"""FastAPI application factory for the BookDb auth service."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from bookdb.core.config import settings
from bookdb.core.exceptions import BookDbException
from bookdb.core.logging import setup_logging
from bookdb.routers import admin, auth, tokens
from bookdb.services.cleanup import start_token_cleanup, stop_token_cleanup


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)
    settings.validate_runtime_security()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await start_token_cleanup()
        try:
            yield
        finally:
            await stop_token_cleanup()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.allowed_hosts,
    )
    # Real-time hub integration is optional; publishing is a no-op until set.
    app.state.event_publisher = None

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(tokens.router, prefix="/api/token", tags=["token"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

    @app.exception_handler(BookDbException)
    async def handle_bookdb_exception(_: Request, exc: BookDbException) -> JSONResponse:
        headers = exc.headers if getattr(exc, "headers", None) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    return app


app = create_app()
