"""FastAPI application exposing the moderation core over HTTP.

The transport owns nothing but routing: the caller's user id arrives in the
``X-User-Id`` header (set by the authenticating gateway), every
``ModerationError`` becomes a ``{code, message}`` JSON body with the
error's HTTP status, and any other exception is reported as ``internal``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from modcore import __version__
from modcore.core import ModerationCore
from modcore.errors import Internal, ModerationError
from modcore.web.routers import flags, moderation, reports, users


def create_app(core: Optional[ModerationCore] = None) -> FastAPI:
    app = FastAPI(
        title="modcore API",
        description="REST API for community moderation: flags, reports, review queue, rules, trust and penalties.",
        version=__version__,
    )
    app.state.core = core or ModerationCore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------------------------------------------------------
    # Error mapping
    # ---------------------------------------------------------------------------

    @app.exception_handler(ModerationError)
    async def moderation_error_handler(request: Request, exc: ModerationError):
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
        error = Internal()
        return JSONResponse(status_code=error.http_status, content=error.to_dict())

    # ---------------------------------------------------------------------------
    # Routers
    # ---------------------------------------------------------------------------

    app.include_router(flags.router)
    app.include_router(reports.router)
    app.include_router(moderation.router)
    app.include_router(users.router)

    @app.get("/", tags=["meta"])
    async def root():
        return {"name": "modcore API", "version": __version__, "docs": "/docs"}

    @app.get("/health", tags=["meta"])
    async def health():
        return {"status": "ok", "version": __version__}

    return app
