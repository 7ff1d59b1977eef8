"""
FastAPI application factory for the people counter.

Routes:
- /api/health
- /api/counter/* -> counter store (read, overwrite, increment, reset, history, stats)
- /api/session/* -> live counting session
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from people_counter import __version__
from people_counter.errors import StoreUnavailable
from .routes import counter, health, session
from .state import state


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


def create_app(database=None, counting_session=None) -> FastAPI:
    """
    Create the FastAPI app and wire routes.

    Args:
        database: Counter store to serve (attached to the shared state).
        counting_session: Live CountingSession, if the camera pipeline runs here.
    """
    if database is not None:
        state.set_database(database)
    if counting_session is not None:
        state.set_session(counting_session)

    app = FastAPI(
        title="People Counter",
        version=__version__,
        description="Line-crossing people counter with a persistent counter store",
    )

    # CORS for browser dashboards
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
        logging.warning(f"{request.method} {request.url.path}: {exc}")
        return _error(503, str(exc))

    # InvalidEventType is a ValueError
    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _error(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg')}" for e in errors
        ) or "Invalid request"
        return _error(400, message)

    app.include_router(health.router, prefix="/api")
    app.include_router(counter.router, prefix="/api")
    app.include_router(session.router, prefix="/api")

    return app
