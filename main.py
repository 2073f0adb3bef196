"""
Session service application.

Run with:
    uvicorn main:create_app --factory

Routes:
    GET    /api/session          current session record
    PATCH  /api/session          merge values (null deletes a key)
    POST   /api/session/refresh  extend the session cookie
    DELETE /api/session          destroy the stored session
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI

from config.settings import Settings, get_settings
from errors.handlers import register_exception_handlers
from middleware.request_id import RequestIDMiddleware
from middleware.session import SessionMiddleware, default_commit_retry, get_session
from session.factory import build_session_options
from session.session import Session
from session.store import SessionStore
from telemetry.service import setup_logging

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[SessionStore] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted.
        store: Session store to use; built from settings when omitted.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    options = build_session_options(settings, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Session service starting",
            extra={"extra_data": {
                "environment": settings.environment.value,
                "store_type": type(options.store).__name__,
                "signed": bool(settings.keys),
            }},
        )
        yield
        await options.store.close()
        logger.info("Session service stopped")

    app = FastAPI(title="Session Service", version="1.0.0", lifespan=lifespan)
    register_exception_handlers(app)

    # Added last so it runs first and tags session logs with the request ID.
    app.add_middleware(
        SessionMiddleware,
        options=options,
        commit_retry=default_commit_retry(settings.commit_attempts),
    )
    app.add_middleware(RequestIDMiddleware)

    @app.get("/api/session")
    async def read_session(session: Session = Depends(get_session)) -> dict[str, Any]:
        return await session.fetch()

    @app.patch("/api/session")
    async def update_session(
        values: dict[str, Any] = Body(...),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        data = await session.fetch()
        session.set_map(values)
        return data

    @app.post("/api/session/refresh")
    async def refresh_session(session: Session = Depends(get_session)) -> dict[str, Any]:
        data = await session.fetch()
        session.refresh()
        return data

    @app.delete("/api/session")
    async def destroy_session(session: Session = Depends(get_session)) -> dict[str, Any]:
        await session.fetch()
        await session.destroy()
        return session.data

    return app


if __name__ == "__main__":
    import os

    import uvicorn
    port = int(os.environ.get("PORT", 8080))
    uvicorn.run(create_app(), host="0.0.0.0", port=port, log_level="info")
