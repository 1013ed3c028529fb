from __future__ import annotations

import asyncio
import contextlib
import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.db import dispose_engine
from backend.db_init import init_db
from backend.routes import (
    analytics,
    bootstrap,
    calendar,
    expenses,
    focus,
    mood,
    notifications,
    oauth,
    planner,
    relationship,
    session,
    tasks,
)
from backend.services.pomodoro import get_registry
from backend.settings import get_settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=os.getenv("BACKEND_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    app = FastAPI(title="LifeSync API", version="0.1.0")

    app.include_router(session.router)
    app.include_router(bootstrap.router)
    app.include_router(tasks.router)
    app.include_router(planner.router)
    app.include_router(focus.router)
    app.include_router(mood.router)
    app.include_router(expenses.router)
    app.include_router(relationship.router)
    app.include_router(notifications.router)
    app.include_router(analytics.router)
    app.include_router(calendar.router)
    app.include_router(oauth.router)

    @app.on_event("startup")
    async def _startup():
        await init_db()
        app.state.pomodoro_ticker = None
        if get_settings().pomodoro_ticker_enabled:
            app.state.pomodoro_ticker = asyncio.create_task(get_registry().run_forever())

    @app.on_event("shutdown")
    async def _shutdown():
        ticker = getattr(app.state, "pomodoro_ticker", None)
        if ticker is not None:
            ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await ticker
        await get_registry().drain()
        await dispose_engine()

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logging.getLogger("backend").exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


app = create_app()
