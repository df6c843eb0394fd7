"""Application wiring for the Baby Tracker dashboard.

This module brings together configuration, the device storage database,
HTML templates, middlewares, routers and error handling, so a new developer
can see in one place which pieces exist and in which order they are set up.
"""

from __future__ import annotations

import asyncio
import contextlib

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .core.config import settings
from .core.errors import http_exception_handler, validation_exception_handler
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware
from .services.dashboard import get_dashboard

# Importing the models registers them with the metadata before create_all.
from .models import device_storage as _device_storage  # noqa: F401

# ---------- App init ----------
app = FastAPI(title=settings.APP_NAME)

app.mount("/static", StaticFiles(directory=str(settings.STATIC_DIR)), name="static")

# ---------- DB init ----------
Base.metadata.create_all(bind=engine)

# ---------- Middleware ----------
# Sessions remember the login flag, the device id and the selected baby between
# page loads, inside a signed cookie.
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.APP_SECRET,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE,
    same_site="lax",
    https_only=False,  # set True once the app is always accessed via HTTPS at the edge
)
app.add_middleware(SecurityHeadersMiddleware)
if settings.ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
app.add_middleware(RequestIdMiddleware)

# ---------- Routers ----------
from .routers import auth_ui as auth_ui_router  # noqa: E402

app.include_router(auth_ui_router.router)

from .routers import ui as ui_router  # noqa: E402

app.include_router(ui_router.router)

from .routers import pin_ui as pin_ui_router  # noqa: E402

app.include_router(pin_ui_router.router)

from .routers import api_dashboard as api_dashboard_router  # noqa: E402

app.include_router(api_dashboard_router.router)

# ---------- Exception handling ----------
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


# ---------- Dashboard clock ----------
# The minute clock that prefills the log forms runs for the life of the process.
@app.on_event("startup")
async def _start_clock() -> None:
    dashboard = get_dashboard()
    dashboard.tick()
    app.state.clock_task = asyncio.create_task(dashboard.run_clock(settings.STATUS_REFRESH_SECONDS))


@app.on_event("shutdown")
async def _stop_clock() -> None:
    task = getattr(app.state, "clock_task", None)
    if task is None:
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


__all__ = ["app"]
