"""Session helpers for browser (UI) routes."""

from __future__ import annotations

from uuid import uuid4

from fastapi import HTTPException, Request, status

SESSION_FLAG = "ui_authenticated"
DEVICE_KEY = "device_id"
SELECTED_BABY_KEY = "selected_baby_id"


def is_logged_in(request: Request) -> bool:
    return bool(request.session.get(SESSION_FLAG))


def get_device_id(request: Request) -> str:
    """Return this browser's device id, minting one on first use."""
    device_id = request.session.get(DEVICE_KEY)
    if not device_id:
        device_id = uuid4().hex
        request.session[DEVICE_KEY] = device_id
    return device_id


def get_selected_baby_id(request: Request) -> str | None:
    return request.session.get(SELECTED_BABY_KEY) or None


def set_selected_baby_id(request: Request, baby_id: str | None) -> None:
    if baby_id:
        request.session[SELECTED_BABY_KEY] = baby_id
    else:
        request.session.pop(SELECTED_BABY_KEY, None)


async def require_ui_session(request: Request):
    """
    Gate for UI routes: requires a valid session created by the PIN login.
    HTML callers are redirected to /login by the 401 exception handler.
    """
    if not is_logged_in(request):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    request.state.principal = f"device:{get_device_id(request)}"
    return True
