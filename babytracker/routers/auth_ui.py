"""PIN login/logout for the browser UI."""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ..core.jinja import get_templates
from ..crud.device_storage import UNLOCK_TIME_KEY, remove_item, start_unlock_timer
from ..db.session import get_db
from ..deps.ui_auth import DEVICE_KEY, SESSION_FLAG, get_device_id
from ..services.api_client import TrackerApiClient, TrackerApiError, get_api_client
from ..services.pin_wizard import digits_only

logger = logging.getLogger(__name__)

router = APIRouter()
templates = get_templates()


def _safe_next(target: str | None) -> str:
    # Only same-site paths; anything else falls back to the dashboard.
    if not target or not target.startswith("/") or target.startswith("//"):
        return "/log-entry"
    return target


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, next: str = "/log-entry"):
    if request.session.get(SESSION_FLAG):
        return RedirectResponse(url=_safe_next(next), status_code=302)
    return templates.TemplateResponse(request, "login.html", {"next": _safe_next(next), "error": ""})


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    pin: str = Form(""),
    next: str = Form("/log-entry"),
    db: Session = Depends(get_db),
    client: TrackerApiClient = Depends(get_api_client),
):
    target = _safe_next(next)
    try:
        security_pin = await client.get_security_pin()
    except TrackerApiError:
        logger.warning("Unable to load security PIN for login", exc_info=True)
        return templates.TemplateResponse(
            request,
            "login.html",
            {"next": target, "error": "Unable to reach the tracker service"},
            status_code=503,
        )
    if not hmac.compare_digest(digits_only(pin).encode(), security_pin.encode()):
        return templates.TemplateResponse(
            request, "login.html", {"next": target, "error": "Invalid PIN"}, status_code=401
        )
    request.session[SESSION_FLAG] = True
    start_unlock_timer(db, get_device_id(request))
    return RedirectResponse(url=target, status_code=302)


@router.get("/logout")
def logout(request: Request, db: Session = Depends(get_db)):
    device_id = request.session.get(DEVICE_KEY)
    if device_id:
        remove_item(db, device_id, UNLOCK_TIME_KEY)
    request.session.clear()
    return RedirectResponse(url="/login", status_code=302)
