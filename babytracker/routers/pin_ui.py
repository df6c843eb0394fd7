"""Browser pages for the system PIN change dialog.

Wizard state is held in process memory per device, never in the cookie, so
typed PINs do not travel back to the browser.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ..core.config import settings
from ..core.jinja import get_templates
from ..deps.ui_auth import get_device_id, require_ui_session
from ..services.api_client import TrackerApiClient, TrackerApiError, get_api_client
from ..services.pin_wizard import PinChangeWizard

logger = logging.getLogger(__name__)

templates = get_templates()

router = APIRouter(prefix="/settings/pin", dependencies=[Depends(require_ui_session)])

_wizard_states: dict[str, dict] = {}


def _limits() -> dict[str, int]:
    return {"min_length": settings.PIN_MIN_LENGTH, "max_length": settings.PIN_MAX_LENGTH}


def _render(request: Request, wizard: PinChangeWizard | None, *, notice: str = "", error: str = "", status_code: int = 200):
    context = {"wizard": wizard, "notice": notice, "page_error": error}
    return templates.TemplateResponse(request, "change_pin.html", context, status_code=status_code)


async def _check_caretakers(client: TrackerApiClient) -> bool:
    try:
        return await client.has_caretakers()
    except TrackerApiError:
        logger.warning("Error checking caretakers", exc_info=True)
        return False


@router.get("", response_class=HTMLResponse)
async def pin_page(request: Request, client: TrackerApiClient = Depends(get_api_client)):
    device_id = get_device_id(request)
    try:
        current_pin = await client.get_security_pin()
    except TrackerApiError:
        logger.warning("Unable to load security PIN", exc_info=True)
        return _render(request, None, error="Unable to reach the tracker service", status_code=503)

    # Every open starts over at verify with a fresh caretaker check.
    _wizard_states.pop(device_id, None)
    wizard = PinChangeWizard(current_pin, **_limits())
    wizard.open(await _check_caretakers(client))
    _wizard_states[device_id] = wizard.to_state()
    return _render(request, wizard)


@router.post("/submit", response_class=HTMLResponse)
async def pin_submit(
    request: Request,
    pin: str = Form(""),
    client: TrackerApiClient = Depends(get_api_client),
):
    device_id = get_device_id(request)
    state = _wizard_states.get(device_id)
    if state is None:
        return RedirectResponse(url="/settings/pin", status_code=303)
    try:
        current_pin = await client.get_security_pin()
    except TrackerApiError:
        logger.warning("Unable to load security PIN", exc_info=True)
        return _render(request, None, error="Unable to reach the tracker service", status_code=503)

    changed: list[str] = []
    wizard = PinChangeWizard.from_state(
        state,
        current_pin,
        on_pin_change=changed.append,
        on_close=lambda: _wizard_states.pop(device_id, None),
        **_limits(),
    )
    wizard.enter(pin)
    wizard.submit()
    if not changed:
        _wizard_states[device_id] = wizard.to_state()
        return _render(request, wizard)

    try:
        await client.update_security_pin(changed[0])
    except TrackerApiError:
        logger.warning("Security PIN update failed", exc_info=True)
        return _render(request, None, error="Unable to save the new PIN. Please try again.", status_code=502)
    logger.info("System PIN changed", extra={"extra_data": {"device_id": device_id}})
    return _render(request, None, notice="PIN changed")


@router.post("/cancel")
def pin_cancel(request: Request):
    _wizard_states.pop(get_device_id(request), None)
    return RedirectResponse(url="/log-entry", status_code=303)
