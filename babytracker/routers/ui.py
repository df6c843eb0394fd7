"""Browser pages for the log-entry dashboard."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ..core.jinja import get_templates
from ..deps.ui_auth import get_selected_baby_id, require_ui_session, set_selected_baby_id
from ..schemas.baby import Baby
from ..services.api_client import TrackerApiClient, TrackerApiError, get_api_client
from ..services.dashboard import DashboardController, get_dashboard

logger = logging.getLogger(__name__)

templates = get_templates()

router = APIRouter(dependencies=[Depends(require_ui_session)])


async def load_babies(client: TrackerApiClient) -> list[Baby]:
    try:
        babies = await client.list_babies()
    except TrackerApiError:
        logger.warning("Error loading babies", exc_info=True)
        return []
    return [baby for baby in babies if not baby.inactive]


def pick_baby(babies: list[Baby], selected_id: str | None) -> Baby | None:
    for baby in babies:
        if baby.id == selected_id:
            return baby
    return babies[0] if babies else None


@router.get("/", include_in_schema=False)
def index_page():
    return RedirectResponse(url="/log-entry", status_code=302)


@router.get("/log-entry", response_class=HTMLResponse)
async def log_entry_page(
    request: Request,
    client: TrackerApiClient = Depends(get_api_client),
    dashboard: DashboardController = Depends(get_dashboard),
):
    babies = await load_babies(client)
    baby = pick_baby(babies, get_selected_baby_id(request))
    set_selected_baby_id(request, baby.id if baby else None)

    context = {
        "babies": babies,
        "baby": baby,
        "buttons": [],
        "activities": [],
        "local_time": dashboard.local_time,
    }
    if baby is not None:
        await dashboard.refresh(baby.id)
        context["buttons"] = dashboard.buttons(baby)
        context["activities"] = dashboard.activities(baby.id)
    return templates.TemplateResponse(request, "log_entry.html", context)


@router.post("/log-entry/baby")
def select_baby(request: Request, baby_id: str = Form("")):
    set_selected_baby_id(request, baby_id.strip() or None)
    return RedirectResponse(url="/log-entry", status_code=303)
