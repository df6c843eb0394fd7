"""JSON endpoints used by the dashboard page script and the modal editors."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ..crud.device_storage import touch_unlock_timer
from ..db.session import get_db
from ..deps.auth import require_ui_or_api_key
from ..deps.ui_auth import get_device_id
from ..schemas.dashboard import (
    ActionButtonOut,
    DashboardStatusOut,
    ModalRequestOut,
    StatusBubbleOut,
    UnlockTouchOut,
)
from ..services.api_client import TrackerApiClient, get_api_client
from ..services.dashboard import MODAL_KINDS, DashboardController, get_dashboard
from .ui import load_babies

router = APIRouter(prefix="/api/ui", tags=["dashboard"], dependencies=[Depends(require_ui_or_api_key)])


def _check_modal(kind: str) -> None:
    if kind not in MODAL_KINDS:
        raise HTTPException(404, "Unknown modal")


async def _status_payload(
    baby_id: str,
    client: TrackerApiClient,
    dashboard: DashboardController,
) -> DashboardStatusOut:
    babies = await load_babies(client)
    baby = next((item for item in babies if item.id == baby_id), None)
    if baby is None:
        raise HTTPException(404, "Baby not found")
    buttons = [
        ActionButtonOut(
            kind=button.kind,
            label=button.label,
            bubble=StatusBubbleOut(**button.bubble.as_dict()) if button.bubble else None,
        )
        for button in dashboard.buttons(baby)
    ]
    return DashboardStatusOut(
        baby_id=baby.id,
        sleeping=dashboard.is_sleeping(baby.id),
        local_time=dashboard.local_time,
        activity_count=len(dashboard.activities(baby.id)),
        buttons=buttons,
    )


@router.get("/status", response_model=DashboardStatusOut)
async def api_status(
    baby_id: str = Query(..., alias="babyId", min_length=1),
    refresh: bool = Query(False),
    client: TrackerApiClient = Depends(get_api_client),
    dashboard: DashboardController = Depends(get_dashboard),
):
    if refresh:
        await dashboard.refresh(baby_id)
    return await _status_payload(baby_id, client, dashboard)


@router.post("/modals/{kind}/open", response_model=ModalRequestOut)
def api_open_modal(
    kind: str,
    baby_id: str = Query("", alias="babyId"),
    dashboard: DashboardController = Depends(get_dashboard),
):
    _check_modal(kind)
    modal = dashboard.open_modal(kind, baby_id)
    return ModalRequestOut(
        open=modal.open,
        kind=modal.kind,
        baby_id=modal.baby_id,
        initial_time=modal.initial_time,
        is_sleeping=modal.is_sleeping,
    )


@router.post("/modals/{kind}/close", response_model=DashboardStatusOut | None)
async def api_close_modal(
    kind: str,
    baby_id: str = Query("", alias="babyId"),
    client: TrackerApiClient = Depends(get_api_client),
    dashboard: DashboardController = Depends(get_dashboard),
):
    _check_modal(kind)
    await dashboard.close_modal(kind, baby_id or None)
    if not baby_id:
        return None
    return await _status_payload(baby_id, client, dashboard)


@router.post("/sleep/toggle")
def api_toggle_sleep(
    baby_id: str = Query(..., alias="babyId", min_length=1),
    dashboard: DashboardController = Depends(get_dashboard),
):
    return {"babyId": baby_id, "sleeping": dashboard.toggle_sleep(baby_id)}


@router.post("/activity", response_model=UnlockTouchOut)
def api_touch_activity(request: Request, db: Session = Depends(get_db)):
    value = touch_unlock_timer(db, get_device_id(request))
    return UnlockTouchOut(refreshed=value is not None, unlock_time=value)
