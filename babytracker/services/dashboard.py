"""State owner for the log-entry dashboard.

``DashboardController`` ties the backend client to a ``StatusTracker``: it
fetches the timeline for the selected baby, applies the result through the
sequencing guard, keeps the minute-resolution clock used to prefill the log
forms, and builds the four action buttons with their status bubbles.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import List, Optional

from ..core.config import settings
from ..schemas.baby import Baby
from .api_client import TrackerApiClient, TrackerApiError, get_api_client
from .status import StatusTracker
from .status_bubble import AWAKE, DIAPER, FEED, SLEEPING, StatusBubble, render_status_bubble
from .timecalc import elapsed_minutes, local_time_string, utcnow

logger = logging.getLogger(__name__)

ACTION_KINDS = ("sleep", "feed", "diaper", "note")
MODAL_KINDS = ACTION_KINDS + ("settings",)


@dataclass
class ActionButton:
    kind: str
    label: Optional[str] = None
    bubble: Optional[StatusBubble] = None


@dataclass
class ModalRequest:
    kind: str
    baby_id: str
    initial_time: str
    open: bool = True
    is_sleeping: Optional[bool] = None


class DashboardController:
    def __init__(
        self,
        client: TrackerApiClient,
        *,
        tz: str = "UTC",
        timeline_limit: int = 200,
        tracker: Optional[StatusTracker] = None,
    ) -> None:
        self.client = client
        self.tz = tz
        self.timeline_limit = timeline_limit
        self.tracker = tracker or StatusTracker()
        self.local_time = local_time_string(utcnow(), tz)

    # ---- clock

    def tick(self, now: Optional[datetime] = None) -> str:
        self.local_time = local_time_string(now or utcnow(), self.tz)
        return self.local_time

    async def run_clock(self, interval: float) -> None:
        """Update ``local_time`` every ``interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            self.tick()

    # ---- timeline

    async def refresh(self, baby_id: Optional[str]) -> bool:
        """Re-fetch the timeline and recompute status.

        Backend failures are logged and leave the previous state in place.
        Returns True when fresh data was applied.
        """
        if not baby_id:
            return False
        seq = self.tracker.begin_request(baby_id)
        try:
            records = await self.client.fetch_timeline(baby_id, limit=self.timeline_limit)
        except TrackerApiError:
            logger.warning("Error refreshing activities for baby %s", baby_id, exc_info=True)
            return False
        return self.tracker.apply(baby_id, seq, records)

    def activities(self, baby_id: str) -> List:
        records = self.tracker.view(baby_id).activities
        return sorted(records, key=lambda record: record.time, reverse=True)

    def is_sleeping(self, baby_id: str) -> bool:
        return self.tracker.is_sleeping(baby_id)

    def toggle_sleep(self, baby_id: str) -> bool:
        return self.tracker.toggle_sleep(baby_id)

    # ---- action surface

    def buttons(self, baby: Baby, now: Optional[datetime] = None) -> List[ActionButton]:
        current = now or utcnow()
        view = self.tracker.view(baby.id)

        sleep_bubble = None
        if view.sleeping:
            sleep_bubble = render_status_bubble(
                SLEEPING, elapsed_minutes(view.sleep_start, current) or 0
            )
        elif view.sleep_start is None and view.last_sleep_end is not None:
            sleep_bubble = render_status_bubble(
                AWAKE, elapsed_minutes(view.last_sleep_end, current) or 0
            )

        feed_bubble = None
        if view.last_feed is not None:
            feed_bubble = render_status_bubble(
                FEED, elapsed_minutes(view.last_feed, current) or 0, baby.feed_warning_time
            )

        diaper_bubble = None
        if view.last_diaper is not None:
            diaper_bubble = render_status_bubble(
                DIAPER, elapsed_minutes(view.last_diaper, current) or 0, baby.diaper_warning_time
            )

        return [
            ActionButton("sleep", "End" if view.sleeping else "Start", sleep_bubble),
            ActionButton("feed", None, feed_bubble),
            ActionButton("diaper", None, diaper_bubble),
            ActionButton("note", None, None),
        ]

    def open_modal(self, kind: str, baby_id: str) -> ModalRequest:
        if kind not in MODAL_KINDS:
            raise ValueError(f"Unknown modal {kind!r}")
        request = ModalRequest(kind=kind, baby_id=baby_id or "", initial_time=self.local_time)
        if kind == "sleep":
            request.is_sleeping = self.is_sleeping(baby_id) if baby_id else False
        return request

    async def close_modal(self, kind: str, baby_id: Optional[str]) -> bool:
        if kind not in MODAL_KINDS:
            raise ValueError(f"Unknown modal {kind!r}")
        return await self.refresh(baby_id)


@lru_cache(maxsize=1)
def get_dashboard() -> DashboardController:
    """FastAPI dependency returning the process-wide dashboard state."""

    return DashboardController(
        get_api_client(),
        tz=settings.TZ,
        timeline_limit=settings.TIMELINE_LIMIT,
    )
