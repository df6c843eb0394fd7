"""Jinja2 environment for the dashboard pages.

Every router renders through ``get_templates`` so the same formatting filters
are available in every template.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from fastapi.templating import Jinja2Templates

from .config import settings

_LOCAL_TZ = ZoneInfo(settings.TZ) if settings.TZ else None


def _to_dt(value: Any) -> datetime | None:
    """Convert strings/datetimes into local timezone-aware datetimes."""

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None and _LOCAL_TZ:
        dt = dt.replace(tzinfo=_LOCAL_TZ)
    if _LOCAL_TZ:
        dt = dt.astimezone(_LOCAL_TZ)
    return dt


def _fmt_date(value: Any, fmt: str = "%a %b %d") -> str:
    dt = _to_dt(value)
    return dt.strftime(fmt) if dt else ""


def _fmt_time(value: Any, fmt: str = "%I:%M %p") -> str:
    """Time of day only; the timeline groups entries by date already."""

    dt = _to_dt(value)
    return dt.strftime(fmt).lstrip("0") if dt else ""


def get_templates() -> Jinja2Templates:
    """Create a ``Jinja2Templates`` instance with our standard filters registered."""

    templates = Jinja2Templates(directory=str(settings.TEMPLATES_DIR))
    env = templates.env
    env.filters["fmt_date"] = _fmt_date
    env.filters["fmt_time"] = _fmt_time
    env.globals["app_name"] = settings.APP_NAME
    env.globals["refresh_seconds"] = settings.STATUS_REFRESH_SECONDS
    return templates
