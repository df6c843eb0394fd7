"""Presentation helpers for the little status bubbles on the action buttons."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional

logger = logging.getLogger(__name__)

SLEEPING = "sleeping"
AWAKE = "awake"
FEED = "feed"
DIAPER = "diaper"

STATUS_STYLES = {
    SLEEPING: {"bg": "bubble-sleeping", "icon": "moon"},
    AWAKE: {"bg": "bubble-awake", "icon": "sun"},
    FEED: {"normal": "bubble-ok", "warning": "bubble-warning", "icon": "bottle-baby"},
    DIAPER: {"normal": "bubble-ok", "warning": "bubble-warning", "icon": "diaper"},
}
DEFAULT_BG = "bubble-default"


@dataclass(frozen=True)
class StatusBubble:
    status: str
    minutes: int
    text: str
    bg_class: str
    icon: Optional[str]
    warning: bool

    def as_dict(self) -> dict:
        return asdict(self)


def format_duration(minutes: int) -> str:
    """Format minutes as ``H:MM``."""
    hours, mins = divmod(minutes, 60)
    return f"{hours}:{mins:02d}"


def get_warning_minutes(time: str) -> int:
    """Convert an ``HH:MM`` threshold to minutes; ``ValueError`` when malformed.

    Trailing parts such as seconds in ``HH:MM:SS`` are ignored.
    """
    parts = (time or "").strip().split(":")
    if len(parts) < 2 or not parts[0].isdigit() or not parts[1].isdigit():
        raise ValueError(f"Invalid warning time {time!r}")
    return int(parts[0]) * 60 + int(parts[1])


def is_warning(minutes: int, warning_time: Optional[str]) -> bool:
    if not warning_time:
        return False
    try:
        threshold = get_warning_minutes(warning_time)
    except ValueError:
        logger.warning("Ignoring malformed warning threshold %r", warning_time)
        return False
    return minutes >= threshold


def render_status_bubble(status: str, minutes: int, warning_time: Optional[str] = None) -> StatusBubble:
    warning = is_warning(minutes, warning_time)
    style = STATUS_STYLES.get(status)
    if style is None:
        bg_class, icon = DEFAULT_BG, None
    elif "bg" in style:
        bg_class, icon = style["bg"], style["icon"]
    else:
        bg_class = style["warning"] if warning else style["normal"]
        icon = style["icon"]
    return StatusBubble(
        status=status,
        minutes=minutes,
        text=format_duration(minutes),
        bg_class=bg_class,
        icon=icon,
        warning=warning,
    )
