from __future__ import annotations
from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def parse_iso(ts: str | None, tz: str) -> datetime | None:
    """Parse an ISO-8601 timestamp string.
    If naive, attach the provided tz. Returns None if ts is falsy.
    """
    if not ts:
        return None
    dt = datetime.fromisoformat(ts.replace('Z', '+00:00'))
    return ensure_aware(dt, tz)


def ensure_aware(dt: datetime, tz: str) -> datetime:
    """Attach ``tz`` to naive datetimes; aware values pass through."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(tz))
    return dt


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def elapsed_minutes(reference: datetime | None, now: datetime | None = None) -> int | None:
    """Whole minutes between ``reference`` and ``now`` (floored, never negative).

    Returns None when there is no reference time.
    """
    if reference is None:
        return None
    current = now or utcnow()
    delta = int((current - reference).total_seconds() // 60)
    return max(delta, 0)


def local_time_string(now: datetime, tz: str) -> str:
    """Minute-resolution local timestamp used to prefill the log forms."""
    local = now.astimezone(ZoneInfo(tz)) if tz else now
    return local.strftime("%Y-%m-%dT%H:%M")
