"""CRUD helpers for per-device storage values."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.device_storage import DeviceStorageEntry

UNLOCK_TIME_KEY = "unlockTime"


def _utcnow() -> str:
    return datetime.now(tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _epoch_ms(now: datetime | None = None) -> str:
    moment = now or datetime.now(tz=timezone.utc)
    return str(int(moment.timestamp() * 1000))


def _get_entry(db: Session, device_id: str, key: str) -> DeviceStorageEntry | None:
    stmt = select(DeviceStorageEntry).where(
        DeviceStorageEntry.device_id == device_id,
        DeviceStorageEntry.key == key,
    )
    return db.execute(stmt).scalars().first()


def get_item(db: Session, device_id: str, key: str) -> str | None:
    entry = _get_entry(db, device_id, key)
    return entry.value if entry else None


def set_item(db: Session, device_id: str, key: str, value: str) -> DeviceStorageEntry:
    if not device_id:
        raise ValueError("device_id is required")
    entry = _get_entry(db, device_id, key)
    if entry is None:
        entry = DeviceStorageEntry(device_id=device_id, key=key, value=value, updated_at=_utcnow())
        db.add(entry)
    else:
        entry.value = value
        entry.updated_at = _utcnow()
    db.commit()
    db.refresh(entry)
    return entry


def remove_item(db: Session, device_id: str, key: str) -> bool:
    entry = _get_entry(db, device_id, key)
    if entry is None:
        return False
    db.delete(entry)
    db.commit()
    return True


def start_unlock_timer(db: Session, device_id: str, now: datetime | None = None) -> str:
    """Record a fresh unlock timestamp after a successful login."""

    value = _epoch_ms(now)
    set_item(db, device_id, UNLOCK_TIME_KEY, value)
    return value


def touch_unlock_timer(db: Session, device_id: str, now: datetime | None = None) -> str | None:
    """Refresh ``unlockTime`` on user interaction.

    Only an existing timestamp is refreshed; a locked device (no value) stays
    locked until the next login. Returns the stored value, or None.
    """

    if not device_id or get_item(db, device_id, UNLOCK_TIME_KEY) is None:
        return None
    value = _epoch_ms(now)
    set_item(db, device_id, UNLOCK_TIME_KEY, value)
    return value
