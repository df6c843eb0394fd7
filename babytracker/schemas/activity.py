"""Pydantic schemas for timeline activity records.

The tracker backend returns an untagged mix of sleep, feed, diaper and note
logs. ``classify_activity`` assigns each payload an explicit ``kind`` once, at
the HTTP boundary, so the rest of the code can branch on the tag instead of
probing for fields.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from ..core.config import settings
from ..services.timecalc import ensure_aware

logger = logging.getLogger(__name__)

ACTIVITY_KINDS = ("sleep", "feed", "diaper", "note")


class ActivityBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    baby_id: Optional[str] = Field(default=None, alias="babyId")
    time: datetime

    @field_validator("id", "baby_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("time", mode="after")
    @classmethod
    def _aware_time(cls, value: datetime) -> datetime:
        return ensure_aware(value, settings.TZ)


class SleepRecord(ActivityBase):
    kind: Literal["sleep"] = "sleep"
    start_time: datetime = Field(alias="startTime")
    end_time: Optional[datetime] = Field(default=None, alias="endTime")
    duration: Optional[int] = None
    type: Optional[str] = None
    location: Optional[str] = None
    quality: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _default_time(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("time"):
            data = dict(data)
            data["time"] = data.get("startTime") or data.get("start_time")
        return data

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def _aware_bounds(cls, value: datetime | None) -> datetime | None:
        return ensure_aware(value, settings.TZ) if value is not None else None

    @property
    def ongoing(self) -> bool:
        return self.end_time is None

    def summary(self) -> str:
        if self.ongoing:
            return "Sleeping"
        if self.duration is not None:
            return f"Slept {self.duration // 60}:{self.duration % 60:02d}"
        return "Sleep"


class FeedRecord(ActivityBase):
    kind: Literal["feed"] = "feed"
    amount: Optional[float] = None
    unit_abbr: Optional[str] = Field(default=None, alias="unitAbbr")
    type: Optional[str] = None
    side: Optional[str] = None
    food: Optional[str] = None

    def summary(self) -> str:
        parts = ["Feed"]
        if self.type:
            parts.append(self.type.replace("_", " ").lower())
        if self.amount is not None:
            amount = f"{self.amount:g}"
            parts.append(f"{amount} {self.unit_abbr}" if self.unit_abbr else amount)
        if self.side:
            parts.append(f"({self.side.lower()})")
        return " ".join(parts)


class DiaperRecord(ActivityBase):
    kind: Literal["diaper"] = "diaper"
    condition: Optional[str] = None
    type: Optional[str] = None
    color: Optional[str] = None

    def summary(self) -> str:
        label = (self.type or "diaper").replace("_", " ").lower()
        if self.condition:
            return f"Diaper: {label}, {self.condition.lower()}"
        return f"Diaper: {label}"


class NoteRecord(ActivityBase):
    kind: Literal["note"] = "note"
    content: str = ""
    category: Optional[str] = None

    def summary(self) -> str:
        return f"Note: {self.content}" if self.content else "Note"


ActivityRecord = Annotated[
    Union[SleepRecord, FeedRecord, DiaperRecord, NoteRecord],
    Field(discriminator="kind"),
]

_activity_adapter: TypeAdapter[Any] = TypeAdapter(ActivityRecord)


def classify_activity(raw: dict[str, Any]) -> str | None:
    """Return the record kind for a backend payload, or None if unknown."""

    explicit = raw.get("kind")
    if explicit in ACTIVITY_KINDS:
        return explicit
    if "duration" in raw and "startTime" in raw:
        return "sleep"
    if "amount" in raw:
        return "feed"
    if "condition" in raw:
        return "diaper"
    if "content" in raw:
        return "note"
    return None


def parse_activity(raw: dict[str, Any]):
    """Tag and validate one backend payload.

    Returns None for record types the dashboard does not track. Raises
    ``pydantic.ValidationError`` when a recognised record is malformed.
    """

    kind = classify_activity(raw)
    if kind is None:
        return None
    return _activity_adapter.validate_python({**raw, "kind": kind})


def parse_activities(items: list[Any]) -> list:
    records = []
    for item in items:
        if not isinstance(item, dict):
            raise ValueError("timeline entries must be objects")
        record = parse_activity(item)
        if record is None:
            logger.debug("Skipping untracked timeline entry %s", item.get("id"))
            continue
        records.append(record)
    return records


__all__ = [
    "ACTIVITY_KINDS",
    "ActivityRecord",
    "DiaperRecord",
    "FeedRecord",
    "NoteRecord",
    "SleepRecord",
    "classify_activity",
    "parse_activities",
    "parse_activity",
]
