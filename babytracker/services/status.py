"""Derive "what is the baby doing" from a batch of timeline records.

``derive_status`` is a pure function over one fetch. ``StatusTracker`` keeps
the per-subject results between fetches: who is currently asleep, when that
sleep started, and when the last sleep, feed and diaper change happened.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Generic, Iterable, List, Optional, Set, TypeVar

from ..schemas.activity import DiaperRecord, FeedRecord, SleepRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StatusSnapshot:
    ongoing_sleep: Optional[SleepRecord] = None
    last_ended_sleep: Optional[SleepRecord] = None
    last_feed_time: Optional[datetime] = None
    last_diaper_time: Optional[datetime] = None


def derive_status(records: Iterable) -> StatusSnapshot:
    """Classify sleep sessions and find the latest feed/diaper times.

    Records may arrive in any order. Ties keep the first maximal record seen.
    """

    ongoing: Optional[SleepRecord] = None
    last_ended: Optional[SleepRecord] = None
    last_feed: Optional[datetime] = None
    last_diaper: Optional[datetime] = None

    for record in records:
        if isinstance(record, SleepRecord):
            if record.end_time is None:
                if ongoing is not None:
                    logger.warning(
                        "Multiple ongoing sleep records for baby %s (%s, %s)",
                        record.baby_id,
                        ongoing.id,
                        record.id,
                    )
                    if record.start_time <= ongoing.start_time:
                        continue
                ongoing = record
            elif last_ended is None or record.end_time > last_ended.end_time:
                last_ended = record
        elif isinstance(record, FeedRecord):
            if last_feed is None or record.time > last_feed:
                last_feed = record.time
        elif isinstance(record, DiaperRecord):
            if last_diaper is None or record.time > last_diaper:
                last_diaper = record.time

    return StatusSnapshot(
        ongoing_sleep=ongoing,
        last_ended_sleep=last_ended,
        last_feed_time=last_feed,
        last_diaper_time=last_diaper,
    )


class SubjectStore(Generic[T]):
    """Subject id -> value map with explicit insert/remove."""

    def __init__(self) -> None:
        self._values: Dict[str, T] = {}

    def get(self, subject_id: str) -> Optional[T]:
        return self._values.get(subject_id)

    def set(self, subject_id: str, value: T) -> None:
        self._values[subject_id] = value

    def remove(self, subject_id: str) -> None:
        self._values.pop(subject_id, None)

    def __contains__(self, subject_id: object) -> bool:
        return subject_id in self._values

    def __len__(self) -> int:
        return len(self._values)


@dataclass
class SubjectView:
    """Read-only view of everything known about one subject."""

    subject_id: str
    sleeping: bool
    sleep_start: Optional[datetime]
    last_sleep_end: Optional[datetime]
    last_feed: Optional[datetime]
    last_diaper: Optional[datetime]
    activities: List = field(default_factory=list)


class StatusTracker:
    """Owns per-subject dashboard state and the fetch sequencing guard."""

    def __init__(self) -> None:
        self.sleeping: Set[str] = set()
        self.sleep_start: SubjectStore[datetime] = SubjectStore()
        self.last_sleep_end: SubjectStore[datetime] = SubjectStore()
        self.last_feed: SubjectStore[datetime] = SubjectStore()
        self.last_diaper: SubjectStore[datetime] = SubjectStore()
        self.activities: SubjectStore[List] = SubjectStore()
        self._issued: Dict[str, int] = {}
        self._applied: Dict[str, int] = {}

    def begin_request(self, subject_id: str) -> int:
        seq = self._issued.get(subject_id, 0) + 1
        self._issued[subject_id] = seq
        return seq

    def apply(self, subject_id: str, seq: int, records: List) -> bool:
        """Install the result of fetch ``seq``; stale results are dropped."""

        if seq <= self._applied.get(subject_id, 0):
            logger.info(
                "Dropping stale timeline result",
                extra={"extra_data": {"baby_id": subject_id, "seq": seq}},
            )
            return False
        self._applied[subject_id] = seq

        snapshot = derive_status(records)
        self.activities.set(subject_id, list(records))

        if snapshot.ongoing_sleep is not None:
            self.sleeping.add(subject_id)
            self.sleep_start.set(subject_id, snapshot.ongoing_sleep.start_time)
        else:
            self.sleeping.discard(subject_id)
            self.sleep_start.remove(subject_id)
            if snapshot.last_ended_sleep is not None:
                self.last_sleep_end.set(subject_id, snapshot.last_ended_sleep.end_time)

        if snapshot.last_feed_time is not None:
            self.last_feed.set(subject_id, snapshot.last_feed_time)
        if snapshot.last_diaper_time is not None:
            self.last_diaper.set(subject_id, snapshot.last_diaper_time)
        return True

    def toggle_sleep(self, subject_id: str) -> bool:
        if subject_id in self.sleeping:
            self.sleeping.discard(subject_id)
        else:
            self.sleeping.add(subject_id)
        return subject_id in self.sleeping

    def is_sleeping(self, subject_id: str) -> bool:
        return subject_id in self.sleeping

    def view(self, subject_id: str) -> SubjectView:
        return SubjectView(
            subject_id=subject_id,
            sleeping=subject_id in self.sleeping,
            sleep_start=self.sleep_start.get(subject_id),
            last_sleep_end=self.last_sleep_end.get(subject_id),
            last_feed=self.last_feed.get(subject_id),
            last_diaper=self.last_diaper.get(subject_id),
            activities=list(self.activities.get(subject_id) or []),
        )
