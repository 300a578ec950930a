# clinicgrid/schedule_store.py
from __future__ import annotations

from typing import Any, Callable, Dict, List, Sequence

from .model import ScheduledEvent
from .schema import SCHEDULE_BY_DATE
from .storage import KeyValueStore, read_record, write_record
from .util.console import warn
from .util.timeparse import coerce_date
from .validate import event_from_record


def _date_key(date: Any) -> str:
    return coerce_date(date).isoformat()


class ScheduleStore:
    """Date-partitioned scheduled events on top of one persisted record.

    Every write is read-modify-write over the whole mapping: only the partition
    being saved is replaced, other dates are carried over untouched.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _read_all(self) -> Dict[str, Any]:
        return read_record(self.store, SCHEDULE_BY_DATE)

    def load(self, date: Any) -> List[ScheduledEvent]:
        key = _date_key(date)
        raw = self._read_all().get(key) or []
        out: List[ScheduledEvent] = []
        for i, item in enumerate(raw):
            ev, errs = event_from_record(item, date=key)
            if ev is None:
                warn("schedule_store", f"{key}[{i}] skipped: {errs[0]}")
                continue
            out.append(ev)
        return out

    def save(self, date: Any, events: Sequence[ScheduledEvent]) -> None:
        key = _date_key(date)
        all_days = self._read_all()
        all_days[key] = [ev.to_record() for ev in events]
        write_record(self.store, SCHEDULE_BY_DATE, all_days)

    def update(self, date: Any, fn: Callable[[List[ScheduledEvent]], List[ScheduledEvent]]) -> List[ScheduledEvent]:
        """Load one partition, transform it and save it back."""
        events = fn(self.load(date))
        self.save(date, events)
        return events

    def dates(self) -> List[str]:
        return sorted(self._read_all().keys())


__all__ = ["ScheduleStore"]
