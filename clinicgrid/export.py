# clinicgrid/export.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Tuple

from .day import DayContext
from .model import Patient, ScheduledEvent


@dataclass(frozen=True)
class Column:
    patient: Patient
    events: Tuple[ScheduledEvent, ...]


@dataclass(frozen=True)
class DaySnapshot:
    """Ordered, read-only view of one day for print/export collaborators.

    Columns keep patient insertion order. Events whose patient no longer
    exists are not part of any column.
    """

    date: str
    columns: Tuple[Column, ...]

    @property
    def patient_count(self) -> int:
        return len(self.columns)


@dataclass(frozen=True)
class Page:
    index: int
    date: str
    columns: Tuple[Column, ...]
    first_column: int


def snapshot(day: DayContext) -> DaySnapshot:
    cols = tuple(
        Column(patient=Patient(p.id, p.name), events=tuple(_copy(ev) for ev in day.events_for_patient(p.id)))
        for p in day.patients
    )
    return DaySnapshot(date=day.date, columns=cols)


def _copy(ev: ScheduledEvent) -> ScheduledEvent:
    return replace(ev, staff=list(ev.staff))


def paginate(snap: DaySnapshot, per_page: int) -> List[Page]:
    """Split columns into pages of at most `per_page` patients, in order.

    No patients -> no pages.
    """
    n = int(per_page)
    if n < 1:
        raise ValueError(f"per_page must be >= 1; got {per_page!r}")
    pages: List[Page] = []
    for i in range(0, len(snap.columns), n):
        pages.append(Page(index=len(pages), date=snap.date, columns=snap.columns[i:i + n], first_column=i))
    return pages


def page_to_dict(page: Page) -> Dict[str, Any]:
    return {
        "index": page.index,
        "date": page.date,
        "first_column": page.first_column,
        "columns": [
            {
                "patient": c.patient.to_record(),
                "events": [ev.to_record() for ev in c.events],
            }
            for c in page.columns
        ],
    }


__all__ = ["Column", "DaySnapshot", "Page", "page_to_dict", "paginate", "snapshot"]
