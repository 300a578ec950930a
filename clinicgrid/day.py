# clinicgrid/day.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .model import EventTemplate, Patient, ScheduledEvent, Staff
from .registries import EntityRegistries
from .schedule_store import ScheduleStore


@dataclass
class DayContext:
    """The in-memory working set for one navigated date.

    Built on navigation and replaced on the next one. The lists are the live
    state the lifecycle manager mutates; persistence happens explicitly.
    """

    date: str
    patients: List[Patient] = field(default_factory=list)
    staff: List[Staff] = field(default_factory=list)
    templates: List[EventTemplate] = field(default_factory=list)
    scheduled: List[ScheduledEvent] = field(default_factory=list)
    pruned_staff_refs: int = 0

    @classmethod
    def load(cls, date: str, registries: EntityRegistries, schedule: ScheduleStore) -> "DayContext":
        staff = registries.staff()
        scheduled = schedule.load(date)

        # Staff deleted while this date was not loaded leave dangling ids; drop
        # them from the working set. They are written back on the next save.
        known = {s.id for s in staff}
        pruned = 0
        for ev in scheduled:
            kept = [x for x in ev.staff if x in known]
            pruned += len(ev.staff) - len(kept)
            ev.staff = kept

        return cls(
            date=date,
            patients=registries.patients(date),
            staff=staff,
            templates=registries.templates(),
            scheduled=scheduled,
            pruned_staff_refs=pruned,
        )

    # --- lookups ----------------------------------------------------------

    def get_event(self, event_id: str) -> Optional[ScheduledEvent]:
        return next((ev for ev in self.scheduled if ev.id == event_id), None)

    def get_patient(self, patient_id: Optional[str]) -> Optional[Patient]:
        return next((p for p in self.patients if p.id == patient_id), None)

    def get_staff(self, staff_id: str) -> Optional[Staff]:
        return next((s for s in self.staff if s.id == staff_id), None)

    def get_template(self, template_id: str) -> Optional[EventTemplate]:
        return next((t for t in self.templates if t.id == template_id), None)

    def column_index(self, patient_id: Optional[str]) -> int:
        for i, p in enumerate(self.patients):
            if p.id == patient_id:
                return i
        return -1

    def events_for_patient(self, patient_id: str) -> List[ScheduledEvent]:
        return sorted(
            (ev for ev in self.scheduled if ev.patient_id == patient_id),
            key=lambda ev: ev.start,
        )

    def staff_names(self, event: ScheduledEvent) -> List[str]:
        by_id: Dict[str, Staff] = {s.id: s for s in self.staff}
        return [by_id[x].name for x in event.staff if x in by_id]


__all__ = ["DayContext"]
