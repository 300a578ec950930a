# clinicgrid/registries.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional

from .config import PlannerConfig
from .model import DEFAULT_EVENT_COLOR, DEFAULT_STAFF_COLOR, EventTemplate, Patient, Staff
from .schedule_store import ScheduleStore
from .schema import EVENT_TEMPLATES_GLOBAL, PATIENTS_BY_DATE, STAFF_GLOBAL
from .storage import KeyValueStore, read_record, write_record
from .util.console import warn
from .util.timeparse import coerce_date
from .validate import patient_from_record, staff_from_record, template_from_record

if TYPE_CHECKING:
    from .day import DayContext

IdFactory = Callable[[], str]


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class AddPatientResult:
    patient: Optional[Patient]
    ok: bool = True
    warning: Optional[str] = None


def _coerce_list(raw: Any, conv, label: str) -> list:
    out = []
    if not isinstance(raw, list):
        return out
    for i, item in enumerate(raw):
        obj, errs = conv(item)
        if obj is None:
            warn("registries", f"{label}[{i}] skipped: {errs[0]}")
            continue
        out.append(obj)
    return out


class EntityRegistries:
    """Patients (per date), staff and event templates (global).

    Each mutation is read-modify-write against its own record, so saving one
    date's patients never touches another date, and staff/template writes never
    touch patients or schedules except through the documented cascades.
    """

    def __init__(
        self,
        store: KeyValueStore,
        schedule: ScheduleStore,
        cfg: PlannerConfig,
        *,
        id_factory: IdFactory = new_id,
    ) -> None:
        self.store = store
        self.schedule = schedule
        self.cfg = cfg
        self.new_id = id_factory

    # --- patients (date-scoped) -------------------------------------------

    def _all_patients(self) -> Dict[str, Any]:
        return read_record(self.store, PATIENTS_BY_DATE)

    def patients(self, date: Any) -> List[Patient]:
        key = coerce_date(date).isoformat()
        return _coerce_list(self._all_patients().get(key), patient_from_record, f"patients[{key}]")

    def save_patients(self, date: Any, patients: Iterable[Patient]) -> None:
        key = coerce_date(date).isoformat()
        all_days = self._all_patients()
        all_days[key] = [p.to_record() for p in patients]
        write_record(self.store, PATIENTS_BY_DATE, all_days)

    def add_patient(self, date: Any, name: str) -> AddPatientResult:
        current = self.patients(date)
        if len(current) >= self.cfg.max_patients:
            return AddPatientResult(
                patient=None,
                ok=False,
                warning=f"Maximum {self.cfg.max_patients} patients allowed per day.",
            )
        p = Patient(id=self.new_id(), name=name)
        current.append(p)
        self.save_patients(date, current)
        return AddPatientResult(patient=p)

    def rename_patient(self, date: Any, patient_id: str, name: str) -> Optional[Patient]:
        current = self.patients(date)
        for p in current:
            if p.id == patient_id:
                p.name = name
                self.save_patients(date, current)
                return p
        return None

    def delete_patient(self, date: Any, patient_id: str, *, loaded: "Optional[DayContext]" = None) -> Optional[int]:
        """Remove a patient and every event in their column on that date.

        Returns the number of cascaded events, or None if the patient is unknown.
        Other dates are never touched.
        """
        key = coerce_date(date).isoformat()
        current = self.patients(key)
        remaining = [p for p in current if p.id != patient_id]
        if len(remaining) == len(current):
            return None
        self.save_patients(key, remaining)

        removed = 0
        if loaded is not None and loaded.date == key:
            before = len(loaded.scheduled)
            loaded.scheduled[:] = [ev for ev in loaded.scheduled if ev.patient_id != patient_id]
            removed = before - len(loaded.scheduled)
            loaded.patients[:] = remaining
            self.schedule.save(key, loaded.scheduled)
        else:
            events = self.schedule.load(key)
            kept = [ev for ev in events if ev.patient_id != patient_id]
            removed = len(events) - len(kept)
            self.schedule.save(key, kept)
        return removed

    # --- staff (global) ---------------------------------------------------

    def staff(self) -> List[Staff]:
        return _coerce_list(read_record(self.store, STAFF_GLOBAL), staff_from_record, "staff")

    def save_staff(self, staff: Iterable[Staff]) -> None:
        write_record(self.store, STAFF_GLOBAL, [s.to_record() for s in staff])

    def get_staff(self, staff_id: str) -> Optional[Staff]:
        return next((s for s in self.staff() if s.id == staff_id), None)

    def add_staff(self, name: str, color: str = DEFAULT_STAFF_COLOR) -> Staff:
        current = self.staff()
        s = Staff(id=self.new_id(), name=name, color=color)
        current.append(s)
        self.save_staff(current)
        return s

    def update_staff(self, staff_id: str, *, name: Optional[str] = None, color: Optional[str] = None) -> Optional[Staff]:
        current = self.staff()
        for s in current:
            if s.id != staff_id:
                continue
            # Blank rename keeps the old name.
            if name is not None and name.strip():
                s.name = name.strip()
            if color:
                s.color = color
            self.save_staff(current)
            return s
        return None

    def delete_staff(self, staff_id: str, *, loaded: "Optional[DayContext]" = None) -> bool:
        """Delete a staff member and prune their id from templates and the loaded day.

        Schedules of dates that are not loaded keep the dangling id until that
        date is next loaded (DayContext prunes on load).
        """
        current = self.staff()
        remaining = [s for s in current if s.id != staff_id]
        if len(remaining) == len(current):
            return False
        self.save_staff(remaining)

        templates = self.templates()
        if any(staff_id in t.staff for t in templates):
            for t in templates:
                t.staff = [x for x in t.staff if x != staff_id]
            self.save_templates(templates)

        if loaded is not None:
            loaded.staff[:] = remaining
            loaded.templates[:] = templates
            for ev in loaded.scheduled:
                ev.staff = [x for x in ev.staff if x != staff_id]
            self.schedule.save(loaded.date, loaded.scheduled)
        return True

    # --- event templates (global) -----------------------------------------

    def templates(self) -> List[EventTemplate]:
        return _coerce_list(read_record(self.store, EVENT_TEMPLATES_GLOBAL), template_from_record, "templates")

    def save_templates(self, templates: Iterable[EventTemplate]) -> None:
        write_record(self.store, EVENT_TEMPLATES_GLOBAL, [t.to_record() for t in templates])

    def get_template(self, template_id: str) -> Optional[EventTemplate]:
        return next((t for t in self.templates() if t.id == template_id), None)

    def add_template(
        self,
        title: str,
        duration: Optional[int] = None,
        *,
        color: str = DEFAULT_EVENT_COLOR,
        description: str = "",
        staff: Iterable[str] = (),
    ) -> EventTemplate:
        current = self.templates()
        t = EventTemplate(
            id=self.new_id(),
            title=title,
            description=description,
            color=color,
            duration=int(duration or self.cfg.default_duration),
            staff=list(dict.fromkeys(staff)),
        )
        current.append(t)
        self.save_templates(current)
        return t

    def update_template(
        self,
        template_id: str,
        *,
        title: Optional[str] = None,
        duration: Optional[int] = None,
        color: Optional[str] = None,
        description: Optional[str] = None,
        staff: Optional[Iterable[str]] = None,
    ) -> Optional[EventTemplate]:
        current = self.templates()
        for t in current:
            if t.id != template_id:
                continue
            if title:
                t.title = title
            if duration is not None and int(duration) > 0:
                t.duration = int(duration)
            if color:
                t.color = color
            if description is not None:
                t.description = description
            if staff is not None:
                t.staff = list(dict.fromkeys(staff))
            self.save_templates(current)
            return t
        return None

    def delete_template(self, template_id: str) -> bool:
        """Remove a template. Events already scheduled from it are left as they are."""
        current = self.templates()
        remaining = [t for t in current if t.id != template_id]
        if len(remaining) == len(current):
            return False
        self.save_templates(remaining)
        return True


__all__ = ["AddPatientResult", "EntityRegistries", "IdFactory", "new_id"]
