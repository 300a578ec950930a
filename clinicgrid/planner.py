# clinicgrid/planner.py
from __future__ import annotations

import datetime as dt
from typing import Callable, List, Optional

from .config import DEFAULT_CONFIG, PlannerConfig
from .day import DayContext
from .export import DaySnapshot, Page, paginate, snapshot
from .gestures import GestureController
from .grid import TimeGrid
from .horizon import DateHorizon
from .lifecycle import EventLifecycleManager
from .model import DEFAULT_STAFF_COLOR, EventTemplate, Patient, ScheduledEvent, Staff
from .registries import AddPatientResult, EntityRegistries, IdFactory, new_id
from .schedule_store import ScheduleStore
from .storage import KeyValueStore


class Planner:
    """Single-user planner session: one store, one navigated date at a time.

    Navigation always goes through DateHorizon.clamp and replaces the
    DayContext, the lifecycle manager and the gesture controller together.
    """

    def __init__(
        self,
        store: KeyValueStore,
        cfg: PlannerConfig = DEFAULT_CONFIG,
        *,
        today: Optional[Callable[[], dt.date]] = None,
        id_factory: IdFactory = new_id,
        date: "dt.date | str | None" = None,
    ) -> None:
        self.cfg = cfg
        self.store = store
        self.grid = TimeGrid.from_config(cfg)
        self.horizon = DateHorizon.from_config(cfg, today=today)
        self.schedule = ScheduleStore(store)
        self.registries = EntityRegistries(store, self.schedule, cfg, id_factory=id_factory)
        self._id_factory = id_factory
        self.day: DayContext
        self.events: EventLifecycleManager
        self.gestures: GestureController
        self.goto(date if date is not None else self.horizon.today())

    # --- navigation -------------------------------------------------------

    @property
    def date(self) -> str:
        return self.day.date

    def goto(self, date: "dt.date | str") -> str:
        key = self.horizon.clamp(date).isoformat()
        self.day = DayContext.load(key, self.registries, self.schedule)
        self.events = EventLifecycleManager(self.day, self.schedule, self.grid, self.cfg, id_factory=self._id_factory)
        self.gestures = GestureController(self.events)
        return key

    def prev_day(self) -> str:
        return self.goto(self.horizon.step(self.day.date, -1))

    def next_day(self) -> str:
        return self.goto(self.horizon.step(self.day.date, +1))

    def go_today(self) -> str:
        return self.goto(self.horizon.today())

    def refresh(self) -> str:
        return self.goto(self.day.date)

    # --- read accessors ---------------------------------------------------

    def patients(self) -> List[Patient]:
        return list(self.day.patients)

    def staff(self) -> List[Staff]:
        return list(self.day.staff)

    def templates(self) -> List[EventTemplate]:
        return list(self.day.templates)

    def scheduled(self) -> List[ScheduledEvent]:
        return list(self.day.scheduled)

    # --- registries (routed through the loaded day) -----------------------

    def add_patient(self, name: str) -> AddPatientResult:
        res = self.registries.add_patient(self.day.date, name)
        if res.ok and res.patient is not None:
            self.day.patients.append(res.patient)
        return res

    def rename_patient(self, patient_id: str, name: str) -> Optional[Patient]:
        p = self.registries.rename_patient(self.day.date, patient_id, name)
        if p is not None:
            self.day.patients[:] = self.registries.patients(self.day.date)
        return p

    def delete_patient(self, patient_id: str) -> Optional[int]:
        return self.registries.delete_patient(self.day.date, patient_id, loaded=self.day)

    def add_staff(self, name: str, color: Optional[str] = None) -> Staff:
        s = self.registries.add_staff(name, color or DEFAULT_STAFF_COLOR)
        self.day.staff.append(s)
        return s

    def update_staff(self, staff_id: str, *, name: Optional[str] = None, color: Optional[str] = None) -> Optional[Staff]:
        s = self.registries.update_staff(staff_id, name=name, color=color)
        if s is not None:
            self.day.staff[:] = self.registries.staff()
        return s

    def delete_staff(self, staff_id: str) -> bool:
        return self.registries.delete_staff(staff_id, loaded=self.day)

    def add_template(self, title: str, duration: Optional[int] = None, **fields) -> EventTemplate:
        t = self.registries.add_template(title, duration, **fields)
        self.day.templates.append(t)
        return t

    def update_template(self, template_id: str, **fields) -> Optional[EventTemplate]:
        t = self.registries.update_template(template_id, **fields)
        if t is not None:
            self.day.templates[:] = self.registries.templates()
        return t

    def delete_template(self, template_id: str) -> bool:
        ok = self.registries.delete_template(template_id)
        if ok:
            self.day.templates[:] = [t for t in self.day.templates if t.id != template_id]
        return ok

    # --- export -----------------------------------------------------------

    def snapshot(self) -> DaySnapshot:
        return snapshot(self.day)

    def pages(self, per_page: Optional[int] = None) -> List[Page]:
        return paginate(self.snapshot(), self.cfg.patients_per_page if per_page is None else per_page)


__all__ = ["Planner"]
