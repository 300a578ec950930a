# clinicgrid/lifecycle.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .config import PlannerConfig
from .day import DayContext
from .grid import TimeGrid, clamp, round_half_up
from .model import EventDraft, ScheduledEvent
from .registries import IdFactory, new_id
from .schedule_store import ScheduleStore

EDGES = ("top", "bottom")

EventSource = Union[str, EventDraft]


@dataclass(frozen=True)
class Placement:
    """Where an event would land: a time range and a patient column."""

    start: int
    end: int
    patient_id: Optional[str]

    @property
    def duration(self) -> int:
        return self.end - self.start


class EventLifecycleManager:
    """Create, move, resize, reassign and delete the events of one loaded day.

    Every method resolves ids against the DayContext and is a no-op (None or
    False) when an id does not resolve. Each applied mutation is followed by one
    ScheduleStore.save of the day's partition.
    """

    def __init__(
        self,
        day: DayContext,
        schedule: ScheduleStore,
        grid: TimeGrid,
        cfg: PlannerConfig,
        *,
        id_factory: IdFactory = new_id,
    ) -> None:
        self.day = day
        self.schedule = schedule
        self.grid = grid
        self.cfg = cfg
        self.new_id = id_factory

    def persist(self) -> None:
        self.schedule.save(self.day.date, self.day.scheduled)

    def _cap_duration(self, duration: Optional[int]) -> int:
        d = int(duration or self.cfg.default_duration)
        return max(1, min(d, self.grid.day_length_min))

    # --- create -----------------------------------------------------------

    def create(self, source: EventSource, patient_id: str, start_slot: int) -> Optional[ScheduledEvent]:
        """Place a template (by id) or an ad-hoc draft in a patient's column."""
        if isinstance(source, EventDraft):
            title = source.title or "Untitled"
            description = source.description
            color = source.color
            duration = source.duration
            staff = list(dict.fromkeys(source.staff))
        else:
            tpl = self.day.get_template(source)
            if tpl is None:
                return None
            title = tpl.title or "Untitled"
            description = tpl.description
            color = tpl.color
            duration = tpl.duration
            staff = list(tpl.staff)

        if self.day.get_patient(patient_id) is None:
            return None

        dur = self._cap_duration(duration)
        slot = self.grid.fit_start_slot(start_slot, dur)
        start = self.grid.slot_index_to_time(slot)
        ev = ScheduledEvent(
            id=self.new_id(),
            title=title,
            description=description,
            color=color,
            duration=dur,
            staff=staff,
            date=self.day.date,
            patient_id=patient_id,
            start=start,
            end=start + dur,
        )
        self.day.scheduled.append(ev)
        self.persist()
        return ev

    def create_from_template(self, template_id: str, patient_id: str, start_slot: int) -> Optional[ScheduledEvent]:
        return self.create(template_id, patient_id, start_slot)

    def quick_create(self, draft: EventDraft, patient_id: str, start_slot: int) -> Optional[ScheduledEvent]:
        return self.create(draft, patient_id, start_slot)

    # --- move / resize (pure planning) ------------------------------------

    def plan_move(self, ev: ScheduledEvent, delta_px_y: float, delta_columns: float) -> Optional[Placement]:
        origin = self.day.column_index(ev.patient_id)
        if origin < 0 or not self.day.patients:
            return None

        duration = ev.end - ev.start
        old_top = self.grid.slot_index_to_pixel(self.grid.time_to_slot_index(ev.start))
        new_top = round_half_up(old_top + float(delta_px_y))
        slot = self.grid.fit_start_slot(self.grid.pixel_to_slot_index(new_top), duration)
        start = self.grid.slot_index_to_time(slot)

        col = clamp(origin + round_half_up(float(delta_columns)), 0, len(self.day.patients) - 1)
        return Placement(start=start, end=start + duration, patient_id=self.day.patients[col].id)

    def plan_resize(self, ev: ScheduledEvent, edge: str, delta_px_y: float) -> Placement:
        if edge not in EDGES:
            raise ValueError(f"edge must be one of {EDGES}; got {edge!r}")

        g = self.grid
        slot_min = g.slot_minutes
        delta = g.pixel_delta_to_slots(delta_px_y) * slot_min
        start, end = ev.start, ev.end

        if edge == "top":
            # The top edge always lands on a slot boundary, even for durations
            # that are not whole slots.
            start = g.slot_index_to_time(g.clamp_slot(round_half_up((start + delta - g.day_start_min) / slot_min)))
            latest = end - slot_min
            if start > latest:
                ceil_idx = -(-(latest - g.day_start_min) // slot_min)
                start = g.slot_index_to_time(g.clamp_slot(ceil_idx))
                end = max(end, start + slot_min)
        else:
            end = max(min(g.day_end_min, end + delta), start + slot_min)
            if end > g.day_end_min:
                end = g.day_end_min
                start = end - slot_min
        return Placement(start=start, end=end, patient_id=ev.patient_id)

    def _apply(self, ev: ScheduledEvent, p: Placement) -> ScheduledEvent:
        ev.place(p.start, p.duration)
        ev.patient_id = p.patient_id
        self.persist()
        return ev

    # --- move / resize / reassign -----------------------------------------

    def move(self, event_id: str, delta_px_y: float, delta_columns: float = 0) -> Optional[ScheduledEvent]:
        ev = self.day.get_event(event_id)
        if ev is None:
            return None
        p = self.plan_move(ev, delta_px_y, delta_columns)
        if p is None:
            return None
        return self._apply(ev, p)

    def resize(self, event_id: str, edge: str, delta_px_y: float) -> Optional[ScheduledEvent]:
        ev = self.day.get_event(event_id)
        if ev is None:
            return None
        return self._apply(ev, self.plan_resize(ev, edge, delta_px_y))

    def reassign_via_drop(self, event_id: str, target_patient_id: str, target_slot: int) -> Optional[ScheduledEvent]:
        ev = self.day.get_event(event_id)
        if ev is None or self.day.get_patient(target_patient_id) is None:
            return None
        duration = ev.end - ev.start
        slot = self.grid.fit_start_slot(target_slot, duration)
        start = self.grid.slot_index_to_time(slot)
        return self._apply(ev, Placement(start=start, end=start + duration, patient_id=target_patient_id))

    # --- edit / delete ----------------------------------------------------

    def edit(
        self,
        event_id: str,
        *,
        title: Optional[str] = None,
        start: Optional[int] = None,
        duration: Optional[int] = None,
        color: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[ScheduledEvent]:
        """Apply the edit dialog. Start snaps to the nearest slot; the block stays inside the day."""
        ev = self.day.get_event(event_id)
        if ev is None:
            return None
        if title:
            ev.title = title
        if color:
            ev.color = color
        if description is not None:
            ev.description = description

        dur = self._cap_duration(duration if duration is not None else ev.end - ev.start)
        begin = ev.start if start is None else int(start)
        slot = round_half_up((begin - self.grid.day_start_min) / self.grid.slot_minutes)
        slot = self.grid.fit_start_slot(slot, dur)
        ev.place(self.grid.slot_index_to_time(slot), dur)
        self.persist()
        return ev

    def delete(self, event_id: str) -> bool:
        before = len(self.day.scheduled)
        self.day.scheduled[:] = [ev for ev in self.day.scheduled if ev.id != event_id]
        if len(self.day.scheduled) == before:
            return False
        self.persist()
        return True

    # --- staff membership -------------------------------------------------

    def add_staff(self, event_id: str, staff_id: str) -> Optional[ScheduledEvent]:
        ev = self.day.get_event(event_id)
        if ev is None or self.day.get_staff(staff_id) is None:
            return None
        if staff_id not in ev.staff:
            ev.staff.append(staff_id)
            self.persist()
        return ev

    def remove_staff(self, event_id: str, staff_id: str) -> Optional[ScheduledEvent]:
        ev = self.day.get_event(event_id)
        if ev is None:
            return None
        if staff_id in ev.staff:
            ev.staff = [x for x in ev.staff if x != staff_id]
            self.persist()
        return ev

    def strip_staff(self, staff_id: str) -> int:
        """Remove one staff member from every event of the loaded day; returns events touched."""
        touched = 0
        for ev in self.day.scheduled:
            if staff_id in ev.staff:
                ev.staff = [x for x in ev.staff if x != staff_id]
                touched += 1
        if touched:
            self.persist()
        return touched


__all__ = ["EDGES", "EventLifecycleManager", "EventSource", "Placement"]
