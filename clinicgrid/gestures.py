# clinicgrid/gestures.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union

from .lifecycle import EDGES, EventLifecycleManager, Placement
from .model import ScheduledEvent


class GestureError(RuntimeError):
    """Raised when a collaborator starts a gesture while another one is active."""


@dataclass(frozen=True)
class Origin:
    start: int
    end: int
    patient_id: Optional[str]


@dataclass(frozen=True)
class Idle:
    kind: str = "idle"


@dataclass(frozen=True)
class Dragging:
    event_id: str
    origin: Origin
    kind: str = "dragging"


@dataclass(frozen=True)
class Resizing:
    event_id: str
    edge: str
    origin: Origin
    kind: str = "resizing"


GestureState = Union[Idle, Dragging, Resizing]

IDLE = Idle()


class GestureController:
    """Pointer gestures as a state machine.

    Idle -> Dragging{event_id, origin} -> Idle
    Idle -> Resizing{event_id, edge, origin} -> Idle

    `update` only computes a preview; `release` commits once through the
    lifecycle manager and always returns to Idle. There is no cancel: a release
    always commits. Pointer deltas are totals since pointer-down.
    """

    def __init__(self, manager: EventLifecycleManager) -> None:
        self.manager = manager
        self.state: GestureState = IDLE

    @property
    def active(self) -> bool:
        return not isinstance(self.state, Idle)

    def _begin(self, event_id: str) -> Optional[ScheduledEvent]:
        if self.active:
            raise GestureError(f"gesture already active: {self.state.kind}")
        return self.manager.day.get_event(event_id)

    def begin_drag(self, event_id: str) -> bool:
        ev = self._begin(event_id)
        if ev is None:
            return False
        self.state = Dragging(event_id=event_id, origin=Origin(ev.start, ev.end, ev.patient_id))
        return True

    def begin_resize(self, event_id: str, edge: str) -> bool:
        if edge not in EDGES:
            raise ValueError(f"edge must be one of {EDGES}; got {edge!r}")
        ev = self._begin(event_id)
        if ev is None:
            return False
        self.state = Resizing(event_id=event_id, edge=edge, origin=Origin(ev.start, ev.end, ev.patient_id))
        return True

    def update(self, delta_px_y: float, delta_columns: float = 0) -> Optional[Placement]:
        """Preview relative to the pointer-down geometry. Nothing is mutated or saved."""
        st = self.state
        if isinstance(st, Idle):
            return None
        ev = self.manager.day.get_event(st.event_id)
        if ev is None:
            return None
        ev = replace(ev, start=st.origin.start, end=st.origin.end, patient_id=st.origin.patient_id)
        if isinstance(st, Dragging):
            return self.manager.plan_move(ev, delta_px_y, delta_columns)
        return self.manager.plan_resize(ev, st.edge, delta_px_y)

    def release(self, delta_px_y: float, delta_columns: float = 0) -> Optional[ScheduledEvent]:
        """Commit the gesture. Reads the event's current fields, so edits made
        while the pointer was down (e.g. a staff chip removal) are kept."""
        st = self.state
        self.state = IDLE
        if isinstance(st, Dragging):
            return self.manager.move(st.event_id, delta_px_y, delta_columns)
        if isinstance(st, Resizing):
            return self.manager.resize(st.event_id, st.edge, delta_px_y)
        return None


__all__ = [
    "Dragging",
    "GestureController",
    "GestureError",
    "GestureState",
    "IDLE",
    "Idle",
    "Origin",
    "Resizing",
]
