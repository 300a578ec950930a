# clinicgrid/model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .util.timeparse import minutes_to_hhmm

DEFAULT_EVENT_COLOR = "#4e79a7"
DEFAULT_STAFF_COLOR = "#3b82f6"


@dataclass
class Patient:
    id: str
    name: str

    def to_record(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class Staff:
    id: str
    name: str
    color: str

    def to_record(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}


@dataclass
class EventTemplate:
    id: str
    title: str
    description: str
    color: str
    duration: int  # minutes
    staff: List[str] = field(default_factory=list)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "color": self.color,
            "duration": self.duration,
            "staff": list(self.staff),
        }


@dataclass
class ScheduledEvent:
    """A template placed on a date, a patient column and a time range.

    start/end are minutes since midnight; the persisted form uses HH:MM.
    """

    id: str
    title: str
    description: str
    color: str
    duration: int
    staff: List[str]
    date: str
    patient_id: Optional[str]
    start: int
    end: int

    @property
    def start_hhmm(self) -> str:
        return minutes_to_hhmm(self.start)

    @property
    def end_hhmm(self) -> str:
        return minutes_to_hhmm(self.end)

    def place(self, start: int, duration: int) -> None:
        self.start = int(start)
        self.end = int(start) + int(duration)
        self.duration = int(duration)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "color": self.color,
            "duration": self.duration,
            "staff": list(self.staff),
            "date": self.date,
            "patientId": self.patient_id,
            "start": self.start_hhmm,
            "end": self.end_hhmm,
        }


@dataclass(frozen=True)
class EventDraft:
    """Ad-hoc event fields (quick create / edit dialog), already validated."""

    title: str
    duration: Optional[int] = None
    color: str = DEFAULT_EVENT_COLOR
    description: str = ""
    staff: tuple[str, ...] = ()


__all__ = [
    "DEFAULT_EVENT_COLOR",
    "DEFAULT_STAFF_COLOR",
    "EventDraft",
    "EventTemplate",
    "Patient",
    "ScheduledEvent",
    "Staff",
]
