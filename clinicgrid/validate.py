"""Record and input validation helpers (library-facing).

Two boundaries live here:
  - stored records -> model objects (`*_from_record`): bad entries are reported
    and skipped, never raised to the planner;
  - user input -> primitives (`require_*`, `parse_*`): raise InputValidationError
    so invalid values never reach the core.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional, Tuple

from .model import (
    DEFAULT_EVENT_COLOR,
    DEFAULT_STAFF_COLOR,
    EventTemplate,
    Patient,
    ScheduledEvent,
    Staff,
)
from .util.timeparse import hhmm_to_minutes, parse_date_yyyy_mm_dd, try_hhmm_to_minutes

MIN_FORM_DURATION = 15
_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class InputValidationError(ValueError):
    """Raised when user input is rejected at the boundary."""


class RecordValidationError(ValueError):
    """Raised when a stored record is unusable as a whole."""


def _require(cond: bool, msg: str, errs: List[str]) -> None:
    if not cond:
        errs.append(msg)


def _nonempty_str(v: Any) -> bool:
    return isinstance(v, str) and bool(v.strip())


def _as_int(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float) and v.is_integer():
        return int(v)
    return None


def _staff_ids(v: Any) -> List[str]:
    out: List[str] = []
    if not isinstance(v, list):
        return out
    for x in v:
        if isinstance(x, str) and x and x not in out:
            out.append(x)
    return out


# --- stored records -----------------------------------------------------------

def patient_from_record(raw: Any) -> Tuple[Optional[Patient], List[str]]:
    errs: List[str] = []
    if not isinstance(raw, dict):
        return None, ["patient must be dict"]
    _require(_nonempty_str(raw.get("id")), "patient.id must be non-empty string", errs)
    if errs:
        return None, errs
    return Patient(id=str(raw["id"]), name=str(raw.get("name") or "")), errs


def staff_from_record(raw: Any) -> Tuple[Optional[Staff], List[str]]:
    errs: List[str] = []
    if not isinstance(raw, dict):
        return None, ["staff must be dict"]
    _require(_nonempty_str(raw.get("id")), "staff.id must be non-empty string", errs)
    if errs:
        return None, errs
    return Staff(
        id=str(raw["id"]),
        name=str(raw.get("name") or ""),
        color=str(raw.get("color") or DEFAULT_STAFF_COLOR),
    ), errs


def template_from_record(raw: Any) -> Tuple[Optional[EventTemplate], List[str]]:
    errs: List[str] = []
    if not isinstance(raw, dict):
        return None, ["template must be dict"]
    _require(_nonempty_str(raw.get("id")), "template.id must be non-empty string", errs)
    dur = _as_int(raw.get("duration"))
    _require(dur is not None and dur > 0, "template.duration must be positive int", errs)
    if errs:
        return None, errs
    return EventTemplate(
        id=str(raw["id"]),
        title=str(raw.get("title") or "Untitled"),
        description=str(raw.get("description") or ""),
        color=str(raw.get("color") or DEFAULT_EVENT_COLOR),
        duration=int(dur),  # type: ignore[arg-type]
        staff=_staff_ids(raw.get("staff")),
    ), errs


def event_from_record(raw: Any, *, date: Optional[str] = None) -> Tuple[Optional[ScheduledEvent], List[str]]:
    """Coerce one stored scheduled event.

    `date` is the partition key the record was found under; it wins over a
    missing or stale `date` field.
    """
    errs: List[str] = []
    if not isinstance(raw, dict):
        return None, ["event must be dict"]
    _require(_nonempty_str(raw.get("id")), "event.id must be non-empty string", errs)
    start = try_hhmm_to_minutes(raw.get("start"))
    end = try_hhmm_to_minutes(raw.get("end"))
    _require(start is not None, "event.start must be HH:MM", errs)
    _require(end is not None, "event.end must be HH:MM", errs)
    if start is not None and end is not None:
        _require(end > start, "event.end must be after event.start", errs)
    pid = raw.get("patientId")
    _require(pid is None or isinstance(pid, str), "event.patientId must be string or null", errs)
    if errs:
        return None, errs

    day = date if date is not None else str(raw.get("date") or "")
    return ScheduledEvent(
        id=str(raw["id"]),
        title=str(raw.get("title") or "Untitled"),
        description=str(raw.get("description") or ""),
        color=str(raw.get("color") or DEFAULT_EVENT_COLOR),
        duration=int(end - start),  # type: ignore[operator]
        staff=_staff_ids(raw.get("staff")),
        date=day,
        patient_id=pid,
        start=int(start),  # type: ignore[arg-type]
        end=int(end),  # type: ignore[arg-type]
    ), errs


def validate_date_partitions(data: Any, *, label: str) -> List[str]:
    """Shape check for date-keyed records (PatientsByDate / ScheduleByDate)."""
    errs: List[str] = []
    if not isinstance(data, dict):
        return [f"{label}: data must be dict keyed by YYYY-MM-DD"]
    for k, v in data.items():
        try:
            parse_date_yyyy_mm_dd(k)
        except ValueError:
            errs.append(f"{label}: invalid date key {k!r}")
            continue
        _require(isinstance(v, list), f"{label}[{k}] must be list", errs)
    return errs


# --- user input ---------------------------------------------------------------

def require_text(v: Any, *, field: str) -> str:
    s = "" if v is None else str(v).strip()
    if not s:
        raise InputValidationError(f"{field} is required")
    return s


def optional_text(v: Any) -> str:
    return "" if v is None else str(v).strip()


def parse_color(v: Any, *, default: str) -> str:
    s = optional_text(v)
    if not s:
        return default
    if not _COLOR_RE.match(s):
        raise InputValidationError(f"color must be #RGB or #RRGGBB: {s!r}")
    return s


def parse_duration(v: Any, *, default: int) -> int:
    """Form duration in minutes: blank -> default, floored at MIN_FORM_DURATION."""
    s = optional_text(v)
    if not s:
        return max(MIN_FORM_DURATION, int(default))
    try:
        n = int(s)
    except ValueError as ex:
        raise InputValidationError(f"duration must be a whole number of minutes: {s!r}") from ex
    if n <= 0:
        raise InputValidationError(f"duration must be positive: {n}")
    return max(MIN_FORM_DURATION, n)


def parse_start(v: Any) -> int:
    try:
        return hhmm_to_minutes(require_text(v, field="start"))
    except ValueError as ex:
        if isinstance(ex, InputValidationError):
            raise
        raise InputValidationError(str(ex)) from ex


def parse_date(v: Any) -> str:
    try:
        return parse_date_yyyy_mm_dd(require_text(v, field="date")).isoformat()
    except ValueError as ex:
        if isinstance(ex, InputValidationError):
            raise
        raise InputValidationError(str(ex)) from ex


__all__ = [
    "InputValidationError",
    "MIN_FORM_DURATION",
    "RecordValidationError",
    "event_from_record",
    "optional_text",
    "parse_color",
    "parse_date",
    "parse_duration",
    "parse_start",
    "patient_from_record",
    "require_text",
    "staff_from_record",
    "template_from_record",
    "validate_date_partitions",
]
