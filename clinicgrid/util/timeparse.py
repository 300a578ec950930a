# clinicgrid/util/timeparse.py
from __future__ import annotations

import datetime as dt
import re
from typing import Optional, Tuple

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_YMD_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_hhmm(s: str) -> Tuple[int, int]:
    m = _HHMM_RE.match(s.strip())
    if not m:
        raise ValueError(f"Invalid HH:MM: {s!r}")
    hh = int(m.group(1))
    mm = int(m.group(2))
    if not (0 <= hh <= 24 and 0 <= mm <= 59) or (hh == 24 and mm != 0):
        raise ValueError(f"Invalid HH:MM: {s!r}")
    return hh, mm


def hhmm_to_minutes(s: str) -> int:
    """'09:30' -> 570. Accepts '24:00' so a block may end at midnight."""
    hh, mm = parse_hhmm(s)
    return hh * 60 + mm


def minutes_to_hhmm(mins: int) -> str:
    mins = int(mins)
    return f"{mins // 60:02d}:{mins % 60:02d}"


def try_hhmm_to_minutes(s: object) -> Optional[int]:
    if not isinstance(s, str):
        return None
    try:
        return hhmm_to_minutes(s)
    except ValueError:
        return None


def parse_date_yyyy_mm_dd(s: str) -> dt.date:
    ss = str(s).strip()
    if not _YMD_RE.match(ss):
        raise ValueError(f"Invalid date (want YYYY-MM-DD): {s!r}")
    return dt.datetime.strptime(ss, "%Y-%m-%d").date()


def coerce_date(d: "dt.date | str") -> dt.date:
    if isinstance(d, dt.datetime):
        return d.date()
    if isinstance(d, dt.date):
        return d
    return parse_date_yyyy_mm_dd(d)
