# clinicgrid/horizon.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Callable, Tuple

from .config import PlannerConfig
from .util.timeparse import coerce_date
from .util.tz import today_date


@dataclass(frozen=True)
class DateHorizon:
    """Sliding window of navigable dates around today.

    The window is [today - past_days, today + horizon_days - 1]. `today` is a
    callable so the window slides with the clock; tests pin it.
    """

    past_days: int
    horizon_days: int
    today: Callable[[], dt.date] = field(default=today_date, compare=False)

    @classmethod
    def from_config(cls, cfg: PlannerConfig, *, today: Callable[[], dt.date] | None = None) -> "DateHorizon":
        return cls(past_days=cfg.past_days, horizon_days=cfg.horizon_days, today=today or today_date)

    def bounds(self) -> Tuple[dt.date, dt.date]:
        t = self.today()
        lo = t - dt.timedelta(days=int(self.past_days))
        hi = t + dt.timedelta(days=max(0, int(self.horizon_days) - 1))
        return lo, hi

    def clamp(self, d: "dt.date | str") -> dt.date:
        day = coerce_date(d)
        lo, hi = self.bounds()
        if day < lo:
            return lo
        if day > hi:
            return hi
        return day

    def contains(self, d: "dt.date | str") -> bool:
        lo, hi = self.bounds()
        return lo <= coerce_date(d) <= hi

    def step(self, d: "dt.date | str", days: int) -> dt.date:
        """Move by `days` and clamp (prev/next day buttons)."""
        return self.clamp(coerce_date(d) + dt.timedelta(days=int(days)))


__all__ = ["DateHorizon"]
