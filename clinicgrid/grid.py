# clinicgrid/grid.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from .config import PlannerConfig
from .util.timeparse import minutes_to_hhmm


def round_half_up(x: float) -> int:
    """Nearest integer, halves rounded towards +inf (pointer-math rounding)."""
    return int(math.floor(x + 0.5))


def clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


@dataclass(frozen=True)
class TimeGrid:
    """Conversions between minutes-since-midnight, slot indices and pixel offsets.

    Slot i covers [start_hour*60 + i*slot_minutes, ... + slot_minutes). Slot 0
    sits at pixel offset 0 of a column.
    """

    start_hour: int
    end_hour: int
    slot_minutes: int
    slot_px: float

    def __post_init__(self) -> None:
        if not (0 <= self.start_hour < self.end_hour <= 24):
            raise ValueError("grid requires 0 <= start_hour < end_hour <= 24")
        if self.slot_minutes <= 0 or self.day_length_min % self.slot_minutes != 0:
            raise ValueError("slot_minutes must be positive and divide the visible day")
        if self.slot_px <= 0:
            raise ValueError("slot_px must be positive")

    @classmethod
    def from_config(cls, cfg: PlannerConfig) -> "TimeGrid":
        return cls(
            start_hour=cfg.start_hour,
            end_hour=cfg.end_hour,
            slot_minutes=cfg.slot_minutes,
            slot_px=float(cfg.slot_px),
        )

    @property
    def day_start_min(self) -> int:
        return self.start_hour * 60

    @property
    def day_end_min(self) -> int:
        return self.end_hour * 60

    @property
    def day_length_min(self) -> int:
        return (self.end_hour - self.start_hour) * 60

    @property
    def total_slots(self) -> int:
        return self.day_length_min // self.slot_minutes

    @property
    def column_height_px(self) -> float:
        return self.total_slots * self.slot_px

    # --- time <-> slot ----------------------------------------------------

    def time_to_slot_index(self, minutes: int) -> int:
        return (int(minutes) - self.day_start_min) // self.slot_minutes

    def slot_index_to_time(self, index: int) -> int:
        return self.day_start_min + int(index) * self.slot_minutes

    def slot_label(self, index: int) -> str:
        return minutes_to_hhmm(self.slot_index_to_time(index))

    def slot_labels(self) -> List[str]:
        """Gutter labels, including the closing boundary (total_slots + 1 entries)."""
        return [self.slot_label(i) for i in range(self.total_slots + 1)]

    def clamp_slot(self, index: int) -> int:
        return clamp(int(index), 0, self.total_slots - 1)

    def is_aligned(self, minutes: int) -> bool:
        return (int(minutes) - self.day_start_min) % self.slot_minutes == 0

    # --- pixel <-> slot ---------------------------------------------------

    def pixel_to_slot_index(self, offset: float) -> int:
        return self.clamp_slot(round_half_up(float(offset) / self.slot_px))

    def slot_index_to_pixel(self, index: int) -> float:
        return int(index) * self.slot_px

    def pixel_delta_to_slots(self, delta_px: float) -> int:
        """Whole-slot delta for a pointer movement (unclamped)."""
        return round_half_up(float(delta_px) / self.slot_px)

    # --- placement --------------------------------------------------------

    def fit_start_slot(self, index: int, duration: int) -> int:
        """Latest slot <= index (and >= 0) at which `duration` still ends inside the day."""
        idx = self.clamp_slot(index)
        last_start = self.day_end_min - min(int(duration), self.day_length_min)
        max_idx = max(0, (last_start - self.day_start_min) // self.slot_minutes)
        return min(idx, max_idx)

    def block_geometry(self, start: int, end: int) -> Tuple[float, float]:
        """(top_px, height_px) of a block, clipped to the visible day."""
        top_min = clamp(int(start), self.day_start_min, self.day_end_min)
        bot_min = clamp(int(end), self.day_start_min, self.day_end_min)
        px_per_min = self.slot_px / self.slot_minutes
        top = (top_min - self.day_start_min) * px_per_min
        height = max(0, bot_min - top_min) * px_per_min
        return top, height


__all__ = ["TimeGrid", "clamp", "round_half_up"]
