# clinicgrid/config.py
from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping, Optional

from .util.console import warn

CONFIG_ENV = "CLINICGRID_CONFIG"

# camelCase spellings used by the browser planner config, accepted as aliases.
_ALIASES = {
    "pastDays": "past_days",
    "horizonDays": "horizon_days",
    "startHour": "start_hour",
    "endHour": "end_hour",
    "slotMinutes": "slot_minutes",
    "defaultDuration": "default_duration",
    "maxPatients": "max_patients",
    "slotPixelHeight": "slot_px",
    "patientsPerPage": "patients_per_page",
}


@dataclass(frozen=True)
class PlannerConfig:
    past_days: int = 7
    horizon_days: int = 30
    start_hour: int = 8
    end_hour: int = 18
    slot_minutes: int = 30
    default_duration: int = 30
    max_patients: int = 15
    slot_px: float = 28.0
    patients_per_page: int = 5

    @property
    def day_start_min(self) -> int:
        return self.start_hour * 60

    @property
    def day_end_min(self) -> int:
        return self.end_hour * 60

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_CONFIG = PlannerConfig()


def _as_int(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float) and v.is_integer():
        return int(v)
    if isinstance(v, str) and v.strip().lstrip("-").isdigit():
        return int(v.strip())
    return None


def _as_float(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    try:
        return float(str(v).strip())
    except ValueError:
        return None


def config_issues(cfg: PlannerConfig) -> list[str]:
    """Human-readable problems with a config (empty means OK)."""
    errs: list[str] = []
    if not (0 <= cfg.start_hour < cfg.end_hour <= 24):
        errs.append("start_hour/end_hour must satisfy 0 <= start_hour < end_hour <= 24")
    if cfg.slot_minutes <= 0:
        errs.append("slot_minutes must be positive")
    elif ((cfg.end_hour - cfg.start_hour) * 60) % cfg.slot_minutes != 0:
        errs.append("slot_minutes must divide the visible day")
    if cfg.slot_px <= 0:
        errs.append("slot_px must be positive")
    if cfg.past_days < 0:
        errs.append("past_days must be >= 0")
    if cfg.horizon_days < 1:
        errs.append("horizon_days must be >= 1")
    if cfg.default_duration <= 0:
        errs.append("default_duration must be positive")
    if cfg.max_patients < 1:
        errs.append("max_patients must be >= 1")
    if cfg.patients_per_page < 1:
        errs.append("patients_per_page must be >= 1")
    return errs


def config_from_mapping(obj: Mapping[str, Any], *, base: PlannerConfig = DEFAULT_CONFIG) -> PlannerConfig:
    """Build a config from a JSON-ish mapping.

    Unknown keys are ignored, unusable values keep the base value. If the
    combination is inconsistent (e.g. end_hour <= start_hour) the base config is
    returned unchanged.
    """
    changes: Dict[str, Any] = {}
    for raw_key, v in obj.items():
        key = _ALIASES.get(str(raw_key), str(raw_key))
        if key == "slot_px":
            f = _as_float(v)
            if f is not None:
                changes[key] = f
            continue
        if key not in PlannerConfig.__dataclass_fields__:
            continue
        i = _as_int(v)
        if i is None:
            warn("config", f"ignoring non-integer {raw_key}={v!r}")
            continue
        changes[key] = i

    cfg = replace(base, **changes)
    errs = config_issues(cfg)
    if errs:
        warn("config", f"invalid config ({errs[0]}); using defaults")
        return base
    return cfg


def load_planner_config(path: Optional[str] = None) -> PlannerConfig:
    """Load planner config JSON.

    Accepted formats:
      - { "planner": { ... } }
      - { ... }

    `path` defaults to env CLINICGRID_CONFIG. Missing or unreadable files give
    the default config.
    """
    p = path if path is not None else os.getenv(CONFIG_ENV, "")
    if not p:
        return DEFAULT_CONFIG
    try:
        if not os.path.exists(p):
            return DEFAULT_CONFIG
        with open(p, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as ex:
        warn("config", f"unreadable config {p!r}: {ex}")
        return DEFAULT_CONFIG

    if isinstance(raw, dict) and isinstance(raw.get("planner"), dict):
        raw = raw["planner"]
    if not isinstance(raw, dict):
        return DEFAULT_CONFIG
    return config_from_mapping(raw)


__all__ = [
    "CONFIG_ENV",
    "DEFAULT_CONFIG",
    "PlannerConfig",
    "config_from_mapping",
    "config_issues",
    "load_planner_config",
]
