"""clinicgrid.api

Stable *library* entrypoint for clinicgrid.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Callable, Optional, Union

from clinicgrid.config import PlannerConfig, load_planner_config
from clinicgrid.day import DayContext
from clinicgrid.export import DaySnapshot, Page, paginate, snapshot
from clinicgrid.gestures import GestureController, GestureError
from clinicgrid.grid import TimeGrid
from clinicgrid.horizon import DateHorizon
from clinicgrid.lifecycle import EventLifecycleManager, Placement
from clinicgrid.model import EventDraft, EventTemplate, Patient, ScheduledEvent, Staff
from clinicgrid.planner import Planner
from clinicgrid.registries import AddPatientResult, EntityRegistries, IdFactory, new_id
from clinicgrid.schedule_store import ScheduleStore
from clinicgrid.storage import JsonDirStore, KeyValueStore, MemoryStore, default_data_dir
from clinicgrid.validate import InputValidationError

PathLike = Union[str, Path]


def open_planner(
    data_dir: Optional[PathLike] = None,
    *,
    config_path: Optional[str] = None,
    cfg: Optional[PlannerConfig] = None,
    date: "dt.date | str | None" = None,
    today: Optional[Callable[[], dt.date]] = None,
) -> Planner:
    """Planner over a JSON data directory (default: env CLINICGRID_DATA or ~/.clinicgrid).

    `cfg` wins over `config_path`; with neither, env CLINICGRID_CONFIG is used.
    """
    store = JsonDirStore(Path(data_dir) if data_dir is not None else default_data_dir())
    conf = cfg if cfg is not None else load_planner_config(config_path)
    return Planner(store, conf, date=date, today=today)


def memory_planner(
    cfg: Optional[PlannerConfig] = None,
    *,
    date: "dt.date | str | None" = None,
    today: Optional[Callable[[], dt.date]] = None,
    id_factory: IdFactory = new_id,
) -> Planner:
    """Planner over a throwaway in-memory store."""
    return Planner(MemoryStore(), cfg or PlannerConfig(), date=date, today=today, id_factory=id_factory)


# --- Public API exports --------------------------------------------------
_PUBLIC_EXPORTS = (
    "AddPatientResult",
    "DateHorizon",
    "DayContext",
    "DaySnapshot",
    "EntityRegistries",
    "EventDraft",
    "EventLifecycleManager",
    "EventTemplate",
    "GestureController",
    "GestureError",
    "InputValidationError",
    "JsonDirStore",
    "KeyValueStore",
    "MemoryStore",
    "Page",
    "Patient",
    "Placement",
    "Planner",
    "PlannerConfig",
    "ScheduleStore",
    "ScheduledEvent",
    "Staff",
    "TimeGrid",
    "load_planner_config",
    "memory_planner",
    "open_planner",
    "paginate",
    "snapshot",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
# --- /Public API exports --------------------------------------------------
