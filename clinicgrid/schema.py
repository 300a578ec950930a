# clinicgrid/schema.py
from __future__ import annotations

from typing import Any, Dict

from .validate import RecordValidationError, validate_date_partitions

SCHEMA_PREFIX = "clinicgrid."
LATEST_RECORD_VERSION = 1

PATIENTS_BY_DATE = "patients_by_date"
STAFF_GLOBAL = "staff_global"
EVENT_TEMPLATES_GLOBAL = "event_templates_global"
SCHEDULE_BY_DATE = "schedule_by_date"

# Storage keys match the browser planner's localStorage keys so legacy blobs load as-is.
RECORD_KEYS: Dict[str, str] = {
    PATIENTS_BY_DATE: "planner_patients",
    STAFF_GLOBAL: "planner_staff",
    EVENT_TEMPLATES_GLOBAL: "planner_events",
    SCHEDULE_BY_DATE: "planner_schedule",
}

_DATE_KEYED = {PATIENTS_BY_DATE, SCHEDULE_BY_DATE}


def schema_name(kind: str) -> str:
    return SCHEMA_PREFIX + kind


def empty_data(kind: str) -> Any:
    return {} if kind in _DATE_KEYED else []


def wrap_record(kind: str, data: Any) -> Dict[str, Any]:
    """Envelope for a persisted record (schema v1)."""
    if kind not in RECORD_KEYS:
        raise ValueError(f"Unknown record kind: {kind!r}")
    return {
        "schema": {"name": schema_name(kind), "version": LATEST_RECORD_VERSION},
        "data": data,
    }


def record_version(raw: Any) -> int:
    """0 for bare legacy blobs, else the declared envelope version."""
    if isinstance(raw, dict) and isinstance(raw.get("schema"), dict):
        v = raw["schema"].get("version")
        return int(v) if isinstance(v, int) and not isinstance(v, bool) else -1
    return 0


def shape_issues(kind: str, data: Any) -> list[str]:
    label = schema_name(kind)
    if kind in _DATE_KEYED:
        return validate_date_partitions(data, label=label)
    if not isinstance(data, list):
        return [f"{label}: data must be list"]
    return []


def upgrade_record(kind: str, raw: Any) -> Any:
    """Return the v1 `data` of a stored record. Never downgrades.

    Version 0 is the untyped blob written by the browser planner: a bare
    mapping (date-keyed kinds) or a bare list. Date keys that do not parse are
    dropped here so one stray key cannot poison the whole record.
    """
    if kind not in RECORD_KEYS:
        raise ValueError(f"Unknown record kind: {kind!r}")

    ver = record_version(raw)
    if ver < 0:
        raise RecordValidationError(f"{schema_name(kind)}: schema.version must be an int")
    if ver > LATEST_RECORD_VERSION:
        raise RecordValidationError(
            f"Unsupported record version: {ver} (latest={LATEST_RECORD_VERSION})"
        )

    if ver == 0:
        data = raw
    else:
        name = raw["schema"].get("name")
        if name != schema_name(kind):
            raise RecordValidationError(f"record name mismatch: {name!r} != {schema_name(kind)!r}")
        data = raw.get("data")

    if kind in _DATE_KEYED and isinstance(data, dict):
        errs = shape_issues(kind, data)
        if errs:
            data = {k: v for k, v in data.items() if _partition_ok(k, v)}
        return data

    errs = shape_issues(kind, data)
    if errs:
        raise RecordValidationError(errs[0])
    return data


def _partition_ok(key: Any, value: Any) -> bool:
    if not isinstance(value, list):
        return False
    return not validate_date_partitions({key: value}, label="")


__all__ = [
    "EVENT_TEMPLATES_GLOBAL",
    "LATEST_RECORD_VERSION",
    "PATIENTS_BY_DATE",
    "RECORD_KEYS",
    "SCHEDULE_BY_DATE",
    "STAFF_GLOBAL",
    "empty_data",
    "record_version",
    "schema_name",
    "shape_issues",
    "upgrade_record",
    "wrap_record",
]
