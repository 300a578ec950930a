#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from clinicgrid.schema import (
    EVENT_TEMPLATES_GLOBAL,
    LATEST_RECORD_VERSION,
    PATIENTS_BY_DATE,
    RECORD_KEYS,
    SCHEDULE_BY_DATE,
    STAFF_GLOBAL,
    record_version,
    upgrade_record,
    wrap_record,
)
from clinicgrid.storage import JsonDirStore, default_data_dir, save_json
from clinicgrid.validate import (
    RecordValidationError,
    event_from_record,
    patient_from_record,
    staff_from_record,
    template_from_record,
    validate_date_partitions,
)


def _die(msg: str, rc: int = 2) -> int:
    print(f"[clinicgrid-validate-store] ERROR: {msg}", file=sys.stderr)
    return rc


def _entries(label: str, items: Any, conv, errs: List[str]) -> list:
    out = []
    if not isinstance(items, list):
        errs.append(f"{label}: must be list")
        return out
    for i, item in enumerate(items):
        obj, e = conv(item)
        if obj is None:
            errs.extend(f"{label}[{i}]: {x}" for x in e)
            continue
        out.append(obj)
    return out


def validate_records(records: Dict[str, Any]) -> tuple[List[str], List[str]]:
    """Check upgraded record data. Returns (errors, warnings).

    Errors are entries the planner would skip on load. Warnings are references
    the planner tolerates: events in a column whose patient is gone, and staff
    ids that no longer resolve (pruned the next time that date is loaded).
    """
    errs: List[str] = []
    warns: List[str] = []

    staff = _entries("staff", records.get(STAFF_GLOBAL, []), staff_from_record, errs)
    staff_ids: Set[str] = {s.id for s in staff}
    _entries("templates", records.get(EVENT_TEMPLATES_GLOBAL, []), template_from_record, errs)

    patients_by_date = records.get(PATIENTS_BY_DATE, {})
    errs.extend(validate_date_partitions(patients_by_date, label="patients"))
    patient_ids: Dict[str, Set[str]] = {}
    if isinstance(patients_by_date, dict):
        for day, items in patients_by_date.items():
            ps = _entries(f"patients[{day}]", items, patient_from_record, errs)
            patient_ids[day] = {p.id for p in ps}

    schedule = records.get(SCHEDULE_BY_DATE, {})
    errs.extend(validate_date_partitions(schedule, label="schedule"))
    if isinstance(schedule, dict):
        for day, items in schedule.items():
            if not isinstance(items, list):
                continue
            seen: Set[str] = set()
            for i, item in enumerate(items):
                ev, e = event_from_record(item, date=day)
                if ev is None:
                    errs.extend(f"schedule[{day}][{i}]: {x}" for x in e)
                    continue
                if ev.id in seen:
                    errs.append(f"schedule[{day}][{i}]: duplicate event id {ev.id!r}")
                seen.add(ev.id)
                if ev.patient_id not in patient_ids.get(day, set()):
                    warns.append(f"schedule[{day}][{i}]: patient {ev.patient_id!r} not on that date")
                for sid in ev.staff:
                    if sid not in staff_ids:
                        warns.append(f"schedule[{day}][{i}]: unknown staff {sid!r}")
    return errs, warns


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="clinicgrid-validate-store",
        description=(
            "Validate the planner records of a data directory.\n"
            "Legacy (unversioned) records are upgraded in memory before checking.\n"
            "Never downgrades: records newer than the supported version are an error."
        ),
    )
    ap.add_argument("--data-dir", default=None, help="Data directory (default: env CLINICGRID_DATA or ~/.clinicgrid)")
    ap.add_argument("--strict", action="store_true", help="Treat warnings as errors.")
    ap.add_argument(
        "--write-upgraded",
        action="store_true",
        help=f"Rewrite legacy records as schema v{LATEST_RECORD_VERSION} (only when there are no errors).",
    )
    ns = ap.parse_args(argv)

    root = Path(ns.data_dir) if ns.data_dir else default_data_dir()
    if not root.is_dir():
        return _die(f"Missing data directory: {root}")
    store = JsonDirStore(root)

    records: Dict[str, Any] = {}
    legacy: List[str] = []
    for kind, key in RECORD_KEYS.items():
        raw_text = store.get(key)
        if raw_text is None or not raw_text.strip():
            continue
        try:
            raw = json.loads(raw_text)
            records[kind] = upgrade_record(kind, raw)
        except (ValueError, RecordValidationError) as e:
            return _die(f"Failed to load record {key!r}: {e}")
        if record_version(raw) == 0:
            legacy.append(kind)

    errs, warns = validate_records(records)

    for w in warns:
        print(f"[clinicgrid-validate-store] WARN: {w}", file=sys.stderr)
    if ns.strict:
        errs = errs + warns

    if errs:
        print("[clinicgrid-validate-store] FAIL", file=sys.stderr)
        for e in errs:
            print(f"  - {e}", file=sys.stderr)
        return 3

    if ns.write_upgraded:
        for kind in legacy:
            save_json(store, RECORD_KEYS[kind], wrap_record(kind, records[kind]))
            print(f"[clinicgrid-validate-store] upgraded {RECORD_KEYS[kind]} to v{LATEST_RECORD_VERSION}")

    print("[clinicgrid-validate-store] OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
