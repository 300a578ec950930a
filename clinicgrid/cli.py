from __future__ import annotations

import argparse
import datetime as dt
import json
import os
import sys
from typing import Any, Callable, Dict, List, Optional

from .api import open_planner
from .export import page_to_dict
from .model import DEFAULT_EVENT_COLOR, DEFAULT_STAFF_COLOR, EventDraft
from .planner import Planner
from .storage import DATA_DIR_ENV, default_data_dir
from .util.timeparse import minutes_to_hhmm, parse_date_yyyy_mm_dd
from .validate import (
    InputValidationError,
    RecordValidationError,
    optional_text,
    parse_color,
    parse_date,
    parse_duration,
    parse_start,
    require_text,
)


def _die(msg: str, rc: int = 2) -> int:
    print(f"[clinicgrid] ERROR: {msg}", file=sys.stderr)
    return rc


def _emit(obj: Any) -> None:
    print(json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False))


def _miss(what: str) -> int:
    _emit({"ok": False, "warning": f"{what} not found"})
    return 1


def _day_view(pl: Planner) -> Dict[str, Any]:
    lo, hi = pl.horizon.bounds()
    return {
        "date": pl.date,
        "horizon": {"min": lo.isoformat(), "max": hi.isoformat()},
        "grid": {
            "start": minutes_to_hhmm(pl.grid.day_start_min),
            "end": minutes_to_hhmm(pl.grid.day_end_min),
            "slot_minutes": pl.grid.slot_minutes,
            "total_slots": pl.grid.total_slots,
            "height_px": pl.grid.column_height_px,
            "labels": pl.grid.slot_labels(),
        },
        "config": pl.cfg.to_dict(),
        "patients": [p.to_record() for p in pl.patients()],
        "patient_count": f"{len(pl.day.patients)}/{pl.cfg.max_patients}",
        "staff": [s.to_record() for s in pl.staff()],
        "templates": [t.to_record() for t in pl.templates()],
        "scheduled": [dict(ev.to_record(), staffNames=pl.day.staff_names(ev)) for ev in pl.scheduled()],
    }


# --- commands -----------------------------------------------------------------

def _cmd_show(pl: Planner, ns: argparse.Namespace) -> int:
    _emit(_day_view(pl))
    return 0


def _cmd_add_patient(pl: Planner, ns: argparse.Namespace) -> int:
    res = pl.add_patient(require_text(ns.name, field="name"))
    if not res.ok or res.patient is None:
        _emit({"ok": False, "warning": res.warning})
        return 1
    _emit({"ok": True, "patient": res.patient.to_record()})
    return 0


def _cmd_rename_patient(pl: Planner, ns: argparse.Namespace) -> int:
    p = pl.rename_patient(ns.patient_id, require_text(ns.name, field="name"))
    if p is None:
        return _miss("patient")
    _emit({"ok": True, "patient": p.to_record()})
    return 0


def _cmd_delete_patient(pl: Planner, ns: argparse.Namespace) -> int:
    removed = pl.delete_patient(ns.patient_id)
    if removed is None:
        return _miss("patient")
    _emit({"ok": True, "removed_events": removed})
    return 0


def _cmd_add_staff(pl: Planner, ns: argparse.Namespace) -> int:
    s = pl.add_staff(require_text(ns.name, field="name"), parse_color(ns.color, default=DEFAULT_STAFF_COLOR))
    _emit({"ok": True, "staff": s.to_record()})
    return 0


def _cmd_update_staff(pl: Planner, ns: argparse.Namespace) -> int:
    color = parse_color(ns.color, default="") or None
    s = pl.update_staff(ns.staff_id, name=optional_text(ns.name) or None, color=color)
    if s is None:
        return _miss("staff")
    _emit({"ok": True, "staff": s.to_record()})
    return 0


def _cmd_delete_staff(pl: Planner, ns: argparse.Namespace) -> int:
    if not pl.delete_staff(ns.staff_id):
        return _miss("staff")
    _emit({"ok": True})
    return 0


def _cmd_add_template(pl: Planner, ns: argparse.Namespace) -> int:
    t = pl.add_template(
        require_text(ns.title, field="title"),
        parse_duration(ns.duration, default=pl.cfg.default_duration),
        color=parse_color(ns.color, default=DEFAULT_EVENT_COLOR),
        description=optional_text(ns.description),
    )
    _emit({"ok": True, "template": t.to_record()})
    return 0


def _cmd_delete_template(pl: Planner, ns: argparse.Namespace) -> int:
    if not pl.delete_template(ns.template_id):
        return _miss("template")
    _emit({"ok": True})
    return 0


def _event_result(ev) -> int:
    if ev is None:
        return _miss("event, template, patient or staff")
    _emit({"ok": True, "event": ev.to_record()})
    return 0


def _cmd_place(pl: Planner, ns: argparse.Namespace) -> int:
    return _event_result(pl.events.create_from_template(ns.template_id, ns.patient_id, ns.slot))


def _cmd_quick(pl: Planner, ns: argparse.Namespace) -> int:
    draft = EventDraft(
        title=require_text(ns.title, field="title"),
        duration=parse_duration(ns.duration, default=pl.cfg.default_duration),
        color=parse_color(ns.color, default=DEFAULT_EVENT_COLOR),
        description=optional_text(ns.description),
    )
    return _event_result(pl.events.quick_create(draft, ns.patient_id, ns.slot))


def _cmd_move(pl: Planner, ns: argparse.Namespace) -> int:
    return _event_result(pl.events.move(ns.event_id, ns.dy, ns.dcols))


def _cmd_resize(pl: Planner, ns: argparse.Namespace) -> int:
    return _event_result(pl.events.resize(ns.event_id, ns.edge, ns.dy))


def _cmd_drop(pl: Planner, ns: argparse.Namespace) -> int:
    return _event_result(pl.events.reassign_via_drop(ns.event_id, ns.patient_id, ns.slot))


def _cmd_edit(pl: Planner, ns: argparse.Namespace) -> int:
    ev = pl.events.edit(
        ns.event_id,
        title=optional_text(ns.title) or None,
        start=parse_start(ns.start) if ns.start else None,
        duration=parse_duration(ns.duration, default=pl.cfg.default_duration) if ns.duration else None,
        color=parse_color(ns.color, default="") or None,
        description=ns.description.strip() if ns.description is not None else None,
    )
    return _event_result(ev)


def _cmd_delete_event(pl: Planner, ns: argparse.Namespace) -> int:
    if not pl.events.delete(ns.event_id):
        return _miss("event")
    _emit({"ok": True})
    return 0


def _cmd_assign_staff(pl: Planner, ns: argparse.Namespace) -> int:
    return _event_result(pl.events.add_staff(ns.event_id, ns.staff_id))


def _cmd_unassign_staff(pl: Planner, ns: argparse.Namespace) -> int:
    return _event_result(pl.events.remove_staff(ns.event_id, ns.staff_id))


def _cmd_strip_staff(pl: Planner, ns: argparse.Namespace) -> int:
    _emit({"ok": True, "events_touched": pl.events.strip_staff(ns.staff_id)})
    return 0


def _cmd_export(pl: Planner, ns: argparse.Namespace) -> int:
    pages = pl.pages(ns.per_page)
    _emit({"date": pl.date, "pages": [page_to_dict(p) for p in pages]})
    return 0


# --- parser -------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="clinicgrid",
        description="Per-day patient planner: a time grid of patient columns with scheduled events.",
    )
    ap.add_argument(
        "--data-dir",
        default=None,
        help=f"Data directory (default: env {DATA_DIR_ENV} or ~/.clinicgrid)",
    )
    ap.add_argument("--config", default=None, help="Planner config JSON (default: env CLINICGRID_CONFIG)")
    ap.add_argument("--date", default=None, help="Date to open, YYYY-MM-DD (clamped to the horizon; default: today)")
    ap.add_argument("--today", default=None, help="Pin 'today' for the horizon, YYYY-MM-DD (default: env CLINICGRID_TZ clock)")
    sub = ap.add_subparsers(dest="cmd", required=True)

    def add(name: str, fn: Callable[[Planner, argparse.Namespace], int], help_: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_)
        p.set_defaults(fn=fn)
        return p

    add("show", _cmd_show, "Print the day view")

    p = add("add-patient", _cmd_add_patient, "Add a patient column to the date")
    p.add_argument("name")
    p = add("rename-patient", _cmd_rename_patient, "Rename a patient on the date")
    p.add_argument("patient_id")
    p.add_argument("name")
    p = add("delete-patient", _cmd_delete_patient, "Delete a patient and their events on the date")
    p.add_argument("patient_id")

    p = add("add-staff", _cmd_add_staff, "Add a staff member (global)")
    p.add_argument("name")
    p.add_argument("--color", default=None)
    p = add("update-staff", _cmd_update_staff, "Rename or recolor a staff member")
    p.add_argument("staff_id")
    p.add_argument("--name", default=None)
    p.add_argument("--color", default=None)
    p = add("delete-staff", _cmd_delete_staff, "Delete a staff member and prune them from the loaded day")
    p.add_argument("staff_id")

    p = add("add-template", _cmd_add_template, "Add an event template (global)")
    p.add_argument("title")
    p.add_argument("--duration", default=None, help="Minutes (default: config default_duration)")
    p.add_argument("--color", default=None)
    p.add_argument("--description", default=None)
    p = add("delete-template", _cmd_delete_template, "Delete an event template")
    p.add_argument("template_id")

    p = add("place", _cmd_place, "Drop a template onto a patient column at a slot")
    p.add_argument("template_id")
    p.add_argument("patient_id")
    p.add_argument("slot", type=int)
    p = add("quick", _cmd_quick, "Quick-create an event in a patient column at a slot")
    p.add_argument("patient_id")
    p.add_argument("slot", type=int)
    p.add_argument("--title", required=True)
    p.add_argument("--duration", default=None)
    p.add_argument("--color", default=None)
    p.add_argument("--description", default=None)
    p = add("move", _cmd_move, "Drag an event by a pixel/column delta")
    p.add_argument("event_id")
    p.add_argument("--dy", type=float, default=0.0, help="Vertical delta in pixels")
    p.add_argument("--dcols", type=float, default=0.0, help="Horizontal delta in columns")
    p = add("resize", _cmd_resize, "Drag an event's top or bottom edge")
    p.add_argument("event_id")
    p.add_argument("edge", choices=["top", "bottom"])
    p.add_argument("--dy", type=float, required=True, help="Vertical delta in pixels")
    p = add("drop", _cmd_drop, "Drop an event onto a patient column at a slot")
    p.add_argument("event_id")
    p.add_argument("patient_id")
    p.add_argument("slot", type=int)
    p = add("edit", _cmd_edit, "Edit an event (title, start, duration, color, description)")
    p.add_argument("event_id")
    p.add_argument("--title", default=None)
    p.add_argument("--start", default=None, help="HH:MM")
    p.add_argument("--duration", default=None)
    p.add_argument("--color", default=None)
    p.add_argument("--description", default=None)
    p = add("delete-event", _cmd_delete_event, "Delete an event")
    p.add_argument("event_id")
    p = add("assign-staff", _cmd_assign_staff, "Add a staff member to an event")
    p.add_argument("event_id")
    p.add_argument("staff_id")
    p = add("unassign-staff", _cmd_unassign_staff, "Remove a staff member from an event")
    p.add_argument("event_id")
    p.add_argument("staff_id")
    p = add("strip-staff", _cmd_strip_staff, "Remove a staff member from every event of the date")
    p.add_argument("staff_id")

    p = add("export", _cmd_export, "Print the day as pages of patient columns")
    p.add_argument("--per-page", type=int, default=None, help="Patient columns per page (default: config)")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ns = _build_parser().parse_args(argv)

    today: Optional[Callable[[], dt.date]] = None
    try:
        if ns.today:
            pinned = parse_date_yyyy_mm_dd(ns.today)
            today = lambda: pinned  # noqa: E731
        date = parse_date(ns.date) if ns.date else None
    except ValueError as e:
        return _die(str(e))

    data_dir = ns.data_dir or str(default_data_dir())
    if ns.config and not os.path.exists(ns.config):
        return _die(f"Missing config: {ns.config}")

    try:
        pl = open_planner(data_dir, config_path=ns.config, date=date, today=today)
    except ValueError as e:
        return _die(f"Invalid timezone or config: {e}")
    except OSError as e:
        return _die(f"Cannot open data directory '{data_dir}': {e}")

    try:
        return int(ns.fn(pl, ns))
    except InputValidationError as e:
        return _die(str(e))
    except RecordValidationError as e:
        return _die(f"Stored data not written: {e}")
    except ValueError as e:
        return _die(str(e))
    except OSError as e:
        return _die(f"Cannot write data directory '{data_dir}': {e}")


if __name__ == "__main__":
    raise SystemExit(main())
