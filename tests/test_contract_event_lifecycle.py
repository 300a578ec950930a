from __future__ import annotations

import datetime as dt
import itertools
import json
import unittest

from clinicgrid.config import PlannerConfig
from clinicgrid.model import EventDraft
from clinicgrid.planner import Planner
from clinicgrid.schema import PATIENTS_BY_DATE
from clinicgrid.storage import MemoryStore, write_record

DAY = "2025-11-12"


def _ids(prefix: str = "id"):
    n = itertools.count(1)
    return lambda: f"{prefix}-{next(n)}"


def _planner(store: MemoryStore | None = None, cfg: PlannerConfig | None = None) -> Planner:
    store = store if store is not None else MemoryStore()
    write_record(store, PATIENTS_BY_DATE, {DAY: [{"id": "P1", "name": "Ann"}, {"id": "P2", "name": "Bob"}]})
    return Planner(
        store,
        cfg or PlannerConfig(),
        today=lambda: dt.date(2025, 11, 12),
        id_factory=_ids(),
        date=DAY,
    )


def _stored(pl: Planner) -> list:
    raw = pl.store.get("planner_schedule")
    return json.loads(raw)["data"].get(DAY, []) if raw else []


class TestEventCreateContract(unittest.TestCase):
    def test_template_drop_keeps_template_duration(self) -> None:
        pl = _planner()
        t = pl.add_template("Physio", 45)
        ev = pl.events.create_from_template(t.id, "P1", 0)
        self.assertIsNotNone(ev)
        rec = ev.to_record()
        self.assertEqual((rec["start"], rec["end"], rec["patientId"]), ("08:00", "08:45", "P1"))
        self.assertEqual(rec["date"], DAY)
        self.assertEqual(_stored(pl), [rec])

    def test_quick_create_uses_default_duration(self) -> None:
        pl = _planner()
        ev = pl.events.quick_create(EventDraft(title="Check"), "P2", 4)
        self.assertEqual((ev.start_hhmm, ev.end_hhmm, ev.duration), ("10:00", "10:30", 30))
        self.assertEqual(ev.color, "#4e79a7")

    def test_create_near_day_end_is_pulled_inside(self) -> None:
        pl = _planner()
        ev = pl.events.quick_create(EventDraft(title="Long", duration=90), "P1", 19)
        self.assertEqual((ev.start_hhmm, ev.end_hhmm), ("16:30", "18:00"))

    def test_create_with_unknown_template_or_patient_is_noop(self) -> None:
        pl = _planner()
        t = pl.add_template("Physio", 45)
        self.assertIsNone(pl.events.create_from_template("nope", "P1", 0))
        self.assertIsNone(pl.events.create_from_template(t.id, "ghost", 0))
        self.assertEqual(pl.scheduled(), [])
        self.assertIsNone(pl.store.get("planner_schedule"))


class TestEventMoveResizeContract(unittest.TestCase):
    def setUp(self) -> None:
        self.pl = _planner()
        self.t = self.pl.add_template("Physio", 45)
        self.ev = self.pl.events.create_from_template(self.t.id, "P1", 0)

    def test_resize_bottom_by_two_slots(self) -> None:
        ev = self.pl.events.resize(self.ev.id, "bottom", 2 * 28)
        self.assertEqual((ev.start_hhmm, ev.end_hhmm, ev.duration), ("08:00", "09:45", 105))
        self.assertEqual(_stored(self.pl)[0]["end"], "09:45")

    def test_resize_bottom_never_below_one_slot(self) -> None:
        ev = self.pl.events.resize(self.ev.id, "bottom", -500)
        self.assertEqual((ev.start_hhmm, ev.end_hhmm), ("08:00", "08:30"))

    def test_resize_bottom_stops_at_day_end(self) -> None:
        ev = self.pl.events.resize(self.ev.id, "bottom", 10_000)
        self.assertEqual(ev.end_hhmm, "18:00")

    def test_resize_top(self) -> None:
        ev = self.pl.events.quick_create(EventDraft(title="X", duration=30), "P2", 2)
        self.assertEqual(ev.start_hhmm, "09:00")
        # Dragging the top edge past the end keeps one slot.
        self.pl.events.resize(ev.id, "top", 100)
        self.assertEqual((ev.start_hhmm, ev.end_hhmm), ("09:00", "09:30"))
        # Dragging above the day start floors at the first slot.
        self.pl.events.resize(ev.id, "top", -1000)
        self.assertEqual((ev.start_hhmm, ev.end_hhmm, ev.duration), ("08:00", "09:30", 90))

    def test_resize_top_stays_on_grid_for_partial_slot_duration(self) -> None:
        grid = self.pl.grid
        ev = self.pl.events.resize(self.ev.id, "top", 28)
        self.assertTrue(grid.is_aligned(ev.start))
        self.assertEqual((ev.start_hhmm, ev.end_hhmm, ev.duration), ("08:30", "09:00", 30))
        ev = self.pl.events.resize(self.ev.id, "top", -28)
        self.assertTrue(grid.is_aligned(ev.start))
        self.assertEqual((ev.start_hhmm, ev.end_hhmm), ("08:00", "09:00"))
        self.assertEqual(_stored(self.pl)[0]["start"], "08:00")

    def test_resize_rejects_unknown_edge(self) -> None:
        with self.assertRaises(ValueError):
            self.pl.events.resize(self.ev.id, "left", 10)

    def test_move_snaps_and_keeps_duration(self) -> None:
        ev = self.pl.events.move(self.ev.id, 3 * 28 + 5)
        self.assertEqual((ev.start_hhmm, ev.end_hhmm), ("09:30", "10:15"))
        self.assertEqual(ev.duration, 45)

    def test_move_clamps_to_day_and_columns(self) -> None:
        ev = self.pl.events.move(self.ev.id, 10_000, 5)
        self.assertEqual((ev.start_hhmm, ev.end_hhmm, ev.patient_id), ("17:00", "17:45", "P2"))
        ev = self.pl.events.move(self.ev.id, -10_000, -7)
        self.assertEqual((ev.start_hhmm, ev.patient_id), ("08:00", "P1"))

    def test_small_column_delta_stays_in_column(self) -> None:
        ev = self.pl.events.move(self.ev.id, 0, 0.4)
        self.assertEqual(ev.patient_id, "P1")
        ev = self.pl.events.move(self.ev.id, 0, 0.5)
        self.assertEqual(ev.patient_id, "P2")

    def test_reassign_via_drop(self) -> None:
        ev = self.pl.events.reassign_via_drop(self.ev.id, "P2", 3)
        self.assertEqual((ev.patient_id, ev.start_hhmm, ev.end_hhmm), ("P2", "09:30", "10:15"))
        self.assertIsNone(self.pl.events.reassign_via_drop(self.ev.id, "ghost", 0))
        self.assertEqual(ev.patient_id, "P2")

    def test_missing_event_ids_are_noops(self) -> None:
        before = self.pl.store.get("planner_schedule")
        self.assertIsNone(self.pl.events.move("nope", 28))
        self.assertIsNone(self.pl.events.resize("nope", "top", 28))
        self.assertIsNone(self.pl.events.edit("nope", title="x"))
        self.assertFalse(self.pl.events.delete("nope"))
        self.assertIsNone(self.pl.events.add_staff("nope", "S1"))
        self.assertEqual(self.pl.store.get("planner_schedule"), before)


class TestEventEditContract(unittest.TestCase):
    def setUp(self) -> None:
        self.pl = _planner()
        self.ev = self.pl.events.quick_create(EventDraft(title="X"), "P1", 0)

    def test_edit_snaps_start_to_nearest_slot(self) -> None:
        ev = self.pl.events.edit(self.ev.id, title="Y", start=9 * 60 + 10, color="#123456", description="d")
        self.assertEqual((ev.title, ev.color, ev.description), ("Y", "#123456", "d"))
        self.assertEqual((ev.start_hhmm, ev.end_hhmm), ("09:00", "09:30"))

    def test_edit_duration_keeps_block_inside_day(self) -> None:
        ev = self.pl.events.edit(self.ev.id, start=17 * 60, duration=90)
        self.assertEqual((ev.start_hhmm, ev.end_hhmm, ev.duration), ("16:30", "18:00", 90))

    def test_delete(self) -> None:
        self.assertTrue(self.pl.events.delete(self.ev.id))
        self.assertEqual(self.pl.scheduled(), [])
        self.assertEqual(_stored(self.pl), [])


class TestEventStaffContract(unittest.TestCase):
    def setUp(self) -> None:
        self.pl = _planner()
        self.s = self.pl.add_staff("Dr A")
        self.ev = self.pl.events.quick_create(EventDraft(title="X"), "P1", 0)

    def test_add_staff_is_idempotent(self) -> None:
        self.pl.events.add_staff(self.ev.id, self.s.id)
        self.pl.events.add_staff(self.ev.id, self.s.id)
        self.assertEqual(self.ev.staff, [self.s.id])
        self.assertEqual(_stored(self.pl)[0]["staff"], [self.s.id])

    def test_add_unknown_staff_is_noop(self) -> None:
        self.assertIsNone(self.pl.events.add_staff(self.ev.id, "ghost"))
        self.assertEqual(self.ev.staff, [])

    def test_remove_staff_is_idempotent(self) -> None:
        self.pl.events.add_staff(self.ev.id, self.s.id)
        self.pl.events.remove_staff(self.ev.id, self.s.id)
        self.pl.events.remove_staff(self.ev.id, self.s.id)
        self.assertEqual(self.ev.staff, [])
        self.assertEqual(_stored(self.pl)[0]["staff"], [])

    def test_strip_staff_from_day(self) -> None:
        other = self.pl.events.quick_create(EventDraft(title="Y"), "P2", 0)
        for e in (self.ev, other):
            self.pl.events.add_staff(e.id, self.s.id)
        self.assertEqual(self.pl.events.strip_staff(self.s.id), 2)
        self.assertEqual(self.pl.events.strip_staff(self.s.id), 0)
        self.assertEqual([e["staff"] for e in _stored(self.pl)], [[], []])


if __name__ == "__main__":
    unittest.main(verbosity=2)
