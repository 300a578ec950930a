from __future__ import annotations

import itertools
import json
import unittest

from clinicgrid.config import PlannerConfig
from clinicgrid.model import ScheduledEvent
from clinicgrid.registries import EntityRegistries
from clinicgrid.schedule_store import ScheduleStore
from clinicgrid.storage import MemoryStore
from clinicgrid.validate import RecordValidationError


def _ids(prefix: str = "id"):
    n = itertools.count(1)
    return lambda: f"{prefix}-{next(n)}"


def _ev(eid: str, date: str, patient_id: str, staff=()) -> ScheduledEvent:
    return ScheduledEvent(
        id=eid, title="T", description="", color="#4e79a7", duration=30,
        staff=list(staff), date=date, patient_id=patient_id, start=480, end=510,
    )


class TestEntityRegistriesContract(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStore()
        self.schedule = ScheduleStore(self.store)
        self.reg = EntityRegistries(self.store, self.schedule, PlannerConfig(max_patients=2), id_factory=_ids())

    def test_patients_are_date_scoped(self) -> None:
        a = self.reg.add_patient("2025-11-12", "Ann").patient
        self.reg.add_patient("2025-11-13", "Bob")
        self.assertEqual([p.name for p in self.reg.patients("2025-11-12")], ["Ann"])
        self.assertEqual([p.name for p in self.reg.patients("2025-11-13")], ["Bob"])
        self.assertEqual(self.reg.patients("2025-11-14"), [])
        self.assertIsNotNone(self.reg.rename_patient("2025-11-12", a.id, "Anne"))
        self.assertEqual(self.reg.patients("2025-11-12")[0].name, "Anne")
        self.assertIsNone(self.reg.rename_patient("2025-11-13", a.id, "x"))

    def test_capacity_rejects_with_warning_and_no_write(self) -> None:
        self.assertTrue(self.reg.add_patient("2025-11-12", "A").ok)
        self.assertTrue(self.reg.add_patient("2025-11-12", "B").ok)
        before = self.store.get("planner_patients")
        res = self.reg.add_patient("2025-11-12", "C")
        self.assertFalse(res.ok)
        self.assertIsNone(res.patient)
        self.assertEqual(res.warning, "Maximum 2 patients allowed per day.")
        self.assertEqual(self.store.get("planner_patients"), before)
        # Capacity is per date.
        self.assertTrue(self.reg.add_patient("2025-11-13", "C").ok)

    def test_delete_patient_cascades_only_on_that_date(self) -> None:
        self.reg.save_patients("2025-11-12", [])
        p = self.reg.add_patient("2025-11-12", "Ann").patient
        self.reg.add_patient("2025-11-12", "Bob")
        self.schedule.save("2025-11-12", [_ev("e1", "2025-11-12", p.id), _ev("e2", "2025-11-12", "other")])
        self.schedule.save("2025-11-13", [_ev("e3", "2025-11-13", p.id)])

        self.assertEqual(self.reg.delete_patient("2025-11-12", p.id), 1)
        self.assertEqual([e.id for e in self.schedule.load("2025-11-12")], ["e2"])
        self.assertEqual([e.id for e in self.schedule.load("2025-11-13")], ["e3"])
        self.assertEqual([x.name for x in self.reg.patients("2025-11-12")], ["Bob"])
        self.assertIsNone(self.reg.delete_patient("2025-11-12", p.id))

    def test_staff_crud_and_blank_rename(self) -> None:
        s = self.reg.add_staff("Dr A", "#ff0000")
        self.assertEqual(self.reg.get_staff(s.id).color, "#ff0000")
        self.reg.update_staff(s.id, name="  ", color="#00ff00")
        got = self.reg.get_staff(s.id)
        self.assertEqual(got.name, "Dr A")
        self.assertEqual(got.color, "#00ff00")
        self.assertIsNone(self.reg.update_staff("missing", name="x"))
        self.assertFalse(self.reg.delete_staff("missing"))

    def test_delete_staff_prunes_templates(self) -> None:
        s = self.reg.add_staff("Dr A")
        keep = self.reg.add_staff("Dr B")
        t = self.reg.add_template("Physio", 45, staff=[s.id, keep.id, s.id])
        self.assertEqual(t.staff, [s.id, keep.id])
        self.assertTrue(self.reg.delete_staff(s.id))
        self.assertEqual(self.reg.get_template(t.id).staff, [keep.id])
        self.assertEqual([x.id for x in self.reg.staff()], [keep.id])

    def test_delete_staff_leaves_unloaded_schedules_stored(self) -> None:
        s = self.reg.add_staff("Dr A")
        self.schedule.save("2025-11-13", [_ev("e1", "2025-11-13", "P1", [s.id])])
        self.reg.delete_staff(s.id)
        raw = json.loads(self.store.get("planner_schedule"))
        self.assertEqual(raw["data"]["2025-11-13"][0]["staff"], [s.id])

    def test_template_defaults_update_and_delete(self) -> None:
        t = self.reg.add_template("Consult")
        self.assertEqual(t.duration, 30)
        self.assertEqual(t.color, "#4e79a7")
        self.reg.update_template(t.id, duration=45, description="first visit")
        got = self.reg.get_template(t.id)
        self.assertEqual((got.duration, got.description), (45, "first visit"))

        self.schedule.save("2025-11-12", [_ev("e1", "2025-11-12", "P1")])
        self.assertTrue(self.reg.delete_template(t.id))
        self.assertIsNone(self.reg.get_template(t.id))
        self.assertEqual([e.id for e in self.schedule.load("2025-11-12")], ["e1"])
        self.assertFalse(self.reg.delete_template(t.id))

    def test_newer_staff_record_is_not_overwritten(self) -> None:
        blob = json.dumps({"schema": {"name": "clinicgrid.staff_global", "version": 2}, "data": [{"id": "S9"}]})
        self.store.set("planner_staff", blob)
        self.assertEqual(self.reg.staff(), [])
        with self.assertRaises(RecordValidationError):
            self.reg.add_staff("Dr A")
        self.assertEqual(self.store.get("planner_staff"), blob)

    def test_writes_do_not_touch_other_records(self) -> None:
        self.reg.add_patient("2025-11-12", "Ann")
        before = self.store.get("planner_patients")
        self.reg.add_staff("Dr A")
        self.reg.add_template("X")
        self.assertEqual(self.store.get("planner_patients"), before)
        self.assertIsNone(self.store.get("planner_schedule"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
