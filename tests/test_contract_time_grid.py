from __future__ import annotations

import unittest

from clinicgrid.config import PlannerConfig
from clinicgrid.grid import TimeGrid, round_half_up


class TestTimeGridContract(unittest.TestCase):
    def setUp(self) -> None:
        self.g = TimeGrid(start_hour=8, end_hour=18, slot_minutes=30, slot_px=28.0)

    def test_default_grid_slot_count_and_labels(self) -> None:
        self.assertEqual(self.g.total_slots, 20)
        self.assertEqual(self.g.slot_label(4), "10:00")
        self.assertEqual(self.g.slot_index_to_time(4), 600)
        labels = self.g.slot_labels()
        self.assertEqual(len(labels), 21)
        self.assertEqual(labels[0], "08:00")
        self.assertEqual(labels[-1], "18:00")

    def test_from_config(self) -> None:
        g = TimeGrid.from_config(PlannerConfig(start_hour=7, end_hour=19, slot_minutes=15))
        self.assertEqual(g.total_slots, 48)
        self.assertEqual(g.day_start_min, 420)
        self.assertEqual(g.day_end_min, 1140)

    def test_slot_time_inverse_for_every_slot(self) -> None:
        for i in range(self.g.total_slots):
            self.assertEqual(self.g.time_to_slot_index(self.g.slot_index_to_time(i)), i)

    def test_unaligned_time_floors_to_containing_slot(self) -> None:
        self.assertEqual(self.g.time_to_slot_index(8 * 60 + 44), 1)
        self.assertFalse(self.g.is_aligned(8 * 60 + 44))
        self.assertTrue(self.g.is_aligned(9 * 60 + 30))

    def test_pixel_rounding_and_clamping(self) -> None:
        self.assertEqual(self.g.pixel_to_slot_index(13.9), 0)
        self.assertEqual(self.g.pixel_to_slot_index(14.0), 1)
        self.assertEqual(self.g.pixel_to_slot_index(-500), 0)
        self.assertEqual(self.g.pixel_to_slot_index(10_000), 19)
        self.assertEqual(self.g.slot_index_to_pixel(3), 84.0)
        self.assertEqual(self.g.pixel_delta_to_slots(-42), -1)

    def test_round_half_up_matches_pointer_math(self) -> None:
        self.assertEqual(round_half_up(0.5), 1)
        self.assertEqual(round_half_up(1.5), 2)
        self.assertEqual(round_half_up(-0.5), 0)
        self.assertEqual(round_half_up(-1.5), -1)

    def test_fit_start_slot_keeps_block_inside_day(self) -> None:
        self.assertEqual(self.g.fit_start_slot(19, 30), 19)
        self.assertEqual(self.g.fit_start_slot(19, 45), 18)
        self.assertEqual(self.g.fit_start_slot(19, 90), 17)
        self.assertEqual(self.g.fit_start_slot(-3, 30), 0)
        # Longer than the day: pinned to the first slot.
        self.assertEqual(self.g.fit_start_slot(10, 24 * 60), 0)

    def test_block_geometry(self) -> None:
        top, height = self.g.block_geometry(9 * 60, 9 * 60 + 45)
        self.assertAlmostEqual(top, 56.0)
        self.assertAlmostEqual(height, 42.0)
        top, height = self.g.block_geometry(17 * 60 + 30, 19 * 60)
        self.assertAlmostEqual(height, 28.0)

    def test_invalid_grid_rejected(self) -> None:
        with self.assertRaises(ValueError):
            TimeGrid(start_hour=18, end_hour=8, slot_minutes=30, slot_px=28.0)
        with self.assertRaises(ValueError):
            TimeGrid(start_hour=8, end_hour=18, slot_minutes=7, slot_px=28.0)
        with self.assertRaises(ValueError):
            TimeGrid(start_hour=8, end_hour=18, slot_minutes=30, slot_px=0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
