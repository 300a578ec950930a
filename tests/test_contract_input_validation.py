from __future__ import annotations

import datetime as dt
import os
import unittest
from unittest import mock

from clinicgrid.util.timeparse import hhmm_to_minutes, minutes_to_hhmm, parse_date_yyyy_mm_dd
from clinicgrid.util.tz import normalize_tz_name, resolve_tz, today_date
from clinicgrid.validate import (
    InputValidationError,
    parse_color,
    parse_date,
    parse_duration,
    parse_start,
    require_text,
)


class TestInputValidationContract(unittest.TestCase):
    def test_require_text(self) -> None:
        self.assertEqual(require_text("  Ann ", field="name"), "Ann")
        with self.assertRaises(InputValidationError):
            require_text("   ", field="name")

    def test_parse_color(self) -> None:
        self.assertEqual(parse_color("", default="#4e79a7"), "#4e79a7")
        self.assertEqual(parse_color("#abc", default="#4e79a7"), "#abc")
        with self.assertRaises(InputValidationError):
            parse_color("red", default="#4e79a7")

    def test_parse_duration_floors_at_form_minimum(self) -> None:
        self.assertEqual(parse_duration("", default=30), 30)
        self.assertEqual(parse_duration("5", default=30), 15)
        self.assertEqual(parse_duration("45", default=30), 45)
        for bad in ("abc", "0", "-10", "1.5"):
            with self.assertRaises(InputValidationError):
                parse_duration(bad, default=30)

    def test_parse_start_and_date(self) -> None:
        self.assertEqual(parse_start("09:30"), 570)
        self.assertEqual(parse_date(" 2025-11-12 "), "2025-11-12")
        for bad in ("9h30", "25:00", ""):
            with self.assertRaises(InputValidationError):
                parse_start(bad)
        with self.assertRaises(InputValidationError):
            parse_date("2025-02-30")

    def test_time_helpers(self) -> None:
        self.assertEqual(hhmm_to_minutes("24:00"), 1440)
        self.assertEqual(minutes_to_hhmm(525), "08:45")
        self.assertEqual(parse_date_yyyy_mm_dd("2025-11-12"), dt.date(2025, 11, 12))

    def test_timezone_resolution(self) -> None:
        self.assertEqual(normalize_tz_name(None), "local")
        self.assertEqual(normalize_tz_name("z"), "UTC")
        self.assertEqual(resolve_tz("+02:00").utcoffset(None), dt.timedelta(hours=2))
        with self.assertRaises(ValueError):
            resolve_tz("Not/AZone")
        with mock.patch.dict(os.environ, {"CLINICGRID_TZ": "UTC"}):
            self.assertEqual(today_date(), dt.datetime.now(dt.timezone.utc).date())


if __name__ == "__main__":
    unittest.main(verbosity=2)
