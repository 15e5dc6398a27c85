from __future__ import annotations

import unittest
from datetime import date

from app.domain.sector_mapping import (
    LogicalMappingId,
    date_to_epoch_millis,
    epoch_millis_to_date,
)
from app.errors import MappingValidationError


class TestLogicalMappingId(unittest.TestCase):
    def test_format_uses_utc_midnight_millis(self) -> None:
        key = LogicalMappingId(group_id=1, group_name="GroupX", effective_start=date(2024, 3, 1))

        self.assertEqual(key.format(), "1_GroupX_1709251200000")
        self.assertEqual(str(key), key.format())

    def test_format_null_start(self) -> None:
        key = LogicalMappingId(group_id=7, group_name="Green", effective_start=None)

        self.assertEqual(key.format(), "7_Green_null")

    def test_parse_round_trips_formatted_id(self) -> None:
        key = LogicalMappingId(group_id=12, group_name="Non KLM", effective_start=date(2023, 11, 14))

        self.assertEqual(LogicalMappingId.parse(key.format()), key)

    def test_parse_keeps_underscores_inside_group_name(self) -> None:
        parsed = LogicalMappingId.parse("4_Oil_and_Gas_1709251200000")

        self.assertEqual(parsed.group_id, 4)
        self.assertEqual(parsed.group_name, "Oil_and_Gas")
        self.assertEqual(parsed.effective_start, date(2024, 3, 1))

    def test_parse_non_midnight_millis_truncates_to_utc_day(self) -> None:
        parsed = LogicalMappingId.parse("1_GroupX_1700000000000")

        self.assertEqual(parsed.effective_start, date(2023, 11, 14))

    def test_parse_null_start(self) -> None:
        parsed = LogicalMappingId.parse("9_Agriculture_null")

        self.assertIsNone(parsed.effective_start)

    def test_parse_rejects_malformed_ids(self) -> None:
        malformed = [
            "",
            "no-separators",
            "1_1709251200000",
            "x_GroupX_1709251200000",
            "1_GroupX_tomorrow",
            "1__1709251200000",
            "-1_GroupX_1709251200000",
        ]
        for value in malformed:
            with self.subTest(value=value):
                with self.assertRaises(MappingValidationError):
                    LogicalMappingId.parse(value)

    def test_parse_rejects_non_string(self) -> None:
        with self.assertRaises(MappingValidationError):
            LogicalMappingId.parse(42)

    def test_validation_error_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            LogicalMappingId.parse("bad")

    def test_epoch_helpers_agree(self) -> None:
        day = date(2025, 12, 31)

        self.assertEqual(epoch_millis_to_date(date_to_epoch_millis(day)), day)
        self.assertEqual(date_to_epoch_millis(date(1970, 1, 1)), 0)


if __name__ == "__main__":
    unittest.main()
