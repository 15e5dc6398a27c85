from __future__ import annotations

import unittest

from app.domain.sector_mapping import GroupType
from app.errors import MappingValidationError
from app.validators.group_name_validator import (
    parse_group_type,
    resolve_group_name,
    validate_import_group_name,
)


class TestResolveGroupName(unittest.TestCase):
    def test_non_klm_always_uses_reserved_name(self) -> None:
        for supplied in (None, "", "Anything", "Green"):
            with self.subTest(supplied=supplied):
                self.assertEqual(resolve_group_name(GroupType.NON_KLM, supplied), "Non KLM")

    def test_green_always_uses_reserved_name(self) -> None:
        for supplied in (None, "Forestry", "Non KLM"):
            with self.subTest(supplied=supplied):
                self.assertEqual(resolve_group_name(GroupType.GREEN, supplied), "Green")

    def test_specific_sector_keeps_supplied_name(self) -> None:
        self.assertEqual(resolve_group_name(GroupType.SPECIFIC_SECTOR, "  Agriculture "), "Agriculture")

    def test_specific_sector_rejects_missing_or_reserved_names(self) -> None:
        for supplied in (None, "", "   ", "Non KLM", "Green"):
            with self.subTest(supplied=supplied):
                with self.assertRaises(MappingValidationError):
                    resolve_group_name(GroupType.SPECIFIC_SECTOR, supplied)


class TestValidateImportGroupName(unittest.TestCase):
    def test_fixed_types_require_their_reserved_name(self) -> None:
        self.assertEqual(validate_import_group_name(GroupType.GREEN, "Green"), "Green")
        with self.assertRaises(MappingValidationError):
            validate_import_group_name(GroupType.GREEN, "Forestry")
        with self.assertRaises(MappingValidationError):
            validate_import_group_name(GroupType.NON_KLM, "Green")

    def test_specific_sector_follows_creation_rule(self) -> None:
        self.assertEqual(validate_import_group_name(GroupType.SPECIFIC_SECTOR, "Mining"), "Mining")
        with self.assertRaises(MappingValidationError):
            validate_import_group_name(GroupType.SPECIFIC_SECTOR, "Non KLM")


class TestParseGroupType(unittest.TestCase):
    def test_accepts_names_and_labels(self) -> None:
        self.assertIs(parse_group_type("NON_KLM"), GroupType.NON_KLM)
        self.assertIs(parse_group_type("Non KLM"), GroupType.NON_KLM)
        self.assertIs(parse_group_type("specific sector"), GroupType.SPECIFIC_SECTOR)
        self.assertIs(parse_group_type(" green "), GroupType.GREEN)
        self.assertIs(parse_group_type(GroupType.GREEN), GroupType.GREEN)

    def test_rejects_unknown_values(self) -> None:
        for value in ("BLUE", "", None, 3):
            with self.subTest(value=value):
                with self.assertRaises(MappingValidationError):
                    parse_group_type(value)


if __name__ == "__main__":
    unittest.main()
