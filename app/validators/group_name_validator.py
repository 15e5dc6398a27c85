"""
app/validators/group_name_validator.py

Group-type to group-name business rules.
"""

from __future__ import annotations

from typing import Any

from app.domain.sector_mapping import (
    GREEN_GROUP_NAME,
    NON_KLM_GROUP_NAME,
    RESERVED_GROUP_NAMES,
    GroupType,
)
from app.errors import MappingValidationError

_FIXED_GROUP_NAMES = {
    GroupType.NON_KLM: NON_KLM_GROUP_NAME,
    GroupType.GREEN: GREEN_GROUP_NAME,
}

_GROUP_TYPE_ALIASES = {
    "non_klm": GroupType.NON_KLM,
    "non klm": GroupType.NON_KLM,
    "specific_sector": GroupType.SPECIFIC_SECTOR,
    "specific sector": GroupType.SPECIFIC_SECTOR,
    "green": GroupType.GREEN,
}


def parse_group_type(value: Any) -> GroupType:
    """
    Accept an enum member, its name, or its display label.
    """

    if isinstance(value, GroupType):
        return value
    if isinstance(value, str):
        resolved = _GROUP_TYPE_ALIASES.get(value.strip().lower())
        if resolved is not None:
            return resolved
    raise MappingValidationError(
        f"Invalid group type {value!r}. Allowed: {[member.value for member in GroupType]}.",
        context={"group_type": repr(value)},
    )


def resolve_group_name(group_type: GroupType, supplied_name: str | None) -> str:
    """
    Return the group name a mapping of ``group_type`` must carry.

    NON_KLM and GREEN always map to their reserved name. SPECIFIC_SECTOR
    requires a caller-supplied name that is not one of the reserved names.
    """

    group_type = parse_group_type(group_type)
    fixed = _FIXED_GROUP_NAMES.get(group_type)
    if fixed is not None:
        return fixed

    name = (supplied_name or "").strip()
    if not name:
        raise MappingValidationError(
            "group_name is required when group_type is SPECIFIC_SECTOR.",
            context={"group_type": group_type.value},
        )
    if name in RESERVED_GROUP_NAMES:
        raise MappingValidationError(
            f"group_name cannot be {name!r} when group_type is SPECIFIC_SECTOR.",
            context={"group_type": group_type.value, "group_name": name},
        )
    return name


def validate_import_group_name(group_type: GroupType, supplied_name: str | None) -> str:
    """
    Stricter rule for imported rows: fixed-name group types must already
    carry their reserved name rather than having it substituted.
    """

    group_type = parse_group_type(group_type)
    fixed = _FIXED_GROUP_NAMES.get(group_type)
    if fixed is not None and (supplied_name or "").strip() != fixed:
        raise MappingValidationError(
            f"group_name must be {fixed!r} when group_type is {group_type.value}.",
            context={"group_type": group_type.value, "group_name": supplied_name},
        )
    return resolve_group_name(group_type, supplied_name)
