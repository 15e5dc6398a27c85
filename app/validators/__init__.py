"""
app/validators package marker.
"""

from app.validators.group_name_validator import (
    parse_group_type,
    resolve_group_name,
    validate_import_group_name,
)

__all__ = [
    "parse_group_type",
    "resolve_group_name",
    "validate_import_group_name",
]
