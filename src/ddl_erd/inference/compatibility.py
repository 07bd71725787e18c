"""
Type compatibility between columns that might reference one another.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

TYPE_FAMILIES: Dict[str, frozenset] = {
    "integer": frozenset([
        "int", "integer", "bigint", "smallint", "serial", "bigserial", "tinyint", "mediumint",
    ]),
    "string": frozenset(["varchar", "char", "text", "string", "nvarchar", "nchar"]),
    "decimal": frozenset(["decimal", "numeric", "float", "double", "real", "money"]),
    "datetime": frozenset(["date", "datetime", "timestamp", "time"]),
    "uuid": frozenset(["uuid", "uniqueidentifier"]),
}

_PARAMS = re.compile(r'\([^)]*\)')


def normalize_type(data_type: str) -> str:
    """Strip precision suffixes and lower-case: ``VARCHAR(100)`` -> ``varchar``."""
    return _PARAMS.sub("", data_type or "").strip().lower()


def type_family(data_type: str) -> Optional[str]:
    """Return the family name of a type, or None if unrecognized."""
    normalized = normalize_type(data_type)
    for family, members in TYPE_FAMILIES.items():
        if normalized in members:
            return family
    return None


def are_types_compatible(type_a: str, type_b: str) -> bool:
    """
    Decide whether two declared types can plausibly reference each other.

    Types are compatible when they share a family or are identical after
    normalization. Unrecognized types only match themselves.
    """
    norm_a = normalize_type(type_a)
    norm_b = normalize_type(type_b)
    if norm_a == norm_b:
        return True

    family_a = type_family(norm_a)
    return family_a is not None and family_a == type_family(norm_b)
