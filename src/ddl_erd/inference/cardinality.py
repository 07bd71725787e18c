"""
Cardinality resolution for a single (from, to) column pair.
"""

from __future__ import annotations

from ddl_erd.inference.registry import ConstraintRegistry
from ddl_erd.models import Cardinality


def resolve_cardinality(
    registry: ConstraintRegistry,
    from_table: str,
    from_column: str,
    to_table: str,
    to_column: str,
) -> Cardinality:
    """
    Classify the multiplicity of from -> to.

    ONE_TO_ONE when the from column is a single-column UNIQUE or PRIMARY KEY
    and the to column is part of the to table's primary key. Everything else
    is MANY_TO_ONE. ONE_TO_MANY is the inverse reading of a MANY_TO_ONE edge
    and is never produced here.
    """
    if (
        registry.is_primary_key_column(to_table, to_column)
        and registry.has_single_column_key(from_table, from_column)
    ):
        return Cardinality.ONE_TO_ONE
    return Cardinality.MANY_TO_ONE
