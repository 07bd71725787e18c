"""
Constraint Registry - per-table store of key, unique and index metadata.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from ddl_erd.models import (
    Constraint,
    ConstraintKind,
    IndexDefinition,
    Table,
    TableMetadata,
)

logger = logging.getLogger(__name__)


class ConstraintRegistry:
    """
    Table metadata keyed by normalized table name, in registration order.

    Owned by a single parse call; nothing here is shared between calls.
    """

    def __init__(self):
        self._tables: Dict[str, TableMetadata] = {}

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._tables

    def __iter__(self) -> Iterator[TableMetadata]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)

    @property
    def tables(self) -> List[Table]:
        return [m.table for m in self._tables.values()]

    def register(self, metadata: TableMetadata) -> bool:
        """Add a table. Returns False if the name is already taken (first wins)."""
        key = metadata.name.lower()
        if key in self._tables:
            return False
        self._tables[key] = metadata
        return True

    def get(self, name: str) -> Optional[TableMetadata]:
        """Get table metadata by name (case-insensitive)."""
        return self._tables.get(name.lower())

    def add_constraint(self, table_name: str, constraint: Constraint) -> None:
        """
        Attach a constraint to a registered table.

        Raises:
            KeyError: if the table is unknown
            ValueError: if a second PRIMARY KEY is added
        """
        metadata = self._require(table_name)
        if constraint.kind == ConstraintKind.PRIMARY_KEY and metadata.primary_key is not None:
            raise ValueError(f"Table {metadata.name} already has a primary key")

        metadata.constraints.append(constraint)
        metadata.apply_constraint_flags()

    def add_index(self, table_name: str, index: IndexDefinition) -> None:
        """Record a declared index. Raises KeyError if the table is unknown."""
        self._require(table_name).indexes.append(index)

    def resolve_implicit_references(self) -> None:
        """
        Fill in ``REFERENCES t`` clauses that named no columns.

        Such a reference targets ``t``'s primary key; when that is unknown or
        composite, ``id`` is assumed.
        """
        for metadata in self._tables.values():
            changed = False
            for fk in metadata.foreign_keys:
                if fk.referenced_columns:
                    continue
                target = self.get(fk.referenced_table or "")
                target_pk = target.primary_key_columns if target else []
                if len(target_pk) == len(fk.columns) and target_pk:
                    fk.referenced_columns = list(target_pk)
                else:
                    fk.referenced_columns = ["id"]
                changed = True
                logger.debug(
                    f"Resolved implicit reference {metadata.name}({', '.join(fk.columns)}) "
                    f"-> {fk.referenced_table}({', '.join(fk.referenced_columns)})"
                )
            if changed:
                metadata.apply_constraint_flags()

    def is_primary_key_column(self, table_name: str, column_name: str) -> bool:
        """True if the column belongs to the table's PRIMARY KEY."""
        metadata = self.get(table_name)
        if not metadata:
            return False
        return column_name.lower() in metadata.primary_key_columns

    def has_single_column_key(self, table_name: str, column_name: str) -> bool:
        """True if the column alone is a PRIMARY KEY or UNIQUE constraint."""
        metadata = self.get(table_name)
        if not metadata:
            return False
        column_lower = column_name.lower()
        for constraint in metadata.constraints:
            if constraint.kind not in (ConstraintKind.PRIMARY_KEY, ConstraintKind.UNIQUE):
                continue
            if constraint.columns == [column_lower]:
                return True
        return False

    def _require(self, table_name: str) -> TableMetadata:
        metadata = self.get(table_name)
        if metadata is None:
            raise KeyError(table_name)
        return metadata
