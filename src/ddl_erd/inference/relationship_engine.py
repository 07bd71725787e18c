"""
Relationship Inference Engine - turns table metadata into relationships.

Runs three ordered passes over one shared relationship list:
1. Direct foreign keys declared in DDL
2. Junction tables collapsed into MANY_TO_MANY links
3. Column naming conventions (<stem>_id -> <stem variant>.id)

and then deduplicates and sorts the result deterministically.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Set, Tuple

from ddl_erd.config import InferenceConfig, ManyToManyMode
from ddl_erd.inference.cardinality import resolve_cardinality
from ddl_erd.inference.compatibility import are_types_compatible
from ddl_erd.inference.registry import ConstraintRegistry
from ddl_erd.models import Cardinality, ColumnReference, Relationship

logger = logging.getLogger(__name__)

RelationshipKey = Tuple[str, str, str, str]

_ID_COLUMN_PATTERN = re.compile(r'^(.+)_id$', re.IGNORECASE)


class RelationshipEngine:
    """
    Infers relationships for one parsed script.

    The engine owns its relationship list for the duration of one ``infer()``
    call; construct a new engine per script.
    """

    def __init__(
        self,
        registry: ConstraintRegistry,
        junction_tables: Sequence[str] = (),
        config: Optional[InferenceConfig] = None,
    ):
        self.registry = registry
        self.junction_tables = [name.lower() for name in junction_tables]
        self.config = config or InferenceConfig()

        self.relationships: List[Relationship] = []
        self._keys: Set[RelationshipKey] = set()

    def infer(self) -> List[Relationship]:
        """Run all passes and return deduplicated, ordered relationships."""
        self.infer_direct()
        self.infer_junctions()
        if self.config.enable_convention_pass:
            self.infer_from_conventions()

        result = deduplicate_and_sort(self.relationships)
        logger.info(
            f"Inferred {len(result)} relationships "
            f"({len(self.relationships)} before deduplication)"
        )
        return result

    def infer_direct(self) -> List[Relationship]:
        """Emit one relationship per FOREIGN KEY column pair on non-junction tables."""
        for metadata in self.registry:
            if metadata.name in self.junction_tables:
                continue

            for fk in metadata.foreign_keys:
                ref_table = fk.referenced_table or ""
                for column, ref_column in fk.column_pairs():
                    self._add(
                        ColumnReference(metadata.name, column),
                        ColumnReference(ref_table, ref_column),
                        resolve_cardinality(self.registry, metadata.name, column, ref_table, ref_column),
                        origin="direct",
                    )

        logger.debug(f"Direct pass: {len(self.relationships)} relationships")
        return self.relationships

    def infer_junctions(self) -> List[Relationship]:
        """Emit a MANY_TO_MANY link between the two tables each junction joins."""
        for name in self.junction_tables:
            metadata = self.registry.get(name)
            if metadata is None or len(metadata.foreign_keys) != 2:
                continue

            first, second = metadata.foreign_keys
            if not first.referenced_columns or not second.referenced_columns:
                continue

            left = ColumnReference(first.referenced_table or "", first.referenced_columns[0])
            right = ColumnReference(second.referenced_table or "", second.referenced_columns[0])

            self._add(left, right, Cardinality.MANY_TO_MANY, junction_table=metadata.name, origin="junction")
            if self.config.many_to_many_mode == ManyToManyMode.BIDIRECTIONAL:
                self._add(right, left, Cardinality.MANY_TO_MANY, junction_table=metadata.name, origin="junction")

        return self.relationships

    def infer_from_conventions(self) -> List[Relationship]:
        """
        Infer relationships from ``<stem>_id`` column names.

        Each stem expands to candidate table names (user -> user, users,
        usera, ...). A candidate that exists, is not the column's own table,
        and has a type-compatible ``id`` column yields a relationship.
        """
        target_column = self.config.convention_target_column
        before = len(self.relationships)

        for metadata in self.registry:
            for col in metadata.table.columns:
                if col.foreign_key is not None:
                    continue

                match = _ID_COLUMN_PATTERN.match(col.name)
                if not match:
                    continue

                for candidate in self.config.candidate_tables(match.group(1)):
                    if candidate == metadata.name:
                        continue

                    ref_meta = self.registry.get(candidate)
                    if ref_meta is None:
                        continue

                    ref_col = ref_meta.table.get_column(target_column)
                    if ref_col is None or not are_types_compatible(col.data_type, ref_col.data_type):
                        continue

                    self._add(
                        ColumnReference(metadata.name, col.name),
                        ColumnReference(ref_meta.name, ref_col.name),
                        resolve_cardinality(self.registry, metadata.name, col.name, ref_meta.name, ref_col.name),
                        origin="convention",
                    )

        logger.debug(f"Convention pass: {len(self.relationships) - before} relationships")
        return self.relationships

    def _add(
        self,
        source: ColumnReference,
        target: ColumnReference,
        cardinality: Cardinality,
        junction_table: Optional[str] = None,
        origin: str = "direct",
    ) -> None:
        """Append a relationship unless its key was already emitted."""
        relationship = Relationship(
            source=source,
            target=target,
            cardinality=cardinality,
            junction_table=junction_table,
            origin=origin,
        )
        if relationship.key in self._keys:
            return
        self._keys.add(relationship.key)
        self.relationships.append(relationship)


def deduplicate_and_sort(relationships: Sequence[Relationship]) -> List[Relationship]:
    """
    Collapse relationships with the same endpoints and order them.

    The first occurrence of a key wins. Ordering is by cardinality priority
    (ONE_TO_ONE, ONE_TO_MANY, MANY_TO_ONE, MANY_TO_MANY), then by the source
    endpoint's ``table.column``.
    """
    seen: Set[RelationshipKey] = set()
    unique: List[Relationship] = []

    for rel in relationships:
        if rel.key in seen:
            continue
        seen.add(rel.key)
        unique.append(rel)

    unique.sort(key=lambda r: (r.cardinality.priority, r.source.qualified_name))
    return unique
