"""
Relationship inference for parsed tables.

Combines:
- Explicit FOREIGN KEY constraints
- Junction-table detection for many-to-many links
- Column naming conventions (<stem>_id -> <stem>s.id)
"""

from ddl_erd.inference.registry import ConstraintRegistry
from ddl_erd.inference.junction import JunctionDetector
from ddl_erd.inference.compatibility import are_types_compatible, normalize_type, type_family
from ddl_erd.inference.cardinality import resolve_cardinality
from ddl_erd.inference.relationship_engine import RelationshipEngine, deduplicate_and_sort

__all__ = [
    "ConstraintRegistry",
    "JunctionDetector",
    "are_types_compatible",
    "normalize_type",
    "type_family",
    "resolve_cardinality",
    "RelationshipEngine",
    "deduplicate_and_sort",
]
