"""
Junction Table Detector - finds tables that only implement many-to-many links.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ddl_erd.config import InferenceConfig
from ddl_erd.inference.registry import ConstraintRegistry
from ddl_erd.models import TableMetadata

logger = logging.getLogger(__name__)


class JunctionDetector:
    """
    Flags pure many-to-many junction tables.

    A table qualifies when:
    1. It has exactly two FOREIGN KEY constraints
    2. Its PRIMARY KEY columns are exactly the union of those keys' columns
    3. Apart from the key columns and audit columns (created_at, ...), at most
       ``max_junction_extra_columns`` other columns remain

    Must run after every CREATE TABLE is parsed, since referenced tables may
    be declared later in the script.
    """

    def __init__(self, config: Optional[InferenceConfig] = None):
        self.config = config or InferenceConfig()

    def detect(self, registry: ConstraintRegistry) -> List[str]:
        """Return junction table names in table order."""
        junctions = [m.name for m in registry if self.is_junction(m)]
        if junctions:
            logger.info(f"Detected {len(junctions)} junction tables: {', '.join(junctions)}")
        return junctions

    def is_junction(self, metadata: TableMetadata) -> bool:
        foreign_keys = metadata.foreign_keys
        if len(foreign_keys) != 2:
            return False

        fk_columns = {col for fk in foreign_keys for col in fk.columns}
        pk_columns = set(metadata.primary_key_columns)
        if not pk_columns or pk_columns != fk_columns:
            return False

        extra = [
            col for col in metadata.table.columns
            if col.name not in fk_columns and not self.config.is_audit_column(col.name)
        ]
        return len(extra) <= self.config.max_junction_extra_columns
