"""
DDL ERD - Relational schema inference from SQL DDL

Reads CREATE TABLE / ALTER TABLE / CREATE INDEX scripts and produces tables,
columns, constraints and relationships ready for ER diagram rendering.

Features:
- Quote-aware statement splitting that tolerates malformed input
- Inline and table-level PRIMARY KEY, FOREIGN KEY, UNIQUE and CHECK
- Many-to-many detection through junction tables
- Naming-convention relationships (user_id -> users.id, categoria_id -> categorias.id)
- Deterministic, deduplicated relationship output
"""

__version__ = "0.1.0"

from ddl_erd.models import (
    Cardinality,
    Column,
    ColumnReference,
    Constraint,
    ConstraintKind,
    DatabaseSchema,
    IndexDefinition,
    ParseDiagnostic,
    ParseResult,
    Relationship,
    Severity,
    Table,
    TableMetadata,
)
from ddl_erd.config import InferenceConfig, ManyToManyMode, NameVariant, load_config
from ddl_erd.pipeline import SchemaInferencePipeline, parse_schema

__all__ = [
    # Core models
    "Cardinality",
    "Column",
    "ColumnReference",
    "Constraint",
    "ConstraintKind",
    "DatabaseSchema",
    "IndexDefinition",
    "ParseDiagnostic",
    "ParseResult",
    "Relationship",
    "Severity",
    "Table",
    "TableMetadata",
    # Configuration
    "InferenceConfig",
    "ManyToManyMode",
    "NameVariant",
    "load_config",
    # Pipeline
    "SchemaInferencePipeline",
    "parse_schema",
]
