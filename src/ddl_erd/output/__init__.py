"""
Output module for writing inferred schemas.

Supports:
- YAML documents
- JSON documents
"""

from ddl_erd.output.writer import SchemaWriter, load_schema

__all__ = [
    "SchemaWriter",
    "load_schema",
]
