"""
Schema Writer - serializes parse results to YAML or JSON and reads them back.

Output document:
    tables:            tables with their columns, in declaration order
    relationships:     from/to endpoints, type, origin, junction_table
    junction_tables:   names of detected junction tables
    diagnostics:       skipped statements and other parse problems
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ddl_erd.models import ParseResult

logger = logging.getLogger(__name__)

FORMATS = ("yaml", "json")


class SchemaWriter:
    """Writes ParseResult documents in YAML or JSON."""

    def __init__(self, fmt: str = "yaml"):
        fmt = fmt.lower()
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported output format: {fmt} (expected one of {', '.join(FORMATS)})")
        self.fmt = fmt

    @classmethod
    def for_path(cls, path: Path, fmt: Optional[str] = None) -> SchemaWriter:
        """Pick the format from an explicit choice or the file suffix."""
        if fmt:
            return cls(fmt)
        return cls("json" if Path(path).suffix.lower() == ".json" else "yaml")

    def dumps(self, result: ParseResult) -> str:
        data = result.to_dict()
        if self.fmt == "json":
            return json.dumps(data, indent=2)
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    def write(self, result: ParseResult, path: Path) -> Path:
        """Write the document and return its path."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(self.dumps(result))

        logger.info(
            f"Wrote {len(result.tables)} tables and {len(result.relationships)} relationships to {path}"
        )
        return path


def load_schema(path: Path) -> ParseResult:
    """
    Load a document written by SchemaWriter.

    JSON is valid YAML, so both formats go through ``yaml.safe_load``.

    Raises:
        ValueError: if the file does not hold a schema document
    """
    path = Path(path)
    with open(path, "r") as f:
        try:
            data: Dict[str, Any] = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid schema file {path}: {e}") from e

    if not isinstance(data, dict) or "tables" not in data:
        raise ValueError(f"{path} is not a schema document")

    try:
        return ParseResult.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Malformed schema document {path}: {e}") from e
