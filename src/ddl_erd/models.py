"""
Core data models for the ddl_erd package.

Defines the structures produced by schema inference: columns, tables,
constraints, relationships, and the diagnostics recorded while parsing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ConstraintKind(str, Enum):
    """Kinds of table constraints recognized in DDL."""
    PRIMARY_KEY = "PRIMARY_KEY"
    FOREIGN_KEY = "FOREIGN_KEY"
    UNIQUE = "UNIQUE"
    CHECK = "CHECK"


class Cardinality(str, Enum):
    """Multiplicity of a relationship, listed in output sort priority."""
    ONE_TO_ONE = "ONE_TO_ONE"
    ONE_TO_MANY = "ONE_TO_MANY"
    MANY_TO_ONE = "MANY_TO_ONE"
    MANY_TO_MANY = "MANY_TO_MANY"

    @property
    def priority(self) -> int:
        return _CARDINALITY_ORDER.index(self)


_CARDINALITY_ORDER = list(Cardinality)


class Severity(str, Enum):
    """Severity of a parse diagnostic."""
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ColumnReference:
    """A (table, column) endpoint."""
    table: str
    column: str

    @property
    def qualified_name(self) -> str:
        return f"{self.table}.{self.column}"

    def to_dict(self) -> Dict[str, str]:
        return {"table": self.table, "column": self.column}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ColumnReference:
        return cls(table=data["table"], column=data["column"])


@dataclass
class Column:
    """A single column as declared in CREATE TABLE."""
    name: str
    data_type: str
    nullable: bool = True
    primary_key: bool = False
    foreign_key: Optional[ColumnReference] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "type": self.data_type,
            "nullable": self.nullable,
            "primary_key": self.primary_key,
            "foreign_key": self.foreign_key.to_dict() if self.foreign_key else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Column:
        """Create from dictionary."""
        return cls(
            name=data["name"],
            data_type=data.get("type", ""),
            nullable=data.get("nullable", True),
            primary_key=data.get("primary_key", False),
            foreign_key=ColumnReference.from_dict(data["foreign_key"]) if data.get("foreign_key") else None,
        )


@dataclass
class Table:
    """A table with its columns in declaration order."""
    name: str
    columns: List[Column] = field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        """Return list of column names."""
        return [c.name for c in self.columns]

    def get_column(self, name: str) -> Optional[Column]:
        """Get column by name (case-insensitive)."""
        name_lower = name.lower()
        for col in self.columns:
            if col.name.lower() == name_lower:
                return col
        return None

    def has_column(self, name: str) -> bool:
        return self.get_column(name) is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Table:
        """Create from dictionary."""
        return cls(
            name=data["name"],
            columns=[Column.from_dict(c) for c in data.get("columns", [])],
        )


@dataclass
class Constraint:
    """A PRIMARY KEY, FOREIGN KEY, UNIQUE or CHECK constraint."""
    kind: ConstraintKind
    columns: List[str] = field(default_factory=list)
    referenced_table: Optional[str] = None
    referenced_columns: List[str] = field(default_factory=list)
    name: Optional[str] = None
    expression: Optional[str] = None  # CHECK body, informational only

    def column_pairs(self) -> List[Tuple[str, str]]:
        """
        Pair local columns with referenced columns positionally.

        Columns without a positional partner fall back to the first
        referenced column.
        """
        if not self.referenced_columns:
            return []
        pairs = []
        for index, col in enumerate(self.columns):
            if index < len(self.referenced_columns):
                pairs.append((col, self.referenced_columns[index]))
            else:
                pairs.append((col, self.referenced_columns[0]))
        return pairs


@dataclass
class IndexDefinition:
    """A declared index. Recorded as an auxiliary signal only."""
    columns: List[str]
    name: Optional[str] = None
    unique: bool = False


@dataclass
class TableMetadata:
    """A table together with its constraints and declared indexes."""
    table: Table
    constraints: List[Constraint] = field(default_factory=list)
    indexes: List[IndexDefinition] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.table.name

    @property
    def primary_key(self) -> Optional[Constraint]:
        for constraint in self.constraints:
            if constraint.kind == ConstraintKind.PRIMARY_KEY:
                return constraint
        return None

    @property
    def primary_key_columns(self) -> List[str]:
        pk = self.primary_key
        return list(pk.columns) if pk else []

    @property
    def foreign_keys(self) -> List[Constraint]:
        return [c for c in self.constraints if c.kind == ConstraintKind.FOREIGN_KEY]

    @property
    def unique_constraints(self) -> List[Constraint]:
        return [c for c in self.constraints if c.kind == ConstraintKind.UNIQUE]

    def apply_constraint_flags(self) -> None:
        """
        Mirror constraints onto column flags.

        Primary-key membership sets ``primary_key``; the first foreign key
        declared for a column sets its ``foreign_key`` reference.
        """
        for col_name in self.primary_key_columns:
            col = self.table.get_column(col_name)
            if col:
                col.primary_key = True

        for fk in self.foreign_keys:
            for col_name, ref_column in fk.column_pairs():
                col = self.table.get_column(col_name)
                if col and col.foreign_key is None:
                    col.foreign_key = ColumnReference(fk.referenced_table, ref_column)


@dataclass
class Relationship:
    """A directed relationship between two column endpoints."""
    source: ColumnReference
    target: ColumnReference
    cardinality: Cardinality
    junction_table: Optional[str] = None
    origin: str = "direct"  # direct, junction, convention

    @property
    def key(self) -> Tuple[str, str, str, str]:
        """Identity used for deduplication."""
        return (self.source.table, self.source.column, self.target.table, self.target.column)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: Dict[str, Any] = {
            "from": self.source.to_dict(),
            "to": self.target.to_dict(),
            "type": self.cardinality.value,
            "origin": self.origin,
        }
        if self.junction_table:
            data["junction_table"] = self.junction_table
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Relationship:
        """Create from dictionary."""
        return cls(
            source=ColumnReference.from_dict(data["from"]),
            target=ColumnReference.from_dict(data["to"]),
            cardinality=Cardinality(data["type"]),
            junction_table=data.get("junction_table"),
            origin=data.get("origin", "direct"),
        )


@dataclass
class DatabaseSchema:
    """Tables in first-declared order plus ordered relationships."""
    tables: List[Table] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)

    def get_table(self, name: str) -> Optional[Table]:
        """Get table by name (case-insensitive)."""
        name_lower = name.lower()
        for table in self.tables:
            if table.name.lower() == name_lower:
                return table
        return None

    def relationships_for_table(self, table_name: str) -> List[Relationship]:
        """Get all relationships involving a table on either end."""
        table_lower = table_name.lower()
        return [
            rel for rel in self.relationships
            if rel.source.table.lower() == table_lower or rel.target.table.lower() == table_lower
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tables": [t.to_dict() for t in self.tables],
            "relationships": [r.to_dict() for r in self.relationships],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DatabaseSchema:
        return cls(
            tables=[Table.from_dict(t) for t in data.get("tables", [])],
            relationships=[Relationship.from_dict(r) for r in data.get("relationships", [])],
        )


@dataclass
class ParseDiagnostic:
    """A non-fatal problem recorded while parsing a script."""
    message: str
    statement_index: Optional[int] = None  # None for pipeline-level failures
    severity: Severity = Severity.WARNING
    statement: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "statement_index": self.statement_index,
            "severity": self.severity.value,
            "statement": self.statement,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ParseDiagnostic:
        return cls(
            message=data["message"],
            statement_index=data.get("statement_index"),
            severity=Severity(data.get("severity", "warning")),
            statement=data.get("statement"),
        )


@dataclass
class ParseResult:
    """Outcome of one parse call: the schema plus what went wrong."""
    schema: DatabaseSchema = field(default_factory=DatabaseSchema)
    diagnostics: List[ParseDiagnostic] = field(default_factory=list)
    junction_tables: List[str] = field(default_factory=list)

    @property
    def tables(self) -> List[Table]:
        return self.schema.tables

    @property
    def relationships(self) -> List[Relationship]:
        return self.schema.relationships

    @property
    def is_complete(self) -> bool:
        """True when no error-level diagnostic was recorded."""
        return not any(d.severity == Severity.ERROR for d in self.diagnostics)

    def to_dict(self) -> Dict[str, Any]:
        data = self.schema.to_dict()
        data["junction_tables"] = list(self.junction_tables)
        data["diagnostics"] = [d.to_dict() for d in self.diagnostics]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ParseResult:
        return cls(
            schema=DatabaseSchema.from_dict(data),
            diagnostics=[ParseDiagnostic.from_dict(d) for d in data.get("diagnostics", [])],
            junction_tables=list(data.get("junction_tables", [])),
        )
