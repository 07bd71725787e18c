"""
DDL Parser - extracts tables and constraints from SQL DDL statements.

Classifies each statement by its leading keyword and turns CREATE TABLE,
ALTER TABLE ... ADD CONSTRAINT and CREATE INDEX statements into table
metadata. Unrecognized statements are ignored; malformed ones are reported
on the returned ParsedStatement instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ddl_erd.models import (
    Column,
    Constraint,
    ConstraintKind,
    IndexDefinition,
    Table,
    TableMetadata,
)
from ddl_erd.parsing.matcher import (
    DDLMatcher,
    DDLParseError,
    DefinitionKind,
    RegexDDLMatcher,
    StatementKind,
)
from ddl_erd.parsing.splitter import split_definitions, split_statements

logger = logging.getLogger(__name__)


@dataclass
class ParsedStatement:
    """Result of parsing one DDL statement."""
    index: int
    kind: StatementKind
    table_name: Optional[str] = None
    metadata: Optional[TableMetadata] = None            # CREATE TABLE
    constraints: List[Constraint] = field(default_factory=list)  # ALTER TABLE
    index_definition: Optional[IndexDefinition] = None  # CREATE INDEX
    is_valid: bool = True
    parse_errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class DDLParser:
    """
    Parses DDL statements into table metadata.

    Supports:
    - CREATE TABLE with inline and table-level constraints
    - ALTER TABLE ... ADD [CONSTRAINT] (applied later by the caller)
    - CREATE [UNIQUE] INDEX (auxiliary index metadata)

    Recognition is delegated to a DDLMatcher; the default is RegexDDLMatcher.
    The parser holds no per-script state and can be shared between calls.
    """

    def __init__(self, matcher: Optional[DDLMatcher] = None):
        self.matcher = matcher or RegexDDLMatcher()

    def classify(self, statement: str) -> StatementKind:
        return self.matcher.classify(statement)

    def parse(self, statement: str, index: int = 0) -> ParsedStatement:
        """
        Parse a single statement.

        Args:
            statement: One SQL statement without its terminating semicolon
            index: Position of the statement in its script (for diagnostics)

        Returns:
            ParsedStatement; ``is_valid`` is False when the statement was skipped
        """
        kind = self.matcher.classify(statement)
        result = ParsedStatement(index=index, kind=kind)

        try:
            if kind == StatementKind.CREATE_TABLE:
                self._parse_create_table(statement, result)
            elif kind == StatementKind.ALTER_TABLE:
                self._parse_alter_table(statement, result)
            elif kind == StatementKind.CREATE_INDEX:
                self._parse_create_index(statement, result)
        except Exception as e:
            result.is_valid = False
            result.parse_errors.append(str(e) or e.__class__.__name__)
            logger.warning(f"Skipping statement {index + 1} ({kind.value}): {e}")

        return result

    def parse_script(self, sql: str) -> List[ParsedStatement]:
        """Split a script and parse every statement."""
        return [self.parse(stmt, i) for i, stmt in enumerate(split_statements(sql))]

    def _parse_create_table(self, statement: str, result: ParsedStatement) -> None:
        name, body = self.matcher.match_create_table(statement)
        result.table_name = name

        columns: List[Column] = []
        constraints: List[Constraint] = []
        indexes: List[IndexDefinition] = []
        inline_pk: List[str] = []

        for definition in split_definitions(body):
            try:
                kind = self.matcher.classify_definition(definition)
                if kind == DefinitionKind.INDEX:
                    indexes.append(self.matcher.match_index_definition(definition))
                elif kind != DefinitionKind.COLUMN:
                    constraints.append(self.matcher.match_constraint(definition))
                else:
                    self._add_column(definition, columns, constraints, inline_pk)
            except DDLParseError as e:
                result.warnings.append(f"{name}: {e}")
                logger.debug(f"Skipping definition in {name}: {e}")

        if not columns:
            raise DDLParseError(f"No column definitions found for table {name}")

        constraints = self._merge_primary_keys(name, inline_pk, constraints, result)

        metadata = TableMetadata(
            table=Table(name=name, columns=columns),
            constraints=constraints,
            indexes=indexes,
        )
        metadata.apply_constraint_flags()
        result.metadata = metadata

        logger.debug(
            f"Parsed table {name}: {len(columns)} columns, {len(constraints)} constraints"
        )

    def _add_column(
        self,
        definition: str,
        columns: List[Column],
        constraints: List[Constraint],
        inline_pk: List[str],
    ) -> None:
        """Parse a column definition and record its inline constraints."""
        match = self.matcher.match_column(definition)

        if any(c.name == match.name for c in columns):
            raise DDLParseError(f"Duplicate column {match.name} ignored")

        columns.append(Column(
            name=match.name,
            data_type=match.data_type,
            nullable=not match.not_null,
            primary_key=match.primary_key,
        ))

        if match.primary_key:
            inline_pk.append(match.name)
        if match.unique:
            constraints.append(Constraint(ConstraintKind.UNIQUE, [match.name]))
        if match.references:
            ref_table, ref_columns = match.references
            constraints.append(Constraint(
                ConstraintKind.FOREIGN_KEY,
                [match.name],
                referenced_table=ref_table,
                referenced_columns=ref_columns,
            ))
        if match.check is not None:
            constraints.append(Constraint(ConstraintKind.CHECK, [match.name], expression=match.check))

    def _merge_primary_keys(
        self,
        table_name: str,
        inline_pk: List[str],
        constraints: List[Constraint],
        result: ParsedStatement,
    ) -> List[Constraint]:
        """Collapse inline and table-level PRIMARY KEYs into one leading constraint."""
        declared = [c for c in constraints if c.kind == ConstraintKind.PRIMARY_KEY]
        others = [c for c in constraints if c.kind != ConstraintKind.PRIMARY_KEY]

        if not inline_pk and not declared:
            return others

        if len(declared) + (1 if inline_pk else 0) > 1:
            result.warnings.append(f"{table_name}: multiple PRIMARY KEY definitions merged")

        pk_columns: List[str] = []
        for col in inline_pk + [c for pk in declared for c in pk.columns]:
            if col not in pk_columns:
                pk_columns.append(col)

        name = next((pk.name for pk in declared if pk.name), None)
        return [Constraint(ConstraintKind.PRIMARY_KEY, pk_columns, name=name)] + others

    def _parse_alter_table(self, statement: str, result: ParsedStatement) -> None:
        match = self.matcher.match_alter_table(statement)
        result.table_name = match.table

        for added in match.added:
            try:
                result.constraints.append(self.matcher.match_constraint(added))
            except DDLParseError as e:
                result.warnings.append(f"{match.table}: {e}")

    def _parse_create_index(self, statement: str, result: ParsedStatement) -> None:
        match = self.matcher.match_create_index(statement)
        result.table_name = match.table
        result.index_definition = match.index
