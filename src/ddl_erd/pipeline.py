"""
Schema Inference Pipeline - SQL text in, DatabaseSchema out.

Ties the stages together:
1. Split the script into statements
2. Parse CREATE TABLE statements into the constraint registry
3. Apply ALTER TABLE constraints and CREATE INDEX definitions
4. Detect junction tables
5. Infer, deduplicate and order relationships

Every stage records problems as diagnostics instead of aborting, and all
working state is local to one ``parse()`` call.
"""

from __future__ import annotations

import copy
import logging
from typing import List, Optional

from ddl_erd.config import InferenceConfig
from ddl_erd.inference.junction import JunctionDetector
from ddl_erd.inference.registry import ConstraintRegistry
from ddl_erd.inference.relationship_engine import RelationshipEngine, deduplicate_and_sort
from ddl_erd.models import (
    DatabaseSchema,
    ParseDiagnostic,
    ParseResult,
    Relationship,
    Severity,
)
from ddl_erd.parsing.ddl_parser import DDLParser, ParsedStatement
from ddl_erd.parsing.matcher import DDLMatcher, StatementKind
from ddl_erd.parsing.splitter import split_statements

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 80


class SchemaInferencePipeline:
    """
    Infers a relational schema from SQL DDL.

    Usage:
        pipeline = SchemaInferencePipeline()
        result = pipeline.parse(open("schema.sql").read())
        for rel in result.relationships:
            ...

    The pipeline only holds configuration and a stateless parser, so one
    instance can serve concurrent callers.
    """

    def __init__(
        self,
        config: Optional[InferenceConfig] = None,
        matcher: Optional[DDLMatcher] = None,
    ):
        self.config = config or InferenceConfig()
        self.parser = DDLParser(matcher)

    def parse(self, sql: str) -> ParseResult:
        """
        Parse a SQL script into a schema.

        Never raises for bad input: malformed statements become diagnostics,
        and an unexpected failure returns whatever was accumulated so far
        together with an error diagnostic.

        Args:
            sql: Script with zero or more semicolon-terminated statements

        Returns:
            ParseResult with the schema, junction tables and diagnostics
        """
        registry = ConstraintRegistry()
        diagnostics: List[ParseDiagnostic] = []
        junctions: List[str] = []
        engine: Optional[RelationshipEngine] = None
        relationships: List[Relationship] = []

        try:
            statements = split_statements(sql or "")
            logger.debug(f"Split script into {len(statements)} statements")

            deferred = self._load_tables(statements, registry, diagnostics)
            self._apply_deferred(deferred, statements, registry, diagnostics)
            registry.resolve_implicit_references()

            junctions = JunctionDetector(self.config).detect(registry)

            engine = RelationshipEngine(registry, junctions, self.config)
            relationships = engine.infer()

        except Exception as e:
            logger.exception(f"Schema inference failed; returning partial schema: {e}")
            diagnostics.append(ParseDiagnostic(
                message=f"Schema inference aborted: {e}",
                severity=Severity.ERROR,
            ))
            if engine is not None:
                relationships = deduplicate_and_sort(engine.relationships)

        schema = DatabaseSchema(
            tables=copy.deepcopy(registry.tables),
            relationships=copy.deepcopy(relationships),
        )

        logger.info(
            f"Parsed {len(schema.tables)} tables, {len(schema.relationships)} relationships, "
            f"{len(diagnostics)} diagnostics"
        )
        return ParseResult(schema=schema, diagnostics=diagnostics, junction_tables=list(junctions))

    def _load_tables(
        self,
        statements: List[str],
        registry: ConstraintRegistry,
        diagnostics: List[ParseDiagnostic],
    ) -> List[ParsedStatement]:
        """Register CREATE TABLE results; return ALTER/INDEX statements for later."""
        deferred: List[ParsedStatement] = []

        for index, statement in enumerate(statements):
            parsed = self.parser.parse(statement, index)
            self._record(parsed, statement, diagnostics)

            if not parsed.is_valid or parsed.kind == StatementKind.OTHER:
                continue

            if parsed.kind == StatementKind.CREATE_TABLE:
                if not registry.register(parsed.metadata):
                    diagnostics.append(self._diagnostic(
                        f"Duplicate table {parsed.table_name}; keeping the first definition",
                        index, statement,
                    ))
            else:
                deferred.append(parsed)

        return deferred

    def _apply_deferred(
        self,
        deferred: List[ParsedStatement],
        statements: List[str],
        registry: ConstraintRegistry,
        diagnostics: List[ParseDiagnostic],
    ) -> None:
        """Apply ALTER TABLE constraints and CREATE INDEX definitions."""
        for parsed in deferred:
            statement = statements[parsed.index]

            if parsed.table_name not in registry:
                diagnostics.append(self._diagnostic(
                    f"{parsed.kind.value} targets unknown table {parsed.table_name}",
                    parsed.index, statement,
                ))
                continue

            if parsed.kind == StatementKind.CREATE_INDEX:
                registry.add_index(parsed.table_name, parsed.index_definition)
                continue

            for constraint in parsed.constraints:
                try:
                    registry.add_constraint(parsed.table_name, constraint)
                except ValueError as e:
                    diagnostics.append(self._diagnostic(str(e), parsed.index, statement))

    def _record(
        self,
        parsed: ParsedStatement,
        statement: str,
        diagnostics: List[ParseDiagnostic],
    ) -> None:
        for error in parsed.parse_errors:
            diagnostics.append(self._diagnostic(error, parsed.index, statement, Severity.ERROR))
        for warning in parsed.warnings:
            diagnostics.append(self._diagnostic(warning, parsed.index, statement))

    def _diagnostic(
        self,
        message: str,
        index: int,
        statement: str,
        severity: Severity = Severity.WARNING,
    ) -> ParseDiagnostic:
        excerpt = " ".join(statement.split())
        if len(excerpt) > EXCERPT_LENGTH:
            excerpt = excerpt[: EXCERPT_LENGTH - 3] + "..."
        return ParseDiagnostic(message=message, statement_index=index, severity=severity, statement=excerpt)


def parse_schema(sql: str, config: Optional[InferenceConfig] = None) -> ParseResult:
    """
    Convenience function to infer a schema from SQL DDL.

    Args:
        sql: SQL script text
        config: Optional inference configuration

    Returns:
        ParseResult with tables, relationships, junction tables and diagnostics
    """
    return SchemaInferencePipeline(config).parse(sql)
