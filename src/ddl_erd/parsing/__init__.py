"""
Parsing module for SQL DDL scripts.

Splits scripts into statements and extracts tables, columns, constraints and
indexes from CREATE TABLE, ALTER TABLE and CREATE INDEX statements.
"""

from ddl_erd.parsing.splitter import split_definitions, split_statements, strip_comments
from ddl_erd.parsing.matcher import DDLMatcher, DDLParseError, RegexDDLMatcher, StatementKind
from ddl_erd.parsing.ddl_parser import DDLParser, ParsedStatement

__all__ = [
    "split_statements",
    "split_definitions",
    "strip_comments",
    "DDLMatcher",
    "DDLParseError",
    "RegexDDLMatcher",
    "StatementKind",
    "DDLParser",
    "ParsedStatement",
]
