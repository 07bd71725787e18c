"""
Pattern matching for DDL statements.

All SQL recognition is isolated behind ``DDLMatcher`` so that the table parser
and the inference passes never touch regular expressions directly. The
default ``RegexDDLMatcher`` is a best-effort heuristic recognizer; a stricter
grammar-based backend can implement the same interface.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ddl_erd.models import Constraint, ConstraintKind, IndexDefinition
from ddl_erd.parsing.splitter import find_matching_paren, split_definitions

logger = logging.getLogger(__name__)

# Identifier: quoted ("x", `x`, [x]) or bare, optionally schema-qualified
IDENT = r'(?:"[^"]+"|`[^`]+`|\[[^\]]+\]|[A-Za-z_][\w$#]*)'
QUALIFIED = rf'{IDENT}(?:\s*\.\s*{IDENT})*'

_IDENT_RE = re.compile(IDENT)


class DDLParseError(ValueError):
    """A statement or definition could not be recognized."""


class StatementKind(str, Enum):
    """Statement classes the parser distinguishes by leading keyword."""
    CREATE_TABLE = "create_table"
    ALTER_TABLE = "alter_table"
    CREATE_INDEX = "create_index"
    OTHER = "other"


class DefinitionKind(str, Enum):
    """Classes of entries inside a CREATE TABLE body."""
    PRIMARY_KEY = "primary_key"
    FOREIGN_KEY = "foreign_key"
    UNIQUE = "unique"
    CHECK = "check"
    CONSTRAINT = "constraint"
    INDEX = "index"
    COLUMN = "column"


@dataclass
class ColumnMatch:
    """Recognized pieces of a column definition."""
    name: str
    data_type: str
    not_null: bool = False
    primary_key: bool = False
    unique: bool = False
    references: Optional[Tuple[str, List[str]]] = None  # (table, columns)
    check: Optional[str] = None


@dataclass
class AlterTableMatch:
    """An ALTER TABLE statement reduced to its target and ADD clauses."""
    table: str
    added: List[str] = field(default_factory=list)


@dataclass
class IndexMatch:
    """A CREATE INDEX statement."""
    table: str
    index: IndexDefinition


def normalize_identifier(raw: str) -> str:
    """
    Normalize an identifier: drop schema qualifiers and quoting, lower-case.

    ``public."Users"`` becomes ``users``.
    """
    parts = _IDENT_RE.findall(raw.strip())
    name = parts[-1] if parts else raw.strip()
    if name[:1] in ('"', '`', '[') and len(name) >= 2:
        name = name[1:-1]
    return name.strip().lower()


def parse_column_list(text: str) -> List[str]:
    """Turn ``a, "b" DESC, c`` into ``['a', 'b', 'c']``."""
    columns = []
    for item in split_definitions(text):
        token = _IDENT_RE.match(item.strip())
        if token:
            columns.append(normalize_identifier(token.group(0)))
    return columns


class DDLMatcher:
    """Interface for DDL recognition backends."""

    def classify(self, statement: str) -> StatementKind:
        raise NotImplementedError

    def match_create_table(self, statement: str) -> Tuple[str, str]:
        """Return (table name, body text). Raises DDLParseError."""
        raise NotImplementedError

    def classify_definition(self, definition: str) -> DefinitionKind:
        raise NotImplementedError

    def match_constraint(self, definition: str) -> Constraint:
        """Parse a table-level constraint definition. Raises DDLParseError."""
        raise NotImplementedError

    def match_index_definition(self, definition: str) -> IndexDefinition:
        """Parse an inline ``KEY``/``INDEX`` definition. Raises DDLParseError."""
        raise NotImplementedError

    def match_column(self, definition: str) -> ColumnMatch:
        """Parse a column definition. Raises DDLParseError."""
        raise NotImplementedError

    def match_alter_table(self, statement: str) -> AlterTableMatch:
        raise NotImplementedError

    def match_create_index(self, statement: str) -> IndexMatch:
        raise NotImplementedError


class RegexDDLMatcher(DDLMatcher):
    """
    Regular-expression backed DDL recognizer.

    Supports:
    - CREATE [TEMP|TEMPORARY|UNLOGGED] TABLE [IF NOT EXISTS]
    - Inline and table-level PRIMARY KEY, FOREIGN KEY, UNIQUE, CHECK
    - Named constraints (CONSTRAINT <name> ...)
    - MySQL inline KEY/INDEX and UNIQUE KEY definitions
    - ALTER TABLE ... ADD [CONSTRAINT]
    - CREATE [UNIQUE] INDEX ... ON table (cols)
    """

    _TABLE_PREFIX = r'^CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:GLOBAL|LOCAL)\s+)?(?:TEMP(?:ORARY)?\s+|UNLOGGED\s+)?TABLE'

    CREATE_TABLE_KEYWORD = re.compile(_TABLE_PREFIX + r'\b', re.IGNORECASE)
    ALTER_TABLE_KEYWORD = re.compile(r'^ALTER\s+TABLE\b', re.IGNORECASE)
    CREATE_INDEX_KEYWORD = re.compile(
        r'^CREATE\s+(?:UNIQUE\s+)?(?:CLUSTERED\s+|NONCLUSTERED\s+)?INDEX\b',
        re.IGNORECASE,
    )

    CREATE_TABLE_PATTERN = re.compile(
        _TABLE_PREFIX + rf'\s+(?:IF\s+NOT\s+EXISTS\s+)?({QUALIFIED})\s*\(',
        re.IGNORECASE,
    )

    ALTER_TABLE_PATTERN = re.compile(
        rf'^ALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?({QUALIFIED})\s+(.*)$',
        re.IGNORECASE | re.DOTALL,
    )

    CREATE_INDEX_PATTERN = re.compile(
        r'^CREATE\s+(UNIQUE\s+)?(?:CLUSTERED\s+|NONCLUSTERED\s+)?INDEX\s+'
        r'(?:CONCURRENTLY\s+)?(?:IF\s+NOT\s+EXISTS\s+)?'
        rf'(?:({QUALIFIED})\s+)?ON\s+(?:ONLY\s+)?({QUALIFIED})\s*(?:USING\s+\w+\s*)?\(',
        re.IGNORECASE,
    )

    CONSTRAINT_PREFIX = re.compile(rf'^CONSTRAINT\s+({IDENT})\s+(.*)$', re.IGNORECASE | re.DOTALL)

    # Definition heads end at the opening parenthesis of their column list;
    # the list itself is taken with find_matching_paren since index parts
    # may carry a prefix length such as name(10).
    PRIMARY_KEY_DEF = re.compile(
        r'^PRIMARY\s+KEY\s*(?:CLUSTERED\s*|NONCLUSTERED\s*)?\(',
        re.IGNORECASE,
    )
    FOREIGN_KEY_DEF = re.compile(rf'^FOREIGN\s+KEY\s*(?:{IDENT}\s*)?\(', re.IGNORECASE)
    REFERENCES_CLAUSE = re.compile(rf'\s*REFERENCES\s+({QUALIFIED})\s*(\()?', re.IGNORECASE)
    UNIQUE_DEF = re.compile(
        rf'^UNIQUE(?:\s+(?:KEY|INDEX))?\s*(?:{IDENT}\s*)?\(',
        re.IGNORECASE,
    )
    CHECK_DEF = re.compile(r'^CHECK\s*\(', re.IGNORECASE)
    INDEX_DEF = re.compile(
        rf'^(?:(?:FULLTEXT|SPATIAL)\s+)?(?:KEY|INDEX)\s*(?:{IDENT}\s*)?\(',
        re.IGNORECASE,
    )

    COLUMN_HEAD = re.compile(rf'^({IDENT})\s+(\S+)(.*)$', re.DOTALL)
    NOT_NULL = re.compile(r'\bNOT\s+NULL\b', re.IGNORECASE)
    INLINE_PRIMARY_KEY = re.compile(r'\bPRIMARY\s+KEY\b', re.IGNORECASE)
    INLINE_UNIQUE = re.compile(r'\bUNIQUE\b', re.IGNORECASE)
    INLINE_REFERENCES = re.compile(
        rf'\bREFERENCES\s+({QUALIFIED})\s*(?:\(([^)]*)\))?',
        re.IGNORECASE,
    )
    INLINE_CHECK = re.compile(r'\bCHECK\s*\(', re.IGNORECASE)
    STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")

    def classify(self, statement: str) -> StatementKind:
        """Classify a statement by its leading keyword."""
        text = statement.lstrip()
        if self.CREATE_TABLE_KEYWORD.match(text):
            return StatementKind.CREATE_TABLE
        if self.ALTER_TABLE_KEYWORD.match(text):
            return StatementKind.ALTER_TABLE
        if self.CREATE_INDEX_KEYWORD.match(text):
            return StatementKind.CREATE_INDEX
        return StatementKind.OTHER

    def match_create_table(self, statement: str) -> Tuple[str, str]:
        text = statement.strip()
        match = self.CREATE_TABLE_PATTERN.match(text)
        if not match:
            raise DDLParseError("Unrecognized CREATE TABLE header or missing column list")

        open_index = match.end() - 1
        close_index = find_matching_paren(text, open_index)
        if close_index is None:
            raise DDLParseError("Unmatched parenthesis in CREATE TABLE body")

        name = normalize_identifier(match.group(1))
        if not name:
            raise DDLParseError("Empty table name")
        return name, text[open_index + 1:close_index]

    def classify_definition(self, definition: str) -> DefinitionKind:
        """Classify a table-body entry by its leading keyword."""
        upper = definition.lstrip().upper()
        if re.match(r'PRIMARY\s+KEY\b', upper):
            return DefinitionKind.PRIMARY_KEY
        if re.match(r'FOREIGN\s+KEY\b', upper):
            return DefinitionKind.FOREIGN_KEY
        if re.match(r'CONSTRAINT\s', upper):
            return DefinitionKind.CONSTRAINT
        if re.match(r'UNIQUE\b', upper):
            return DefinitionKind.UNIQUE
        if re.match(r'CHECK\s*\(', upper):
            return DefinitionKind.CHECK
        text = definition.lstrip()
        match = self.INDEX_DEF.match(text)
        if match:
            body = self._paren_body(text, match.end() - 1)
            # "key varchar(10)" is a column named key, not an index
            if body is not None and _is_identifier_list(body):
                return DefinitionKind.INDEX
        return DefinitionKind.COLUMN

    def match_constraint(self, definition: str) -> Constraint:
        text = definition.strip()
        name = None

        prefix = self.CONSTRAINT_PREFIX.match(text)
        if prefix:
            name = normalize_identifier(prefix.group(1))
            text = prefix.group(2).strip()

        kind = self.classify_definition(text)
        if kind == DefinitionKind.PRIMARY_KEY:
            match = self.PRIMARY_KEY_DEF.match(text)
            if match:
                return Constraint(ConstraintKind.PRIMARY_KEY, self._column_list(text, match), name=name)
        elif kind == DefinitionKind.FOREIGN_KEY:
            match = self.FOREIGN_KEY_DEF.match(text)
            close_index = find_matching_paren(text, match.end() - 1) if match else None
            if close_index is not None:
                ref = self.REFERENCES_CLAUSE.match(text, close_index + 1)
                if ref:
                    return Constraint(
                        ConstraintKind.FOREIGN_KEY,
                        parse_column_list(text[match.end():close_index]),
                        referenced_table=normalize_identifier(ref.group(1)),
                        referenced_columns=self._column_list(text, ref) if ref.group(2) else [],
                        name=name,
                    )
        elif kind == DefinitionKind.UNIQUE:
            match = self.UNIQUE_DEF.match(text)
            if match:
                return Constraint(ConstraintKind.UNIQUE, self._column_list(text, match), name=name)
        elif kind == DefinitionKind.CHECK:
            expression = self._paren_body(text, self.CHECK_DEF.match(text).end() - 1)
            if expression is not None:
                return Constraint(ConstraintKind.CHECK, [], name=name, expression=expression)

        raise DDLParseError(f"Malformed constraint definition: {_excerpt(definition)}")

    def match_index_definition(self, definition: str) -> IndexDefinition:
        text = definition.strip()
        match = self.INDEX_DEF.match(text)
        if not match:
            raise DDLParseError(f"Malformed index definition: {_excerpt(definition)}")
        name_match = re.match(rf'^(?:(?:FULLTEXT|SPATIAL)\s+)?(?:KEY|INDEX)\s+({IDENT})\s*\(',
                              text, re.IGNORECASE)
        return IndexDefinition(
            columns=self._column_list(text, match),
            name=normalize_identifier(name_match.group(1)) if name_match else None,
        )

    def match_column(self, definition: str) -> ColumnMatch:
        text = definition.strip()
        match = self.COLUMN_HEAD.match(text)
        if not match:
            raise DDLParseError(f"Column definition needs a name and a type: {_excerpt(definition)}")

        data_type, rest = match.group(2), match.group(3)
        # DECIMAL(10, 2) spans whitespace; keep the parameter list whole
        if data_type.count("(") > data_type.count(")"):
            open_index = match.start(2) + data_type.index("(")
            close_index = find_matching_paren(text, open_index)
            if close_index is not None:
                data_type, rest = text[match.start(2):close_index + 1], text[close_index + 1:]

        # Keyword checks ignore string literals such as DEFAULT 'NOT NULL'
        rest = self.STRING_LITERAL.sub("''", rest)

        column = ColumnMatch(
            name=normalize_identifier(match.group(1)),
            data_type=data_type,
            not_null=bool(self.NOT_NULL.search(rest)),
            primary_key=bool(self.INLINE_PRIMARY_KEY.search(rest)),
            unique=bool(self.INLINE_UNIQUE.search(rest)),
        )

        references = self.INLINE_REFERENCES.search(rest)
        if references:
            column.references = (
                normalize_identifier(references.group(1)),
                parse_column_list(references.group(2) or ""),
            )

        check = self.INLINE_CHECK.search(rest)
        if check:
            column.check = self._paren_body(rest, check.end() - 1)

        return column

    def match_alter_table(self, statement: str) -> AlterTableMatch:
        match = self.ALTER_TABLE_PATTERN.match(statement.strip())
        if not match:
            raise DDLParseError("Unrecognized ALTER TABLE statement")

        result = AlterTableMatch(table=normalize_identifier(match.group(1)))
        for action in split_definitions(match.group(2)):
            add = re.match(r'^ADD\s+(.*)$', action, re.IGNORECASE | re.DOTALL)
            if add and self.classify_definition(add.group(1)) != DefinitionKind.COLUMN:
                result.added.append(add.group(1).strip())
            else:
                logger.debug(f"Ignoring ALTER TABLE action: {_excerpt(action)}")
        return result

    def match_create_index(self, statement: str) -> IndexMatch:
        text = statement.strip()
        match = self.CREATE_INDEX_PATTERN.match(text)
        if not match:
            raise DDLParseError("Unrecognized CREATE INDEX statement")

        body = self._paren_body(text, match.end() - 1)
        if body is None:
            raise DDLParseError("Unmatched parenthesis in CREATE INDEX column list")

        return IndexMatch(
            table=normalize_identifier(match.group(3)),
            index=IndexDefinition(
                columns=parse_column_list(body),
                name=normalize_identifier(match.group(2)) if match.group(2) else None,
                unique=bool(match.group(1)),
            ),
        )

    def _paren_body(self, text: str, open_index: int) -> Optional[str]:
        close_index = find_matching_paren(text, open_index)
        if close_index is None:
            return None
        return text[open_index + 1:close_index].strip()

    def _column_list(self, text: str, match: re.Match) -> List[str]:
        """Columns inside the parenthesis that ``match`` ends on."""
        body = self._paren_body(text, match.end() - 1)
        if body is None:
            raise DDLParseError(f"Unmatched parenthesis in column list: {_excerpt(text)}")
        return parse_column_list(body)


def _is_identifier_list(text: str) -> bool:
    # Items may carry a prefix length or sort order: name(10), id DESC
    items = [item.strip() for item in split_definitions(text)]
    return bool(items) and all(_IDENT_RE.match(item) for item in items)


def _excerpt(text: str, limit: int = 60) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 3] + "..."
