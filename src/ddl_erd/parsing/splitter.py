"""
Quote-aware splitting of SQL scripts.

Splits a script into statements and a CREATE TABLE body into its top-level
definitions. Only quote state matters for statement boundaries; parenthesis
depth additionally matters inside table bodies.
"""

from __future__ import annotations

import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

QUOTE_CHARS = ("'", '"', "`")


def strip_comments(sql: str) -> str:
    """Remove ``--`` line comments and ``/* */`` block comments outside literals."""
    out: List[str] = []
    quote: Optional[str] = None
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]

        if quote:
            out.append(ch)
            if ch == quote:
                quote = None
            i += 1
            continue

        if ch in QUOTE_CHARS:
            quote = ch
            out.append(ch)
            i += 1
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
            if end == -1:
                break
            i = end  # keep the newline
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            if end == -1:
                break
            out.append(" ")
            i = end + 2
        else:
            out.append(ch)
            i += 1

    return "".join(out)


def split_statements(sql: str) -> List[str]:
    """
    Split a script into trimmed, non-empty statements in source order.

    Comments are stripped first. A ``;`` terminates a statement unless it sits
    inside a single, double or backtick quoted literal. An unterminated quote
    swallows the rest of the input into the final statement.
    """
    text = strip_comments(sql)
    statements: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None

    for ch in text:
        if quote:
            if ch == quote:
                quote = None
        elif ch in QUOTE_CHARS:
            quote = ch
        elif ch == ";":
            _flush(current, statements)
            current = []
            continue
        current.append(ch)

    _flush(current, statements)

    if quote:
        logger.debug(f"Unterminated {quote} literal; treating rest of input as quoted")

    return statements


def split_definitions(body: str) -> List[str]:
    """Split a table body on commas at parenthesis depth 0 outside quotes."""
    definitions: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    depth = 0

    for ch in body:
        if quote:
            if ch == quote:
                quote = None
        elif ch in QUOTE_CHARS:
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            if depth > 0:
                depth -= 1
        elif ch == "," and depth == 0:
            _flush(current, definitions)
            current = []
            continue
        current.append(ch)

    _flush(current, definitions)
    return definitions


def find_matching_paren(text: str, open_index: int) -> Optional[int]:
    """
    Return the index of the ``)`` closing the ``(`` at ``open_index``.

    Returns None when the parenthesis is never closed.
    """
    quote: Optional[str] = None
    depth = 0

    for i in range(open_index, len(text)):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in QUOTE_CHARS:
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i

    return None


def _flush(chars: List[str], into: List[str]) -> None:
    piece = "".join(chars).strip()
    if piece:
        into.append(piece)
