"""
Pipe table extraction.

Finds GFM-style pipe tables inside a block of trailing text and splits the
block around them without touching surrounding whitespace.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
_SEPARATOR_CELL_RE = re.compile(r"^:?-{3,}:?$")


@dataclass
class TableExtract:
    """A table found in a block of text and the text around it.

    Attributes:
        headers: Cells of the header row.
        rows: Cells of each data row.
        before: Lines preceding the table, joined; None when there are none.
        table_block: Raw header, separator and data lines, joined.
        after: Lines following the table, joined; None when there are none.
    """

    table_block: str
    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    before: str | None = None
    after: str | None = None


def split_lines(text: str) -> list[str]:
    return _LINE_BREAK_RE.split(text)


def _strip_outer_pipes(line: str) -> str:
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    return stripped


def to_cells(line: str) -> list[str]:
    """Split a table row into trimmed cells."""
    return [cell.strip() for cell in _strip_outer_pipes(line).split("|")]


def is_separator_line(line: str) -> bool:
    """Check for a header separator such as ``|---|:---:|``."""
    if "|" not in line or "-" not in line:
        return False
    cells = to_cells(line)
    return len(cells) > 0 and all(_SEPARATOR_CELL_RE.match(cell) for cell in cells)


def extract_first_table(text: str | None, line_ending: str = "\n") -> TableExtract | None:
    """
    Extract the first pipe table from ``text``.

    A header line is any line containing a pipe that is directly followed by
    a separator line. Data rows are the contiguous lines after the separator
    that also contain a pipe.

    Returns:
        The table and the untouched text around it, or None when the text
        holds no well-formed table.
    """
    if not text:
        return None

    lines = split_lines(text)
    for i in range(len(lines) - 1):
        header_line = lines[i]
        if "|" not in header_line or not is_separator_line(lines[i + 1]):
            continue

        j = i + 2
        while j < len(lines) and "|" in lines[j]:
            j += 1

        return TableExtract(
            headers=to_cells(header_line),
            rows=[to_cells(row) for row in lines[i + 2 : j]],
            before=line_ending.join(lines[:i]) if i > 0 else None,
            table_block=line_ending.join(lines[i:j]),
            after=line_ending.join(lines[j:]) if j < len(lines) else None,
        )

    return None


def extract_all_tables(text: str | None, line_ending: str = "\n", limit: int | None = None) -> list[TableExtract]:
    """Extract tables one after another by re-scanning each ``after`` remainder."""
    tables: list[TableExtract] = []
    remaining = text
    while remaining and (limit is None or len(tables) < limit):
        table = extract_first_table(remaining, line_ending)
        if table is None:
            break
        tables.append(table)
        remaining = table.after
    return tables


def parse_table(src: str) -> tuple[list[str], list[list[str]]] | None:
    """Return ``(headers, rows)`` for the first table in ``src``."""
    table = extract_first_table(src)
    if table is None:
        return None
    return table.headers, table.rows
