"""
Serializer: the inverse of the hierarchy builder.

Rebuilds heading markers, list indentation, checkbox notation and table
blocks from a forest. Notes are written back verbatim, so parsing the output
again yields the same structure.
"""

from __future__ import annotations

import re

from mindmark.core.node import DEFAULT_LINE_ENDING, Forest, Node, StructureKind
from mindmark.structure.tables import split_lines

_ORDERED_MARKER_RE = re.compile(r"^\d+\.$")


def line_prefix(node: Node, parent: Node | None) -> str:
    """Marker prefix for ``node``'s own line (empty for plain nodes)."""
    meta = node.meta
    if meta is None or meta.kind is StructureKind.PREFACE:
        return ""
    if meta.kind is StructureKind.HEADING:
        return "#" * meta.level + " "

    under_heading = parent is not None and parent.is_heading
    indent = " " * (0 if under_heading else (meta.indent_spaces or 0))
    if meta.kind is StructureKind.ORDERED_LIST:
        marker = meta.original_marker if _ORDERED_MARKER_RE.match(meta.original_marker) else "1."
        return f"{indent}{marker} "

    prefix = f"{indent}- "
    if meta.is_checkbox:
        prefix += "[x] " if meta.is_checked else "[ ] "
    return prefix


def serialize_lines(forest: Forest) -> list[str]:
    """Emit the document as a list of lines, without line endings."""
    lines: list[str] = []
    stack: list[tuple[Node, Node | None]] = [(root, None) for root in reversed(forest)]

    while stack:
        node, parent = stack.pop()

        if node.is_table:
            lines.extend(split_lines(node.text))
        elif not node.is_preface:
            lines.append(line_prefix(node, parent) + node.text)

        if node.note is not None:
            lines.extend(split_lines(node.note))

        for child in reversed(node.children):
            stack.append((child, node))

    return lines


def serialize(forest: Forest) -> str:
    """
    Serialize a forest to structured text.

    Lines are joined with the line ending recorded on the first root.
    Serializing never raises for a well-formed forest.
    """
    line_ending = forest[0].line_ending if forest else DEFAULT_LINE_ENDING
    return line_ending.join(serialize_lines(forest))
