"""
Helpers for keeping the text editor and the node view in step.

``build_line_index`` maps editor lines to nodes for cursor syncing.
``diff_text_changes`` lets a caller patch text and notes in place when an
edit did not change the document's shape, instead of replacing every node.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from mindmark.core.node import Forest, Node
from mindmark.core.tree import iter_nodes, replace_node


@dataclass
class LineIndex:
    """Two-way mapping between 1-based editor lines and node ids."""

    line_to_node: dict[int, str] = field(default_factory=dict)
    node_to_line: dict[str, int] = field(default_factory=dict)

    def node_at(self, line: int) -> str | None:
        """Node whose line is ``line`` or the closest one above it."""
        candidates = [ln for ln in self.line_to_node if ln <= line]
        return self.line_to_node[max(candidates)] if candidates else None


@dataclass(frozen=True)
class FlatEntry:
    """Shape of one node, in document order."""

    node_id: str
    text: str
    note: str | None
    kind: str | None
    level: int | None
    indent: int
    variant: str

    def same_shape(self, other: FlatEntry) -> bool:
        return (
            self.kind == other.kind
            and self.level == other.level
            and self.indent == other.indent
            and self.variant == other.variant
        )


def build_line_index(forest: Forest) -> LineIndex:
    index = LineIndex()
    for node in iter_nodes(forest):
        if node.meta is None or node.meta.source_line < 0:
            continue
        line = node.meta.source_line + 1
        index.line_to_node[line] = node.id
        index.node_to_line[node.id] = line
    return index


def _flat_entry(node: Node) -> FlatEntry:
    meta = node.meta
    indent = (meta.indent_spaces or 0) if meta is not None and meta.is_list else 0
    return FlatEntry(
        node_id=node.id,
        text=node.text,
        note=node.note,
        kind=meta.kind.value if meta else None,
        level=meta.level if meta else None,
        indent=indent,
        variant=node.variant.value,
    )


def flatten_structure(forest: Forest) -> list[FlatEntry]:
    return [_flat_entry(node) for node in iter_nodes(forest)]


def diff_text_changes(previous: Forest, parsed: Forest) -> dict[str, dict[str, Any]] | None:
    """
    Compare two forests position by position.

    Returns:
        ``{node_id: {"text": ..., "note": ...}}`` with only the changed
        fields, keyed by the ids in ``previous``, when both forests have the
        same shape. None when the shape differs.
    """
    before = flatten_structure(previous)
    after = flatten_structure(parsed)
    if len(before) != len(after):
        return None
    if not all(a.same_shape(b) for a, b in zip(before, after)):
        return None

    changes: dict[str, dict[str, Any]] = {}
    for a, b in zip(before, after):
        update: dict[str, Any] = {}
        if a.text != b.text:
            update["text"] = b.text
        if a.note != b.note:
            update["note"] = b.note
        if update:
            changes[a.node_id] = update
    return changes


def apply_text_changes(forest: Forest, changes: dict[str, dict[str, Any]]) -> Forest:
    """Apply the output of :func:`diff_text_changes` without touching ``forest``."""
    for node_id, update in changes.items():
        forest = replace_node(forest, node_id, lambda node, u=update: replace(node, **u))
    return forest
