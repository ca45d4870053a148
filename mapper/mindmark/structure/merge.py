"""
Layout-preserving merge.

After the text behind a forest is edited and re-parsed, the fresh forest has
new ids and no positions. ``merge_preserving_layout`` carries identity and
cosmetic state over from the forest the UI already holds, level by level.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace

from mindmark.config import DEFAULT_CONFIG, ConverterConfig
from mindmark.core.node import Forest, Node, TableData

logger = logging.getLogger(__name__)


class _SiblingMatcher:
    """Hands out existing siblings, first by exact text, then by position."""

    def __init__(self, existing: list[Node]) -> None:
        self.existing = existing
        self.claimed: set[int] = set()
        self.by_text: dict[str, list[int]] = defaultdict(list)
        for i, node in enumerate(existing):
            self.by_text[node.text].append(i)

    def claim(self, text: str, index: int) -> Node | None:
        for candidate in self.by_text.get(text, ()):
            if candidate not in self.claimed:
                self.claimed.add(candidate)
                return self.existing[candidate]
        if index < len(self.existing) and index not in self.claimed:
            self.claimed.add(index)
            return self.existing[index]
        return None


def _merged_table_data(parsed: Node, matched: Node) -> TableData | None:
    if not parsed.is_table:
        return None
    return parsed.table_data if parsed.table_data is not None else matched.table_data


def _merged_node(parsed: Node, matched: Node) -> Node:
    # Content comes from the parse, everything else from the existing node.
    return replace(
        matched,
        text=parsed.text,
        meta=parsed.meta,
        variant=parsed.variant,
        table_data=_merged_table_data(parsed, matched),
        line_ending=parsed.line_ending,
        extra=dict(matched.extra),
        children=[],
    )


def _new_node(parsed: Node, parent: Node | None, index: int, offset: int) -> Node:
    if parent is not None:
        x, y = parent.x + offset, parent.y + offset * index
        line_ending = parent.line_ending
    else:
        x, y = 0, 0
        line_ending = parsed.line_ending
    return Node.create(
        parsed.text,
        note=parsed.note,
        meta=parsed.meta,
        variant=parsed.variant,
        table_data=parsed.table_data,
        x=x,
        y=y,
        line_ending=line_ending,
    )


def merge_preserving_layout(
    existing: Forest,
    parsed: Forest,
    parent: Node | None = None,
    config: ConverterConfig = DEFAULT_CONFIG,
) -> Forest:
    """
    Merge a freshly parsed forest into an existing one.

    Each parsed node claims the first unclaimed existing sibling with the
    same text, or failing that the unclaimed existing sibling at the same
    index. A claimed node keeps its id, position, styling, collapsed state,
    links and note while taking text and structure from the parse. Parsed
    nodes with no match become new nodes placed next to ``parent``. Existing
    nodes nobody claims are dropped.

    Neither input is modified.

    Args:
        existing: The forest currently shown.
        parsed: The forest parsed from the edited text.
        parent: The node both forests hang under, used to place new nodes.
        config: Converter configuration (placement offset).

    Returns:
        The merged forest.
    """
    result: Forest = []
    # (existing siblings, parsed siblings, merged parent, output list)
    pending: list[tuple[list[Node], list[Node], Node | None, list[Node]]] = [
        (existing, parsed, parent, result)
    ]
    created = 0

    while pending:
        old_level, new_level, merged_parent, out = pending.pop()
        matcher = _SiblingMatcher(old_level)

        for i, parsed_node in enumerate(new_level):
            matched = matcher.claim(parsed_node.text, i)
            if matched is not None:
                merged = _merged_node(parsed_node, matched)
                old_children = matched.children
            else:
                merged = _new_node(parsed_node, merged_parent, i, config.new_node_offset)
                old_children = []
                created += 1
            out.append(merged)
            if parsed_node.children:
                pending.append((old_children, parsed_node.children, merged, merged.children))

    logger.debug("Merged %d roots (%d new nodes)", len(result), created)
    return result
