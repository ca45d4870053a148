"""
Structural mutators.

Copy-on-write rewrites of a forest: changing a node between heading and
list, switching list style, indenting and renumbering ordered lists. Every
function returns a new forest and leaves its input untouched, and every
result serializes to text that parses back into the same structure.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any

from mindmark.core.errors import ConversionError, ConversionErrorKind
from mindmark.core.node import Forest, Node, StructuralMeta, StructureKind
from mindmark.core.tree import find_with_context, get_all_descendants, replace_node

logger = logging.getLogger(__name__)

_MARKER_REMNANTS = (
    re.compile(r"^#+\s*"),
    re.compile(r"^\s*[-*+]\s*"),
    re.compile(r"^\s*\d+\.\s*"),
)

MAX_HEADING_LEVEL = 6
INDENT_STEP = 2


def _as_kind(value: StructureKind | str) -> StructureKind:
    kind = StructureKind(value)
    if kind is StructureKind.PREFACE:
        raise ValueError("Nodes cannot be converted to a preface")
    return kind


def strip_marker_remnants(text: str) -> str:
    """Remove heading and list markers typed into the node text."""
    for pattern in _MARKER_REMNANTS:
        text = pattern.sub("", text, count=1)
    return text


def check_conversion(forest: Forest, node_id: str, new_type: StructureKind | str) -> None:
    """
    Raise ConversionError when converting ``node_id`` would break ordering.

    A list item cannot hold headings below it and cannot follow a heading
    sibling. A heading cannot be followed by list item siblings and cannot
    sit under a list item.
    """
    target = _as_kind(new_type)
    ctx = find_with_context(forest, node_id)
    if ctx is None:
        return

    if target.is_list:
        for descendant in get_all_descendants(ctx.node):
            if descendant.is_heading:
                raise ConversionError(
                    ConversionErrorKind.ILLEGAL_DESCENDANT, node_id, target.value, descendant.id
                )
        for sibling in ctx.elder_siblings:
            if sibling.is_heading:
                raise ConversionError(
                    ConversionErrorKind.ILLEGAL_SIBLING, node_id, target.value, sibling.id
                )
    else:
        for sibling in ctx.younger_siblings:
            if sibling.is_list_item:
                raise ConversionError(
                    ConversionErrorKind.ILLEGAL_SIBLING, node_id, target.value, sibling.id
                )
        if ctx.parent is not None and ctx.parent.is_list_item:
            raise ConversionError(
                ConversionErrorKind.ILLEGAL_DESCENDANT, node_id, target.value, ctx.parent.id
            )


def change_node_type(forest: Forest, node_id: str, new_type: StructureKind | str) -> Forest:
    """
    Convert a node to a heading or a list item.

    Nodes that already carry structural meta are checked first and the
    forest is left untouched when the change is illegal. Nodes without meta
    skip the checks. Table nodes and unknown ids return the forest as is.

    Raises:
        ConversionError: When the change would break heading/list ordering.
        ValueError: When ``new_type`` is not a heading or list kind.
    """
    target = _as_kind(new_type)
    ctx = find_with_context(forest, node_id)
    if ctx is None or ctx.node.is_table:
        return forest

    if ctx.node.meta is not None:
        check_conversion(forest, node_id, target)

    current = ctx.node.meta or StructuralMeta(
        kind=StructureKind.HEADING, level=1, original_marker="#", source_line=0
    )
    parent = ctx.parent

    if target is StructureKind.HEADING:
        if parent is not None and parent.is_heading:
            level = min(parent.meta.level + 1, MAX_HEADING_LEVEL)
        else:
            level = min(current.level or 1, MAX_HEADING_LEVEL)
        meta = StructuralMeta(
            kind=target,
            level=level,
            original_marker="#" * level,
            source_line=current.source_line,
        )
    else:
        level = parent.meta.level + 1 if parent is not None and parent.is_list_item else 1
        keep_checkbox = target is StructureKind.UNORDERED_LIST and current.kind is target
        meta = StructuralMeta(
            kind=target,
            level=level,
            original_marker="-" if target is StructureKind.UNORDERED_LIST else "1.",
            indent_spaces=(level - 1) * INDENT_STEP,
            source_line=current.source_line,
            is_checkbox=current.is_checkbox if keep_checkbox else False,
            is_checked=current.is_checked if keep_checkbox else False,
        )

    logger.debug("Changing %s from %s to %s", node_id, current.kind.value, target.value)

    def update(node: Node) -> Node:
        children = _rebase_list_children(node.children, meta) if target.is_list else node.children
        return replace(node, text=strip_marker_remnants(node.text), meta=meta, children=children)

    return replace_node(forest, node_id, update)


def _rebase_list_children(children: list[Node], parent_meta: StructuralMeta) -> list[Node]:
    """Copy a subtree so every list item sits one step below its list parent."""
    rebased: list[Node] = []
    pending: list[tuple[list[Node], StructuralMeta, list[Node]]] = [(children, parent_meta, rebased)]
    while pending:
        siblings, owner, out = pending.pop()
        for node in siblings:
            meta = node.meta
            if meta is not None and meta.is_list:
                meta = replace(
                    meta,
                    level=owner.level + 1,
                    indent_spaces=(owner.indent_spaces or 0) + INDENT_STEP,
                )
            copy = replace(node, meta=meta, children=[])
            out.append(copy)
            if node.children:
                nested_owner = meta if meta is not None and meta.is_list else owner
                pending.append((node.children, nested_owner, copy.children))
    return rebased


def change_list_style(forest: Forest, node_id: str, new_style: StructureKind | str) -> Forest:
    """Switch a list item between unordered and ordered.

    Non-list nodes are returned unchanged. Switching to ordered drops any
    checkbox.
    """
    style = StructureKind(new_style)
    if not style.is_list:
        raise ValueError(f"Not a list style: {style.value}")

    def update(node: Node) -> Node:
        if not node.is_list_item:
            return node
        ordered = style is StructureKind.ORDERED_LIST
        meta = replace(
            node.meta,
            kind=style,
            original_marker="1." if ordered else "-",
            is_checkbox=False if ordered else node.meta.is_checkbox,
            is_checked=False if ordered else node.meta.is_checked,
        )
        return replace(node, meta=meta)

    return replace_node(forest, node_id, update)


def change_indent(forest: Forest, node_id: str, direction: str) -> Forest:
    """
    Indent or outdent one node.

    Headings move one level (clamped to 1..6) and get a matching marker.
    List items move two columns and one level, never below indent 0 or
    level 1. Nodes without structural meta are returned unchanged.

    Only the stored meta changes: a list item directly under a heading is
    always written flush left, so its text output stays the same until it
    is moved under another list item.
    """
    if direction not in ("increase", "decrease"):
        raise ValueError(f"Unknown indent direction: {direction}")
    step = 1 if direction == "increase" else -1

    def update(node: Node) -> Node:
        meta = node.meta
        if meta is None or meta.kind is StructureKind.PREFACE:
            return node
        if meta.kind is StructureKind.HEADING:
            level = max(1, min(MAX_HEADING_LEVEL, meta.level + step))
            return replace(node, meta=replace(meta, level=level, original_marker="#" * level))

        indent = meta.indent_spaces or 0
        if step < 0 and indent < INDENT_STEP:
            return node
        return replace(
            node,
            meta=replace(
                meta,
                indent_spaces=indent + step * INDENT_STEP,
                level=max(1, meta.level + step),
            ),
        )

    return replace_node(forest, node_id, update)


def renumber_ordered_lists(forest: Forest) -> Forest:
    """
    Rewrite ordered-list markers as 1., 2., 3. within each sibling run.

    Any sibling that is not an ordered item restarts the count.
    """
    result: Forest = []
    pending: list[tuple[list[Node], list[Node]]] = [(forest, result)]

    while pending:
        siblings, out = pending.pop()
        counter = 1
        for node in siblings:
            if node.meta is not None and node.meta.kind is StructureKind.ORDERED_LIST:
                copy = replace(node, meta=replace(node.meta, original_marker=f"{counter}."), children=[])
                counter += 1
            else:
                copy = replace(node, children=[])
                counter = 1
            out.append(copy)
            if node.children:
                pending.append((node.children, copy.children))

    return result


def get_node_structure_info(node: Node) -> dict[str, Any]:
    """Summarize how a node maps onto the text document."""
    if node.meta is None:
        return {
            "type": "table" if node.is_table else "unknown",
            "level": 0,
            "original_marker": "",
            "can_convert_to_markdown": node.is_table,
        }
    return {
        "type": node.meta.kind.value,
        "level": node.meta.level,
        "original_marker": node.meta.original_marker,
        "can_convert_to_markdown": True,
    }
