"""
Editing helpers for node-side edits.

New nodes get structural meta that keeps the document serializable: they
copy a neighbouring sibling where there is one and otherwise derive it from
the parent.
"""

from __future__ import annotations

from dataclasses import replace

from mindmark.config import DEFAULT_CONFIG, ConverterConfig
from mindmark.core.node import Forest, Node, StructuralMeta, StructureKind
from mindmark.core.tree import find_with_context, replace_node
from mindmark.structure.mutators import INDENT_STEP, MAX_HEADING_LEVEL
from mindmark.structure.serializer import serialize

DEFAULT_NEW_TEXT = "New Node"


def _root_heading_meta() -> StructuralMeta:
    return StructuralMeta(kind=StructureKind.HEADING, level=1, original_marker="#")


def _copy_meta(meta: StructuralMeta) -> StructuralMeta:
    return replace(meta, source_line=-1, is_checked=False)


def derive_child_meta(parent: Node) -> StructuralMeta | None:
    """Meta for the first child of ``parent``."""
    meta = parent.meta
    if meta is None or meta.kind is StructureKind.PREFACE:
        return None
    if meta.kind is StructureKind.HEADING:
        level = meta.level + 1
        if level > MAX_HEADING_LEVEL:
            return StructuralMeta(kind=StructureKind.UNORDERED_LIST, level=1, original_marker="-", indent_spaces=0)
        return StructuralMeta(kind=StructureKind.HEADING, level=level, original_marker="#" * level)
    return StructuralMeta(
        kind=meta.kind,
        level=meta.level + 1,
        original_marker=meta.original_marker,
        indent_spaces=(meta.indent_spaces or 0) + INDENT_STEP,
    )


def _nearest_structured_sibling(siblings: list[Node], index: int) -> Node | None:
    # Look left then right, widening one step at a time.
    for offset in range(1, len(siblings)):
        for candidate in (index - offset, index + offset):
            if 0 <= candidate < len(siblings):
                sibling = siblings[candidate]
                if sibling.meta is not None and not sibling.is_preface:
                    return sibling
    return None


def update_node_text(forest: Forest, node_id: str, text: str) -> tuple[Forest, str]:
    """Replace a node's text and return the new forest with its serialization."""
    updated = replace_node(forest, node_id, lambda node: replace(node, text=text))
    return updated, serialize(updated)


def add_child_node(
    forest: Forest,
    parent_id: str,
    text: str = DEFAULT_NEW_TEXT,
    config: ConverterConfig = DEFAULT_CONFIG,
) -> tuple[Forest, str | None]:
    """
    Append a new child under ``parent_id``.

    Returns:
        The new forest and the new node's id. Table parents and unknown ids
        give back the input forest and None.
    """
    ctx = find_with_context(forest, parent_id)
    if ctx is None or ctx.node.is_table:
        return forest, None
    parent = ctx.node

    structured = [child for child in parent.children if not child.is_table]
    if structured:
        last = structured[-1].meta
        meta = None if last is None else StructuralMeta(
            kind=last.kind,
            level=last.level,
            original_marker=last.original_marker,
            indent_spaces=last.indent_spaces,
        )
    else:
        meta = derive_child_meta(parent)

    child = Node.create(
        text,
        meta=meta,
        x=parent.x + config.new_node_offset,
        y=parent.y,
        line_ending=parent.line_ending,
    )
    updated = replace_node(forest, parent_id, lambda node: replace(node, children=[*node.children, child]))
    return updated, child.id


def add_sibling_node(
    forest: Forest,
    node_id: str,
    text: str = DEFAULT_NEW_TEXT,
    insert_after: bool = True,
    config: ConverterConfig = DEFAULT_CONFIG,
) -> tuple[Forest, str | None]:
    """
    Insert a new node next to ``node_id``.

    The new node copies the current node's meta. Next to a table or the
    preface it copies the nearest structured sibling instead, falling back
    to meta derived from the parent and finally to a level-1 heading.

    Returns:
        The new forest and the new node's id (None for unknown ids).
    """
    ctx = find_with_context(forest, node_id)
    if ctx is None:
        return forest, None
    current, parent = ctx.node, ctx.parent

    if not current.is_table and not current.is_preface:
        meta = _copy_meta(current.meta) if current.meta is not None else None
    else:
        nearest = _nearest_structured_sibling(ctx.siblings, ctx.index)
        if nearest is not None:
            meta = _copy_meta(nearest.meta)
        else:
            meta = (derive_child_meta(parent) if parent is not None else None) or _root_heading_meta()

    if parent is None:
        x, y = current.x, current.y
    else:
        x, y = parent.x + config.new_node_offset, parent.y
    sibling = Node.create(text, meta=meta, x=x, y=y, line_ending=current.line_ending)
    position = ctx.index + 1 if insert_after else ctx.index

    if parent is None:
        updated = list(forest)
        updated.insert(position, sibling)
        return updated, sibling.id

    def insert(node: Node) -> Node:
        children = list(node.children)
        children.insert(position, sibling)
        return replace(node, children=children)

    return replace_node(forest, parent.id, insert), sibling.id
