"""
Hierarchy builder.

Builds an outline forest from the lexer's flat element sequence using two
explicit stacks: one for open headings and one for open list items.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from mindmark.config import DEFAULT_CONFIG, ConverterConfig
from mindmark.core.errors import StructureError, StructureErrorKind
from mindmark.core.node import (
    DEFAULT_LINE_ENDING,
    Forest,
    Node,
    NodeVariant,
    StructuralMeta,
    StructureKind,
    TableData,
)
from mindmark.core.tree import get_statistics
from mindmark.structure.lexer import StructureElement, lex
from mindmark.structure.tables import extract_first_table

logger = logging.getLogger(__name__)


@dataclass
class ParseOptions:
    """Options accepted by :func:`parse`.

    The layout hints are not used while parsing; they are handed back in
    :class:`ParsedDocument` for the layout pass that assigns coordinates.

    Attributes:
        start_x: Layout hint, x of the first root.
        start_y: Layout hint, y of the first root.
        horizontal_spacing: Layout hint, distance between depth columns.
        vertical_spacing: Layout hint, distance between siblings.
        collapse_depth: Heading depth from which large documents start
            collapsed. Defaults to the configured value.
        trace: Log every recognized element at DEBUG level.
    """

    start_x: float | None = None
    start_y: float | None = None
    horizontal_spacing: float | None = None
    vertical_spacing: float | None = None
    collapse_depth: int | None = None
    trace: bool = False

    def layout_hints(self) -> dict[str, float]:
        hints = {
            "startX": self.start_x,
            "startY": self.start_y,
            "horizontalSpacing": self.horizontal_spacing,
            "verticalSpacing": self.vertical_spacing,
        }
        return {key: value for key, value in hints.items() if value is not None}


@dataclass
class ParsedDocument:
    """Everything a parse produces besides the forest itself."""

    roots: Forest
    line_ending: str = DEFAULT_LINE_ENDING
    heading_levels: dict[str, int] = field(default_factory=dict)
    layout_hints: dict[str, float] = field(default_factory=dict)
    element_count: int = 0

    @property
    def statistics(self) -> dict[str, Any]:
        return get_statistics(self.roots)


class HierarchyBuilder:
    """
    Builds forests from structural elements.

    Headings nest by level, list items nest by indentation, and a heading
    always closes any open list. Tables found in an element's trailing
    content are split out into sibling table nodes placed right after it.
    """

    @staticmethod
    def node_from_element(element: StructureElement, line_ending: str = DEFAULT_LINE_ENDING) -> Node:
        """Create the node for one element (tables are not split yet)."""
        if element.kind is StructureKind.PREFACE:
            return Node.create(
                "",
                note=element.text,
                meta=StructuralMeta(kind=StructureKind.PREFACE, level=0, source_line=element.source_line),
                line_ending=line_ending,
            )

        meta = StructuralMeta(
            kind=element.kind,
            level=element.level,
            original_marker=element.original_marker,
            indent_spaces=element.indent_spaces,
            source_line=element.source_line,
            is_checkbox=element.is_checkbox,
            is_checked=element.is_checked,
        )
        return Node.create(
            element.text,
            note=element.trailing_content,
            meta=meta,
            line_ending=line_ending,
        )

    @staticmethod
    def build(
        elements: list[StructureElement],
        line_ending: str = DEFAULT_LINE_ENDING,
        collapse_depth: int | None = None,
        config: ConverterConfig = DEFAULT_CONFIG,
    ) -> Forest:
        """Build a forest from lexer elements.

        Args:
            elements: Elements in document order.
            line_ending: Line ending recorded on every node and used to
                join text around extracted tables.
            collapse_depth: Heading stack depth from which headings start
                collapsed once the document is large.
            config: Converter configuration.

        Returns:
            The roots in document order, preface first when present.
        """
        roots: Forest = []
        heading_stack: list[tuple[Node, int]] = []
        list_stack: list[tuple[Node, int]] = []
        current_heading: Node | None = None

        depth_limit = config.default_collapse_depth if collapse_depth is None else collapse_depth
        structural_count = sum(1 for e in elements if e.kind is not StructureKind.PREFACE)
        auto_collapse = structural_count > config.auto_collapse_threshold

        for element in elements:
            node = HierarchyBuilder.node_from_element(element, line_ending)

            if element.kind is StructureKind.PREFACE:
                roots.insert(0, node)
                HierarchyBuilder._split_tables(node, roots, 0, line_ending, config)
                continue

            if element.kind is StructureKind.HEADING:
                while heading_stack and heading_stack[-1][1] >= element.level:
                    heading_stack.pop()
                list_stack.clear()

                siblings = heading_stack[-1][0].children if heading_stack else roots
                heading_stack.append((node, element.level))
                current_heading = node
                if auto_collapse and len(heading_stack) >= depth_limit:
                    node.collapsed = True

            else:
                indent = element.indent_spaces or 0
                while list_stack and list_stack[-1][1] >= indent:
                    list_stack.pop()
                if len(list_stack) >= config.max_list_depth:
                    logger.warning(
                        "List nesting deeper than %d at line %d; attaching beside the deepest item",
                        config.max_list_depth,
                        element.source_line + 1,
                    )
                    list_stack.pop()

                if list_stack:
                    siblings = list_stack[-1][0].children
                elif current_heading is not None:
                    siblings = current_heading.children
                else:
                    siblings = roots
                list_stack.append((node, indent))

            siblings.append(node)
            HierarchyBuilder._split_tables(node, siblings, len(siblings) - 1, line_ending, config)

        return roots

    @staticmethod
    def _split_tables(
        node: Node,
        siblings: list[Node],
        position: int,
        line_ending: str,
        config: ConverterConfig,
    ) -> None:
        """Move tables out of ``node.note`` into siblings right after it."""
        holder = node
        for offset in range(1, config.max_tables_per_block + 1):
            table = extract_first_table(holder.note, line_ending)
            if table is None:
                return
            holder.note = table.before
            table_node = Node.create(
                table.table_block,
                note=table.after,
                variant=NodeVariant.TABLE,
                table_data=TableData(headers=table.headers, rows=table.rows),
                line_ending=line_ending,
            )
            siblings.insert(position + offset, table_node)
            holder = table_node

        if extract_first_table(holder.note, line_ending) is not None:
            logger.warning(
                "More than %d tables after '%s'; remaining tables kept as text",
                config.max_tables_per_block,
                node.text[:40],
            )


def parse_document(
    text: str,
    options: ParseOptions | None = None,
    config: ConverterConfig = DEFAULT_CONFIG,
) -> ParsedDocument:
    """
    Parse structured text into a forest plus parse details.

    Raises:
        StructureError: When the text holds no heading or list item.
    """
    opts = options or ParseOptions()
    lexed = lex(text, trace=opts.trace, default_line_ending=config.default_line_ending)

    if lexed.structural_count == 0:
        raise StructureError(StructureErrorKind.NO_STRUCTURAL_ELEMENTS, line_count=lexed.line_count)

    roots = HierarchyBuilder.build(
        lexed.elements,
        line_ending=lexed.line_ending,
        collapse_depth=opts.collapse_depth,
        config=config,
    )

    heading_levels: dict[str, int] = {}
    for element in lexed.elements:
        if element.kind is StructureKind.HEADING:
            heading_levels.setdefault(element.text, element.level)

    logger.info(
        "Parsed %d lines into %d elements and %d roots",
        lexed.line_count,
        lexed.structural_count,
        len(roots),
    )
    return ParsedDocument(
        roots=roots,
        line_ending=lexed.line_ending,
        heading_levels=heading_levels,
        layout_hints=opts.layout_hints(),
        element_count=lexed.structural_count,
    )


def parse(
    text: str,
    options: ParseOptions | None = None,
    config: ConverterConfig = DEFAULT_CONFIG,
) -> Forest:
    """Parse structured text into a forest.

    Raises:
        StructureError: When the text holds no heading or list item.
    """
    return parse_document(text, options, config).roots
