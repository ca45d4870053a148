"""
MindMark: converts between structured Markdown text and outline node forests.

Parsing turns headings, list items, checkboxes, pipe tables and free text
into a forest of nodes. Serializing turns the forest back into text, and the
layout-preserving merge keeps node identity and positions across edits.
"""

__version__ = "0.1.0"

from mindmark.config import DEFAULT_CONFIG, ConverterConfig
from mindmark.core import (
    ConversionError,
    ConversionErrorKind,
    Forest,
    MindmarkError,
    Node,
    NodeVariant,
    StructuralMeta,
    StructureError,
    StructureErrorKind,
    StructureKind,
    TableData,
)
from mindmark.structure import (
    ParsedDocument,
    ParseOptions,
    add_child_node,
    add_sibling_node,
    change_indent,
    change_list_style,
    change_node_type,
    merge_preserving_layout,
    parse,
    parse_document,
    renumber_ordered_lists,
    serialize,
    update_node_text,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ConversionError",
    "ConversionErrorKind",
    "ConverterConfig",
    "Forest",
    "MindmarkError",
    "Node",
    "NodeVariant",
    "ParseOptions",
    "ParsedDocument",
    "StructuralMeta",
    "StructureError",
    "StructureErrorKind",
    "StructureKind",
    "TableData",
    "add_child_node",
    "add_sibling_node",
    "change_indent",
    "change_list_style",
    "change_node_type",
    "merge_preserving_layout",
    "parse",
    "parse_document",
    "renumber_ordered_lists",
    "serialize",
    "update_node_text",
]
