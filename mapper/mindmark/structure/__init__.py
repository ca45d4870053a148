"""Parsing, serialization, merging and structural edits."""

from mindmark.structure.builder import HierarchyBuilder, ParsedDocument, ParseOptions, parse, parse_document
from mindmark.structure.editing import add_child_node, add_sibling_node, update_node_text
from mindmark.structure.lexer import LexResult, StructureElement, detect_line_ending, lex
from mindmark.structure.merge import merge_preserving_layout
from mindmark.structure.mutators import (
    change_indent,
    change_list_style,
    change_node_type,
    check_conversion,
    get_node_structure_info,
    renumber_ordered_lists,
)
from mindmark.structure.serializer import serialize
from mindmark.structure.sync import (
    LineIndex,
    apply_text_changes,
    build_line_index,
    diff_text_changes,
    flatten_structure,
)
from mindmark.structure.tables import TableExtract, extract_all_tables, extract_first_table, parse_table

__all__ = [
    "HierarchyBuilder",
    "LexResult",
    "LineIndex",
    "ParseOptions",
    "ParsedDocument",
    "StructureElement",
    "TableExtract",
    "add_child_node",
    "add_sibling_node",
    "apply_text_changes",
    "build_line_index",
    "change_indent",
    "change_list_style",
    "change_node_type",
    "check_conversion",
    "detect_line_ending",
    "diff_text_changes",
    "extract_all_tables",
    "extract_first_table",
    "flatten_structure",
    "get_node_structure_info",
    "lex",
    "merge_preserving_layout",
    "parse",
    "parse_document",
    "parse_table",
    "renumber_ordered_lists",
    "serialize",
    "update_node_text",
]
