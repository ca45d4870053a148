"""Tests for structural mutators."""

from __future__ import annotations

import copy

import pytest

from mindmark.core.errors import ConversionError, ConversionErrorKind
from mindmark.core.node import Node, NodeVariant, StructuralMeta, StructureKind
from mindmark.core.tree import find_node
from mindmark.structure.builder import parse
from mindmark.structure.mutators import (
    change_indent,
    change_list_style,
    change_node_type,
    get_node_structure_info,
    renumber_ordered_lists,
    strip_marker_remnants,
)
from mindmark.structure.serializer import serialize


def _find(forest, text):
    from mindmark.core.tree import iter_nodes

    return next(n for n in iter_nodes(forest) if n.text == text)


# ===================================================================
# change_node_type - safety checks
# ===================================================================


class TestConversionChecks:
    """Tests for rejected conversions."""

    def test_heading_with_heading_descendant(self):
        forest = parse("# A\n## d\n")
        snapshot = copy.deepcopy(forest)
        with pytest.raises(ConversionError) as exc_info:
            change_node_type(forest, forest[0].id, "unordered-list")
        error = exc_info.value
        assert error.kind is ConversionErrorKind.ILLEGAL_DESCENDANT
        assert error.offending_node_id == forest[0].children[0].id
        assert error.target_type == "unordered-list"
        assert forest == snapshot

    def test_heading_deep_below_list(self):
        forest = parse("# A\n## B\n### C\n")
        with pytest.raises(ConversionError) as exc_info:
            change_node_type(forest, forest[0].id, StructureKind.ORDERED_LIST)
        assert exc_info.value.kind is ConversionErrorKind.ILLEGAL_DESCENDANT

    def test_list_after_heading_sibling(self):
        forest = parse("# A\n## B\n## C\n")
        c = _find(forest, "C")
        with pytest.raises(ConversionError) as exc_info:
            change_node_type(forest, c.id, "unordered-list")
        assert exc_info.value.kind is ConversionErrorKind.ILLEGAL_SIBLING
        assert exc_info.value.offending_node_id == _find(forest, "B").id

    def test_heading_before_list_sibling(self):
        forest = parse("# T\n- a\n- b\n")
        a = _find(forest, "a")
        with pytest.raises(ConversionError) as exc_info:
            change_node_type(forest, a.id, "heading")
        assert exc_info.value.kind is ConversionErrorKind.ILLEGAL_SIBLING

    def test_heading_under_list_item(self):
        forest = parse("- a\n  - b\n")
        b = _find(forest, "b")
        with pytest.raises(ConversionError) as exc_info:
            change_node_type(forest, b.id, "heading")
        assert exc_info.value.kind is ConversionErrorKind.ILLEGAL_DESCENDANT

    def test_error_dict(self):
        forest = parse("# A\n## d\n")
        with pytest.raises(ConversionError) as exc_info:
            change_node_type(forest, forest[0].id, "unordered-list")
        data = exc_info.value.to_dict()
        assert data["kind"] == "illegal_descendant"
        assert data["node_id"] == forest[0].id


# ===================================================================
# change_node_type - conversions
# ===================================================================


class TestChangeNodeType:
    """Tests for successful conversions."""

    def test_last_heading_to_list(self):
        forest = parse("# T\n- a\n")
        a = _find(forest, "a")
        forest = change_node_type(forest, forest[0].children[0].id, "ordered-list")
        converted = find_node(forest, a.id)
        assert converted.meta.kind is StructureKind.ORDERED_LIST
        assert converted.meta.original_marker == "1."
        assert serialize(forest) == "# T\n1. a\n"

    def test_list_to_heading_under_heading(self):
        forest = parse("## T\n- only\n")
        only = _find(forest, "only")
        updated = change_node_type(forest, only.id, "heading")
        converted = find_node(updated, only.id)
        assert converted.meta.level == 3
        assert converted.meta.original_marker == "###"
        assert serialize(updated) == "## T\n### only\n"

    def test_heading_level_capped(self):
        forest = parse("###### six\n- x\n")
        x = _find(forest, "x")
        converted = find_node(change_node_type(forest, x.id, "heading"), x.id)
        assert converted.meta.level == 6

    def test_nested_list_level(self):
        forest = parse("- a\n  - b\n")
        b = _find(forest, "b")
        converted = find_node(change_node_type(forest, b.id, "ordered-list"), b.id)
        assert converted.meta.level == 2
        assert converted.meta.indent_spaces == 2

    def test_heading_with_list_children_to_list_keeps_nesting(self):
        forest = parse("# A\n## B\n- x\n  - deep\n- y\n")
        b = _find(forest, "B")
        text = serialize(change_node_type(forest, b.id, "unordered-list"))
        assert text == "# A\n- B\n  - x\n    - deep\n  - y\n"

        item = parse(text)[0].children[0]
        assert [n.text for n in item.children] == ["x", "y"]
        assert [n.text for n in item.children[0].children] == ["deep"]

    def test_marker_remnants_stripped(self):
        node = Node.create("## - 3. text", meta=StructuralMeta(StructureKind.HEADING, 1, "#"))
        converted = change_node_type([node], node.id, "unordered-list")[0]
        assert converted.text == "text"

    def test_node_without_meta_skips_checks(self):
        heading = Node.create("H", meta=StructuralMeta(StructureKind.HEADING, 2, "##"))
        plain = Node.create("plain", children=[Node.create("x", meta=StructuralMeta(StructureKind.HEADING, 1, "#"))])
        forest = [heading, plain]
        converted = change_node_type(forest, plain.id, "unordered-list")[1]
        assert converted.meta.kind is StructureKind.UNORDERED_LIST

    def test_plain_root_to_heading_starts_at_level_one(self):
        plain = Node.create("plain")
        converted = change_node_type([plain], plain.id, "heading")[0]
        assert converted.meta.level == 1

    def test_table_and_unknown_ids_unchanged(self):
        forest = parse("# A\n| h |\n|---|\n")
        table = forest[1]
        assert table.variant is NodeVariant.TABLE
        assert change_node_type(forest, table.id, "heading") is forest
        assert change_node_type(forest, "missing", "heading") is forest

    def test_input_forest_untouched(self):
        forest = parse("# T\n- a\n")
        snapshot = copy.deepcopy(forest)
        change_node_type(forest, forest[0].children[0].id, "ordered-list")
        assert forest == snapshot

    def test_preface_target_rejected(self):
        forest = parse("# T\n")
        with pytest.raises(ValueError):
            change_node_type(forest, forest[0].id, "preface")

    def test_strip_marker_remnants(self):
        assert strip_marker_remnants("# heading") == "heading"
        assert strip_marker_remnants("  * item") == "item"
        assert strip_marker_remnants("12. item") == "item"
        assert strip_marker_remnants("plain") == "plain"


# ===================================================================
# change_list_style / change_indent
# ===================================================================


class TestListStyleAndIndent:
    """Tests for list style switches and indentation."""

    def test_to_ordered_clears_checkbox(self):
        forest = parse("# T\n- [x] done\n")
        done = _find(forest, "done")
        converted = find_node(change_list_style(forest, done.id, "ordered-list"), done.id)
        assert converted.meta.kind is StructureKind.ORDERED_LIST
        assert converted.meta.original_marker == "1."
        assert converted.meta.is_checkbox is False

    def test_to_unordered(self):
        forest = parse("1. one\n")
        converted = change_list_style(forest, forest[0].id, "unordered-list")[0]
        assert converted.meta.original_marker == "-"

    def test_heading_unchanged(self):
        forest = parse("# T\n")
        assert change_list_style(forest, forest[0].id, "ordered-list")[0].meta.kind is StructureKind.HEADING

    def test_invalid_style(self):
        with pytest.raises(ValueError):
            change_list_style(parse("- a\n"), "x", "heading")

    def test_heading_indent(self):
        forest = parse("## T\n")
        deeper = change_indent(forest, forest[0].id, "increase")[0]
        assert (deeper.meta.level, deeper.meta.original_marker) == (3, "###")
        shallower = change_indent(forest, forest[0].id, "decrease")[0]
        assert shallower.meta.level == 1

    def test_heading_indent_clamped(self):
        top = parse("# T\n")
        assert change_indent(top, top[0].id, "decrease")[0].meta.level == 1
        bottom = parse("###### T\n")
        assert change_indent(bottom, bottom[0].id, "increase")[0].meta.level == 6

    def test_list_indent(self):
        forest = parse("- a\n")
        deeper = change_indent(forest, forest[0].id, "increase")[0]
        assert (deeper.meta.indent_spaces, deeper.meta.level) == (2, 2)
        back = change_indent([deeper], deeper.id, "decrease")[0]
        assert (back.meta.indent_spaces, back.meta.level) == (0, 1)

    def test_list_indent_under_heading_keeps_text(self):
        forest = parse("# T\n- a\n- b\n")
        b = _find(forest, "b")
        updated = change_indent(forest, b.id, "increase")
        assert find_node(updated, b.id).meta.indent_spaces == 2
        assert serialize(updated) == serialize(forest)

    def test_list_outdent_at_zero_is_noop(self):
        forest = parse("- a\n")
        same = change_indent(forest, forest[0].id, "decrease")[0]
        assert (same.meta.indent_spaces, same.meta.level) == (0, 1)

    def test_unknown_direction(self):
        with pytest.raises(ValueError):
            change_indent(parse("- a\n"), "x", "sideways")


# ===================================================================
# renumber_ordered_lists / get_node_structure_info
# ===================================================================


class TestRenumber:
    """Tests for renumbering ordered lists."""

    def test_runs_are_numbered_from_one(self):
        forest = parse("5. a\n9. b\n- break\n7. c\n")
        markers = [n.meta.original_marker for n in renumber_ordered_lists(forest)]
        assert markers == ["1.", "2.", "-", "1."]

    def test_nested_groups_are_independent(self):
        forest = parse("3. a\n  8. a1\n  9. a2\n4. b\n")
        renumbered = renumber_ordered_lists(forest)
        assert [n.meta.original_marker for n in renumbered] == ["1.", "2."]
        assert [n.meta.original_marker for n in renumbered[0].children] == ["1.", "2."]

    def test_input_untouched(self):
        forest = parse("5. a\n")
        renumber_ordered_lists(forest)
        assert forest[0].meta.original_marker == "5."


class TestStructureInfo:
    """Tests for get_node_structure_info."""

    def test_heading(self):
        info = get_node_structure_info(parse("## T\n")[0])
        assert info == {"type": "heading", "level": 2, "original_marker": "##", "can_convert_to_markdown": True}

    def test_plain_node(self):
        info = get_node_structure_info(Node.create("x"))
        assert info["type"] == "unknown"
        assert info["can_convert_to_markdown"] is False

    def test_table_node(self):
        info = get_node_structure_info(Node.create("| a |", variant=NodeVariant.TABLE))
        assert info["type"] == "table"
