"""Tests for node editing helpers."""

from __future__ import annotations

from mindmark.core.node import Node, NodeVariant, StructuralMeta, StructureKind
from mindmark.core.tree import find_node
from mindmark.structure.builder import parse
from mindmark.structure.editing import (
    add_child_node,
    add_sibling_node,
    derive_child_meta,
    update_node_text,
)
from mindmark.structure.serializer import serialize


class TestUpdateNodeText:
    """Tests for replacing node text."""

    def test_updates_text_and_markdown(self):
        forest = parse("# A\n- b\n")
        b = forest[0].children[0]
        updated, markdown = update_node_text(forest, b.id, "bee")
        assert find_node(updated, b.id).text == "bee"
        assert markdown == "# A\n- bee\n"
        assert b.text == "b"


# ===================================================================
# add_child_node
# ===================================================================


class TestAddChildNode:
    """Tests for appending children."""

    def test_copies_last_sibling_meta(self):
        forest = parse("# T\n- [x] a\n")
        updated, new_id = add_child_node(forest, forest[0].id, "b")
        child = find_node(updated, new_id)
        assert child.meta.kind is StructureKind.UNORDERED_LIST
        assert child.meta.source_line == -1
        assert child.meta.is_checkbox is False

    def test_first_child_of_heading(self):
        forest = parse("## T\n")
        updated, new_id = add_child_node(forest, forest[0].id, "sub")
        child = find_node(updated, new_id)
        assert (child.meta.kind, child.meta.level, child.meta.original_marker) == (
            StructureKind.HEADING,
            3,
            "###",
        )

    def test_first_child_of_level_six_heading_is_list(self):
        forest = parse("###### T\n")
        updated, new_id = add_child_node(forest, forest[0].id)
        assert find_node(updated, new_id).meta.kind is StructureKind.UNORDERED_LIST

    def test_first_child_of_list_item(self):
        forest = parse("1. a\n")
        updated, new_id = add_child_node(forest, forest[0].id)
        child = find_node(updated, new_id)
        assert child.meta.kind is StructureKind.ORDERED_LIST
        assert (child.meta.level, child.meta.indent_spaces) == (2, 2)
        assert child.text == "New Node"

    def test_skips_table_siblings(self):
        heading = Node.create("T", meta=StructuralMeta(StructureKind.HEADING, 1, "#"))
        heading.children = [
            Node.create("a", meta=StructuralMeta(StructureKind.ORDERED_LIST, 1, "3.", indent_spaces=0)),
            Node.create("| t |", variant=NodeVariant.TABLE),
        ]
        updated, new_id = add_child_node([heading], heading.id)
        assert find_node(updated, new_id).meta.kind is StructureKind.ORDERED_LIST

    def test_placement_near_parent(self):
        parent = Node.create("P", x=10, y=20, meta=StructuralMeta(StructureKind.HEADING, 1, "#"))
        updated, new_id = add_child_node([parent], parent.id)
        child = find_node(updated, new_id)
        assert (child.x, child.y) == (38, 20)

    def test_table_parent_rejected(self):
        table = Node.create("| t |", variant=NodeVariant.TABLE)
        forest = [table]
        assert add_child_node(forest, table.id) == (forest, None)

    def test_unknown_parent(self):
        forest = parse("# T\n")
        assert add_child_node(forest, "missing") == (forest, None)

    def test_result_serializes(self):
        forest = parse("# T\n- a")
        updated, _ = add_child_node(forest, forest[0].children[0].id, "nested")
        assert serialize(updated) == "# T\n- a\n  - nested"


# ===================================================================
# add_sibling_node
# ===================================================================


class TestAddSiblingNode:
    """Tests for inserting siblings."""

    def test_after_and_before(self):
        forest = parse("# T\n- a\n- b\n")
        a = forest[0].children[0]
        after, after_id = add_sibling_node(forest, a.id, "x")
        assert [n.text for n in after[0].children] == ["a", "x", "b"]
        before, _ = add_sibling_node(forest, a.id, "y", insert_after=False)
        assert [n.text for n in before[0].children] == ["y", "a", "b"]
        assert find_node(after, after_id).meta.kind is StructureKind.UNORDERED_LIST

    def test_root_sibling(self):
        forest = parse("# A\n")
        updated, new_id = add_sibling_node(forest, forest[0].id, "B")
        assert [n.text for n in updated] == ["A", "B"]
        assert find_node(updated, new_id).meta.level == 1

    def test_next_to_table_uses_nearest_sibling(self):
        forest = parse("# A\n| h |\n|---|\n# B\n")
        table = forest[1]
        updated, new_id = add_sibling_node(forest, table.id, "C")
        new = find_node(updated, new_id)
        assert new.meta.kind is StructureKind.HEADING
        assert [n.text for n in updated][:3] == ["A", "| h |\n|---|", "C"]

    def test_lone_table_under_heading_derives_from_parent(self):
        heading = Node.create("T", meta=StructuralMeta(StructureKind.HEADING, 2, "##"))
        table = Node.create("| t |", variant=NodeVariant.TABLE)
        heading.children = [table]
        updated, new_id = add_sibling_node([heading], table.id)
        assert find_node(updated, new_id).meta.level == 3

    def test_lone_root_table_becomes_heading(self):
        table = Node.create("| t |", variant=NodeVariant.TABLE)
        updated, new_id = add_sibling_node([table], table.id)
        assert find_node(updated, new_id).meta.kind is StructureKind.HEADING

    def test_next_to_preface(self):
        forest = parse("intro\n# A\n")
        updated, new_id = add_sibling_node(forest, forest[0].id, "B")
        assert find_node(updated, new_id).meta.kind is StructureKind.HEADING

    def test_unknown_node(self):
        forest = parse("# T\n")
        assert add_sibling_node(forest, "missing") == (forest, None)


class TestDeriveChildMeta:
    """Tests for derive_child_meta."""

    def test_plain_parent(self):
        assert derive_child_meta(Node.create("x")) is None
