"""
Pytest configuration and fixtures for MindMark tests.
"""

import pytest

from mindmark.core.node import Node, StructuralMeta, StructureKind


@pytest.fixture
def sample_markdown() -> str:
    """A document touching every structural feature."""
    return (
        "Intro line\n"
        "\n"
        "# Project\n"
        "Overview paragraph.\n"
        "\n"
        "## Tasks\n"
        "- [ ] write parser\n"
        "- [x] write lexer\n"
        "  - nested detail\n"
        "\n"
        "| name | state |\n"
        "|---|:---:|\n"
        "| lexer | done |\n"
        "\n"
        "## Steps\n"
        "1. first\n"
        "2. second\n"
        "# Appendix\n"
        "* star item\n"
    )


@pytest.fixture
def heading_forest() -> list[Node]:
    """``# A`` with children ``## B`` and ``## C``, then ``# D``."""
    b = Node(id="b", text="B", meta=StructuralMeta(StructureKind.HEADING, 2, "##"), x=40, y=10)
    c = Node(id="c", text="C", meta=StructuralMeta(StructureKind.HEADING, 2, "##"), x=40, y=30)
    a = Node(id="a", text="A", children=[b, c], meta=StructuralMeta(StructureKind.HEADING, 1, "#"), x=0, y=20)
    d = Node(id="d", text="D", meta=StructuralMeta(StructureKind.HEADING, 1, "#"), x=0, y=60)
    return [a, d]


@pytest.fixture
def list_forest() -> list[Node]:
    """``# T`` holding ``- one`` (with child ``- inner``) and ``- two``."""
    inner = Node(
        id="inner",
        text="inner",
        meta=StructuralMeta(StructureKind.UNORDERED_LIST, 2, "-", indent_spaces=2),
    )
    one = Node(
        id="one",
        text="one",
        children=[inner],
        meta=StructuralMeta(StructureKind.UNORDERED_LIST, 1, "-", indent_spaces=0),
    )
    two = Node(id="two", text="two", meta=StructuralMeta(StructureKind.UNORDERED_LIST, 1, "-", indent_spaces=0))
    title = Node(id="t", text="T", children=[one, two], meta=StructuralMeta(StructureKind.HEADING, 1, "#"))
    return [title]
