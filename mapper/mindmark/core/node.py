"""
Outline node model for MindMark.

This module defines the data structures shared by the parser, serializer,
merge step and structural mutators: nodes, their structural metadata and
the table payload carried by table nodes.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_LINE_ENDING = "\n"


class StructureKind(str, Enum):
    """Structural role of a node in the text document."""

    HEADING = "heading"
    UNORDERED_LIST = "unordered-list"
    ORDERED_LIST = "ordered-list"
    PREFACE = "preface"

    @property
    def is_list(self) -> bool:
        return self in (StructureKind.UNORDERED_LIST, StructureKind.ORDERED_LIST)


class NodeVariant(str, Enum):
    """Shape of a node: ordinary outline entry or verbatim table block."""

    PLAIN = "plain"
    TABLE = "table"


@dataclass
class StructuralMeta:
    """
    How a node maps back onto the text document.

    ``source_line`` is the 0-based line the element was parsed from, or -1
    for meta assigned while editing.
    """

    kind: StructureKind
    level: int = 1
    original_marker: str = ""
    indent_spaces: int | None = None
    source_line: int = -1
    is_checkbox: bool = False
    is_checked: bool = False

    @property
    def is_list(self) -> bool:
        return self.kind.is_list

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.kind.value,
            "level": self.level,
            "originalFormat": self.original_marker,
            "lineNumber": self.source_line,
        }
        if self.indent_spaces is not None:
            data["indentLevel"] = self.indent_spaces
        if self.is_checkbox:
            data["isCheckbox"] = True
            data["isChecked"] = self.is_checked
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StructuralMeta:
        return cls(
            kind=StructureKind(data.get("type", StructureKind.HEADING.value)),
            level=data.get("level", 1),
            original_marker=data.get("originalFormat", ""),
            indent_spaces=data.get("indentLevel"),
            source_line=data.get("lineNumber", -1),
            is_checkbox=bool(data.get("isCheckbox", False)),
            is_checked=bool(data.get("isChecked", False)),
        )


@dataclass
class TableData:
    """Header and body cells of a pipe table."""

    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"headers": list(self.headers), "rows": [list(r) for r in self.rows]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TableData:
        return cls(
            headers=list(data.get("headers") or []),
            rows=[list(r) for r in data.get("rows") or []],
        )


# Keys handled explicitly by Node.to_dict/from_dict; anything else the UI
# sends is kept in Node.extra.
_KNOWN_KEYS = frozenset(
    {
        "id",
        "text",
        "children",
        "note",
        "markdownMeta",
        "kind",
        "tableData",
        "x",
        "y",
        "fontSize",
        "fontWeight",
        "fontFamily",
        "fontStyle",
        "color",
        "collapsed",
        "links",
        "lineEnding",
    }
)


@dataclass
class Node:
    """
    A node in the outline forest.

    Content and structure (``text``, ``note``, ``meta``, ``variant``,
    ``table_data``) come from the text document. Everything else is
    cosmetic state owned by the UI and layout engine, which the converter
    carries along without interpreting.
    """

    id: str
    text: str = ""
    children: list[Node] = field(default_factory=list)
    note: str | None = None
    meta: StructuralMeta | None = None
    variant: NodeVariant = NodeVariant.PLAIN
    table_data: TableData | None = None

    # Cosmetic fields
    x: float = 0
    y: float = 0
    font_size: int = 14
    font_weight: str = "normal"
    font_family: str | None = None
    font_style: str | None = None
    color: str | None = None
    collapsed: bool = False
    links: list[dict[str, Any]] | None = None
    line_ending: str = DEFAULT_LINE_ENDING
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.variant is NodeVariant.TABLE and self.meta is not None:
            raise ValueError("Table nodes cannot carry structural metadata")

    @staticmethod
    def generate_id() -> str:
        return f"node_{uuid.uuid4().hex[:12]}"

    @classmethod
    def create(cls, text: str = "", **kwargs: Any) -> Node:
        """Create a node with a freshly generated id."""
        return cls(id=cls.generate_id(), text=text, **kwargs)

    @property
    def is_table(self) -> bool:
        return self.variant is NodeVariant.TABLE

    @property
    def kind(self) -> StructureKind | None:
        return self.meta.kind if self.meta else None

    @property
    def is_heading(self) -> bool:
        return self.kind is StructureKind.HEADING

    @property
    def is_list_item(self) -> bool:
        return self.meta is not None and self.meta.is_list

    @property
    def is_preface(self) -> bool:
        return self.kind is StructureKind.PREFACE

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase dictionary used by the front end."""
        data: dict[str, Any] = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "text": self.text,
                "x": self.x,
                "y": self.y,
                "fontSize": self.font_size,
                "fontWeight": self.font_weight,
                "collapsed": self.collapsed,
                "lineEnding": self.line_ending,
                "children": [child.to_dict() for child in self.children],
            }
        )
        if self.note is not None:
            data["note"] = self.note
        if self.meta is not None:
            data["markdownMeta"] = self.meta.to_dict()
        if self.is_table:
            data["kind"] = self.variant.value
        if self.table_data is not None:
            data["tableData"] = self.table_data.to_dict()
        for key, value in (
            ("fontFamily", self.font_family),
            ("fontStyle", self.font_style),
            ("color", self.color),
            ("links", self.links),
        ):
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        """
        Reconstruct a node (and its subtree) from a dictionary.

        A missing id gets a fresh one. A ``kind`` of ``"table"`` wins over
        any ``markdownMeta`` that came along with it.
        """
        variant = NodeVariant(data.get("kind") or NodeVariant.PLAIN.value)
        meta = None
        if data.get("markdownMeta") and variant is NodeVariant.PLAIN:
            meta = StructuralMeta.from_dict(data["markdownMeta"])
        table_data = None
        if data.get("tableData"):
            table_data = TableData.from_dict(data["tableData"])

        return cls(
            id=data.get("id") or cls.generate_id(),
            text=data.get("text", ""),
            children=[cls.from_dict(child) for child in data.get("children") or []],
            note=data.get("note"),
            meta=meta,
            variant=variant,
            table_data=table_data,
            x=data.get("x", 0),
            y=data.get("y", 0),
            font_size=data.get("fontSize", 14),
            font_weight=data.get("fontWeight", "normal"),
            font_family=data.get("fontFamily"),
            font_style=data.get("fontStyle"),
            color=data.get("color"),
            collapsed=bool(data.get("collapsed", False)),
            links=data.get("links"),
            line_ending=data.get("lineEnding") or DEFAULT_LINE_ENDING,
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def __repr__(self) -> str:
        preview = self.text[:40].replace("\n", " ")
        kind = self.kind.value if self.kind else self.variant.value
        return f"<Node {self.id} {kind} '{preview}' children={len(self.children)}>"


Forest = list[Node]


def forest_to_dicts(forest: Forest) -> list[dict[str, Any]]:
    return [node.to_dict() for node in forest]


def forest_from_dicts(data: list[dict[str, Any]]) -> Forest:
    return [Node.from_dict(item) for item in data]
