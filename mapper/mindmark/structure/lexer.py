"""
Structure lexer.

Scans a document line by line and emits the flat sequence of structural
elements (headings, list items and the optional preface) that the
hierarchy builder turns into a forest.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from mindmark.core.node import DEFAULT_LINE_ENDING, StructureKind
from mindmark.structure.tables import split_lines

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.*)$")
_LIST_RE = re.compile(r"^([ \t]*)([-*+]|\d+\.)[ \t]+(.*)$")
_ORDERED_MARKER_RE = re.compile(r"^\d+\.$")
_CHECKBOX_RE = re.compile(r"^\[([ xX])\](?:[ \t]+|$)(.*)$")
_LINE_ENDING_RE = re.compile(r"\r\n|\r|\n")

# Tie-break order when line endings are equally common.
_LINE_ENDING_PREFERENCE = ("\n", "\r\n", "\r")


@dataclass
class StructureElement:
    """A heading, list item or preface recognized by the lexer."""

    kind: StructureKind
    level: int
    text: str
    source_line: int
    original_marker: str = ""
    trailing_content: str | None = None
    indent_spaces: int | None = None
    is_checkbox: bool = False
    is_checked: bool = False


@dataclass
class LexResult:
    """Lexer output: the elements and the document's line ending."""

    elements: list[StructureElement] = field(default_factory=list)
    line_ending: str = DEFAULT_LINE_ENDING
    line_count: int = 0

    @property
    def structural_count(self) -> int:
        """Number of headings and list items (the preface does not count)."""
        return sum(1 for e in self.elements if e.kind is not StructureKind.PREFACE)


def detect_line_ending(text: str, default: str = DEFAULT_LINE_ENDING) -> str:
    """Return the most frequent line ending in ``text``."""
    counts = {ending: 0 for ending in _LINE_ENDING_PREFERENCE}
    for match in _LINE_ENDING_RE.finditer(text):
        counts[match.group(0)] += 1
    best = max(_LINE_ENDING_PREFERENCE, key=lambda ending: counts[ending])
    return best if counts[best] > 0 else default


def match_heading(line: str) -> StructureElement | None:
    match = _HEADING_RE.match(line)
    if not match:
        return None
    marker = match.group(1)
    return StructureElement(
        kind=StructureKind.HEADING,
        level=len(marker),
        text=match.group(2).strip(),
        source_line=-1,
        original_marker=marker,
    )


def match_list_item(line: str) -> StructureElement | None:
    match = _LIST_RE.match(line)
    if not match:
        return None

    indent, marker, content = match.group(1), match.group(2), match.group(3).strip()
    ordered = bool(_ORDERED_MARKER_RE.match(marker))
    element = StructureElement(
        kind=StructureKind.ORDERED_LIST if ordered else StructureKind.UNORDERED_LIST,
        # Two columns per nesting level; odd indents round down.
        level=len(indent) // 2 + 1,
        text=content,
        source_line=-1,
        original_marker=marker,
        indent_spaces=len(indent),
    )

    if not ordered:
        checkbox = _CHECKBOX_RE.match(content)
        if checkbox:
            element.is_checkbox = True
            element.is_checked = checkbox.group(1) in ("x", "X")
            element.text = checkbox.group(2).strip()

    return element


def _preface_element(lines: list[str], line_ending: str) -> StructureElement | None:
    preface = line_ending.join(lines)
    if not preface:
        return None
    return StructureElement(kind=StructureKind.PREFACE, level=0, text=preface, source_line=0)


def lex(
    text: str,
    *,
    trace: bool = False,
    default_line_ending: str = DEFAULT_LINE_ENDING,
) -> LexResult:
    """
    Turn ``text`` into structural elements.

    Lines before the first heading or list item become one preface element.
    Lines between two elements become the earlier element's trailing
    content, joined with the document's dominant line ending and never
    trimmed. Text without any line break uses ``default_line_ending``.
    """
    line_ending = detect_line_ending(text, default_line_ending)
    lines = split_lines(text)
    result = LexResult(line_ending=line_ending, line_count=len(lines))

    preface_lines: list[str] = []
    current: StructureElement | None = None
    trailing: list[str] = []

    for line_number, line in enumerate(lines):
        element = match_heading(line) or match_list_item(line)

        if element is None:
            if current is None:
                preface_lines.append(line)
            else:
                trailing.append(line)
            continue

        element.source_line = line_number
        if current is None:
            preface = _preface_element(preface_lines, line_ending)
            if preface is not None:
                result.elements.append(preface)
        else:
            current.trailing_content = line_ending.join(trailing) if trailing else None
            result.elements.append(current)

        if trace:
            logger.debug(
                "line %d: %s level=%d marker=%r text=%r",
                line_number,
                element.kind.value,
                element.level,
                element.original_marker,
                element.text,
            )
        current = element
        trailing = []

    if current is None:
        preface = _preface_element(preface_lines, line_ending)
        if preface is not None:
            result.elements.append(preface)
    else:
        current.trailing_content = line_ending.join(trailing) if trailing else None
        result.elements.append(current)

    if trace:
        logger.debug(
            "lexed %d lines into %d elements (line ending %r)",
            len(lines),
            len(result.elements),
            line_ending,
        )
    return result
