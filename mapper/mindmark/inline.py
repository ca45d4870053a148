"""
Inline markup helpers using markdown-it-py.

Node text and notes may contain inline Markdown. These helpers read links
that point at other nodes or maps and strip markup for plain display.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, unquote, urlsplit

from markdown_it import MarkdownIt
from markdown_it.token import Token

from mindmark.core.node import Forest, Node

_md = MarkdownIt("commonmark")


@dataclass
class NodeLink:
    """A link from a note to a node, a map, or a node in another map."""

    target_map_id: str | None
    target_node_id: str | None
    label: str = ""

    @property
    def id(self) -> str:
        return f"{self.target_map_id or ''}|{self.target_node_id or ''}"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "label": self.label}
        if self.target_map_id:
            data["targetMapId"] = self.target_map_id
        if self.target_node_id:
            data["targetNodeId"] = self.target_node_id
        return data


def _iter_inline_tokens(tokens: list[Token]):
    for token in tokens:
        if token.type == "inline" and token.children:
            yield from token.children


def iter_links(text: str | None) -> list[tuple[str, str]]:
    """Return ``(label, href)`` for every Markdown link in ``text``."""
    if not text or not text.strip():
        return []

    links: list[tuple[str, str]] = []
    href: str | None = None
    label_parts: list[str] = []
    for token in _iter_inline_tokens(_md.parse(text)):
        if token.type == "link_open":
            href = unquote(str(token.attrGet("href") or ""))
            label_parts = []
        elif token.type == "link_close" and href is not None:
            links.append(("".join(label_parts).strip(), href.strip()))
            href = None
        elif href is not None and token.type in ("text", "code_inline"):
            label_parts.append(token.content)
    return links


def _resolve_href(href: str, current_map_id: str | None) -> tuple[str | None, str | None]:
    lowered = href.lower()
    if lowered.startswith("node:"):
        return current_map_id, href[len("node:"):] or None
    if href.startswith("#"):
        return current_map_id, href[1:] or None
    if lowered.startswith("map:"):
        map_id, _, node_id = href[len("map:"):].partition("#")
        return map_id or None, node_id or None

    query = parse_qs(urlsplit(href).query)
    map_id = query.get("mapId", [None])[0]
    node_id = query.get("nodeId", [None])[0]
    if map_id or node_id:
        return map_id or current_map_id, node_id
    return None, None


def extract_node_links(note: str | None, current_map_id: str | None = None) -> list[NodeLink]:
    """
    Collect links from ``note`` that target nodes or maps.

    Recognized hrefs are ``node:<id>``, ``#<id>``, ``map:<map>`` and
    ``map:<map>#<id>``, plus any URL carrying ``mapId`` or ``nodeId`` query
    parameters. Links to the same target are reported once.
    """
    seen: set[str] = set()
    results: list[NodeLink] = []
    for label, href in iter_links(note):
        map_id, node_id = _resolve_href(href, current_map_id)
        if not (map_id or node_id):
            continue
        link = NodeLink(target_map_id=map_id, target_node_id=node_id, label=label)
        if link.id not in seen:
            seen.add(link.id)
            results.append(link)
    return results


def plain_text(text: str) -> str:
    """Strip inline markup (emphasis, code, links, images) from ``text``."""
    parts: list[str] = []
    for token in _iter_inline_tokens(_md.parse(text)):
        if token.type in ("text", "code_inline"):
            parts.append(token.content)
        elif token.type in ("softbreak", "hardbreak"):
            parts.append(" ")
        elif token.type == "image":
            parts.append(token.content)
    return "".join(parts).strip()


def compute_anchor(forest: Forest, node_id: str) -> str | None:
    """
    Anchor text for a node: its text, suffixed ``-N`` for the N-th repeat.

    Nodes are counted breadth first, so the first occurrence of a text has
    no suffix, the second gets ``-1`` and so on.
    """
    count = 0
    target: Node | None = None
    for node in _breadth_first(forest):
        if node.id == node_id:
            target = node
            break
    if target is None:
        return None
    for node in _breadth_first(forest):
        if node.id == node_id:
            break
        if node.text == target.text:
            count += 1
    return target.text if count == 0 else f"{target.text}-{count}"


def resolve_anchor(forest: Forest, anchor: str) -> Node | None:
    """Inverse of :func:`compute_anchor`."""
    base, _, suffix = anchor.rpartition("-")
    if base and suffix.isdigit():
        wanted = int(suffix)
    else:
        base, wanted = anchor, 0

    seen = 0
    for node in _breadth_first(forest):
        if node.text == base:
            if seen == wanted:
                return node
            seen += 1
    # Plain text that happens to end in "-<digits>".
    if base != anchor:
        for node in _breadth_first(forest):
            if node.text == anchor:
                return node
    return None


def _breadth_first(forest: Forest):
    queue = deque(forest)
    while queue:
        node = queue.popleft()
        yield node
        queue.extend(node.children)
