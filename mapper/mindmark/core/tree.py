"""
Forest traversal and copy-on-write helpers.

Walks are iterative so that very deep outlines cannot exhaust the
interpreter stack.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace
from typing import Any

from mindmark.core.node import Forest, Node


@dataclass
class NodeContext:
    """A node together with where it sits in the forest."""

    node: Node
    parent: Node | None
    siblings: list[Node]
    index: int
    depth: int

    @property
    def elder_siblings(self) -> list[Node]:
        return self.siblings[: self.index]

    @property
    def younger_siblings(self) -> list[Node]:
        return self.siblings[self.index + 1 :]


def iter_with_context(forest: Forest) -> Iterator[NodeContext]:
    """Yield every node in document (depth-first, pre-order) order."""
    stack: list[tuple[list[Node], int, Node | None, int]] = [(forest, 0, None, 0)]
    while stack:
        siblings, index, parent, depth = stack.pop()
        if index >= len(siblings):
            continue
        node = siblings[index]
        stack.append((siblings, index + 1, parent, depth))
        yield NodeContext(node=node, parent=parent, siblings=siblings, index=index, depth=depth)
        if node.children:
            stack.append((node.children, 0, node, depth + 1))


def iter_nodes(forest: Forest) -> Iterator[Node]:
    for ctx in iter_with_context(forest):
        yield ctx.node


def find_with_context(forest: Forest, node_id: str) -> NodeContext | None:
    for ctx in iter_with_context(forest):
        if ctx.node.id == node_id:
            return ctx
    return None


def find_node(forest: Forest, node_id: str) -> Node | None:
    ctx = find_with_context(forest, node_id)
    return ctx.node if ctx else None


def get_all_descendants(node: Node) -> list[Node]:
    """Get all descendants as a flat list (DFS order)."""
    return list(iter_nodes(node.children))


def path_to(forest: Forest, node_id: str) -> list[int] | None:
    """Return the child-index path from the roots to ``node_id``."""
    stack: list[tuple[list[Node], list[int]]] = [(forest, [])]
    while stack:
        siblings, prefix = stack.pop()
        for i, node in enumerate(siblings):
            if node.id == node_id:
                return prefix + [i]
            if node.children:
                stack.append((node.children, prefix + [i]))
    return None


def replace_node(forest: Forest, node_id: str, update: Callable[[Node], Node]) -> Forest:
    """
    Return a new forest where ``node_id`` is replaced by ``update(node)``.

    Only the nodes on the path from the root to the target are copied;
    untouched subtrees are shared with the input. The input forest is never
    modified. An unknown id returns a shallow copy of the forest.
    """
    path = path_to(forest, node_id)
    if path is None:
        return list(forest)
    return _rebuild_along_path(forest, path, update)


def _rebuild_along_path(siblings: list[Node], path: list[int], update: Callable[[Node], Node]) -> list[Node]:
    # Walk down recording each level, then rebuild bottom-up.
    levels: list[list[Node]] = [siblings]
    for index in path[:-1]:
        levels.append(levels[-1][index].children)

    new_node = update(levels[-1][path[-1]])
    for depth in range(len(path) - 1, -1, -1):
        level = list(levels[depth])
        level[path[depth]] = new_node
        if depth == 0:
            return level
        parent = levels[depth - 1][path[depth - 1]]
        new_node = replace(parent, children=level)
    return list(siblings)


def max_depth(forest: Forest) -> int:
    """Deepest node depth (roots are depth 1, an empty forest is 0)."""
    return max((ctx.depth + 1 for ctx in iter_with_context(forest)), default=0)


def get_statistics(forest: Forest) -> dict[str, Any]:
    """Get forest statistics for analysis and the parse endpoint."""
    kinds: Counter[str] = Counter()
    heading_levels: Counter[int] = Counter()
    total = 0
    tables = 0
    with_notes = 0
    for node in iter_nodes(forest):
        total += 1
        if node.is_table:
            tables += 1
        elif node.meta is not None:
            kinds[node.meta.kind.value] += 1
            if node.is_heading:
                heading_levels[node.meta.level] += 1
        else:
            kinds["plain"] += 1
        if node.note:
            with_notes += 1

    return {
        "total_nodes": total,
        "root_count": len(forest),
        "max_depth": max_depth(forest),
        "table_nodes": tables,
        "nodes_with_notes": with_notes,
        "kind_distribution": dict(kinds),
        "heading_level_distribution": dict(heading_levels),
    }
