"""
Exceptions raised by the MindMark converter.

Errors carry structured context only. Turning them into text for people
happens at the UI boundary (see ``shared.hardening.ErrorFormatter``).
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class MindmarkError(Exception):
    """Base exception for converter errors."""

    def to_dict(self) -> dict[str, Any]:
        return {"error": str(self)}


class StructureErrorKind(str, Enum):
    NO_STRUCTURAL_ELEMENTS = "no_structural_elements"


class StructureError(MindmarkError):
    """The document cannot be turned into an outline."""

    def __init__(self, kind: StructureErrorKind, line_count: int = 0) -> None:
        self.kind = kind
        self.line_count = line_count
        super().__init__(f"{kind.value} (scanned {line_count} lines)")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "kind": self.kind.value,
            "line_count": self.line_count,
        }


class ConversionErrorKind(str, Enum):
    ILLEGAL_DESCENDANT = "illegal_descendant"
    ILLEGAL_SIBLING = "illegal_sibling"


class ConversionError(MindmarkError):
    """
    A node type change was rejected before anything was modified.

    Attributes:
        kind: Which ordering rule the change would break.
        node_id: The node whose type was being changed.
        target_type: The requested structure kind.
        offending_node_id: The ancestor, descendant or sibling in the way.
    """

    def __init__(
        self,
        kind: ConversionErrorKind,
        node_id: str,
        target_type: str,
        offending_node_id: str | None = None,
    ) -> None:
        self.kind = kind
        self.node_id = node_id
        self.target_type = target_type
        self.offending_node_id = offending_node_id
        super().__init__(
            f"{kind.value}: cannot convert {node_id} to {target_type}"
            + (f" (conflicts with {offending_node_id})" if offending_node_id else "")
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "kind": self.kind.value,
            "node_id": self.node_id,
            "target_type": self.target_type,
            "offending_node_id": self.offending_node_id,
        }
