"""Boundary hardening utilities for the Loom service.

Provides resource limits for incoming documents and forests, user-friendly
error formatting for converter failures, and input validation. Converter
code raises structured exceptions; the text shown to people is produced
here, at the HTTP boundary.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from mindmark.core.errors import (
    ConversionError,
    ConversionErrorKind,
    StructureError,
    StructureErrorKind,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# 1. Resource Limits
# ---------------------------------------------------------------------------


@dataclass
class ResourceLimits:
    """Size thresholds for data accepted at the boundary.

    Attributes:
        max_document_chars: Largest document text accepted for parsing.
        max_forest_nodes: Most nodes accepted in one submitted forest.
        max_text_chars: Longest single node text accepted from an edit.
    """

    max_document_chars: int = 5_000_000
    max_forest_nodes: int = 200_000
    max_text_chars: int = 100_000


class ResourceLimitExceededError(Exception):
    """Raised when input is larger than the configured limits.

    Attributes:
        limit_name: Which limit was hit.
        actual: The size that was submitted.
        maximum: The configured ceiling.
    """

    def __init__(self, limit_name: str, actual: int, maximum: int) -> None:
        self.limit_name = limit_name
        self.actual = actual
        self.maximum = maximum
        super().__init__(f"{limit_name} exceeded: {actual} > {maximum}")


# ---------------------------------------------------------------------------
# 2. Error Formatting
# ---------------------------------------------------------------------------


@dataclass
class UserFriendlyError:
    """A structured error designed for end-user consumption.

    Attributes:
        message: Clear description for the user.
        suggestion: Actionable guidance.
        component: Originating subsystem (mindmark, loom).
        error_code: Machine-readable identifier (e.g. "CONV_001").
        technical_detail: Debugging info for logs only -- never shown to users.
    """

    message: str
    suggestion: str
    component: str
    error_code: str
    technical_detail: str = ""

    def to_dict(self) -> dict[str, str]:
        """Serialize for API responses (excludes technical_detail).

        Returns:
            Dictionary safe for sending to end users.
        """
        return {
            "message": self.message,
            "suggestion": self.suggestion,
            "component": self.component,
            "error_code": self.error_code,
        }


_STRUCTURE_MESSAGES: dict[StructureErrorKind, tuple[str, str, str]] = {
    StructureErrorKind.NO_STRUCTURAL_ELEMENTS: (
        "The document has no headings or list items to build an outline from.",
        "Add a heading such as '# Title' or a list item such as '- item'.",
        "STRUCT_001",
    ),
}

_CONVERSION_MESSAGES: dict[ConversionErrorKind, tuple[str, str, str]] = {
    ConversionErrorKind.ILLEGAL_DESCENDANT: (
        "This node cannot change type because of the nodes above or below it.",
        "Headings cannot sit inside list items. Move or convert the nested "
        "headings first, or convert the parent list item.",
        "CONV_001",
    ),
    ConversionErrorKind.ILLEGAL_SIBLING: (
        "This node cannot change type because of its neighbouring nodes.",
        "A list item cannot come after a heading at the same level. Reorder "
        "or convert the neighbouring nodes first.",
        "CONV_002",
    ),
}


class ErrorFormatter:
    """Convert internal exceptions to user-friendly messages.

    All methods return a ``UserFriendlyError`` and never expose internal
    paths, stack traces, or implementation details to the end user.
    """

    def format_structure_error(self, error: StructureError) -> UserFriendlyError:
        """Format a parse failure.

        Args:
            error: The caught StructureError.

        Returns:
            User-friendly error with actionable suggestion.
        """
        message, suggestion, code = _STRUCTURE_MESSAGES[error.kind]
        return UserFriendlyError(
            message=message,
            suggestion=suggestion,
            component="mindmark",
            error_code=code,
            technical_detail=repr(error),
        )

    def format_conversion_error(self, error: ConversionError) -> UserFriendlyError:
        """Format a rejected node type change.

        Args:
            error: The caught ConversionError.

        Returns:
            User-friendly error with actionable suggestion.
        """
        message, suggestion, code = _CONVERSION_MESSAGES[error.kind]
        return UserFriendlyError(
            message=message,
            suggestion=suggestion,
            component="mindmark",
            error_code=code,
            technical_detail=repr(error),
        )

    def format_error(self, error: Exception) -> UserFriendlyError:
        """Format any exception raised while serving a request.

        Args:
            error: The caught exception.

        Returns:
            User-friendly error with actionable suggestion.
        """
        if isinstance(error, StructureError):
            return self.format_structure_error(error)
        if isinstance(error, ConversionError):
            return self.format_conversion_error(error)

        message, suggestion, code_suffix = _classify_error(error)
        return UserFriendlyError(
            message=message,
            suggestion=suggestion,
            component="loom",
            error_code=f"LOOM_{code_suffix}",
            technical_detail=repr(error),
        )


def _classify_error(error: Exception) -> tuple[str, str, str]:
    """Map an exception to (message, suggestion, code_suffix).

    Args:
        error: The caught exception.

    Returns:
        Tuple of user message, suggestion text, and error code suffix.
    """
    if isinstance(error, ResourceLimitExceededError):
        return (
            "The submitted content is too large.",
            "Split the document into smaller files and try again.",
            "413",
        )
    if isinstance(error, ValidationError):
        return (
            "The submitted content is not valid.",
            "Check the document text and try again.",
            "400",
        )
    if isinstance(error, (KeyError, TypeError)):
        return (
            "The submitted nodes are malformed.",
            "Reload the document and try the edit again.",
            "422",
        )
    if isinstance(error, ValueError):
        return (
            "Invalid input was provided.",
            "Check the input values and try again.",
            "005",
        )
    return (
        "An unexpected error occurred.",
        "If this keeps happening, please report the issue.",
        "999",
    )


# ---------------------------------------------------------------------------
# 3. Input Validation
# ---------------------------------------------------------------------------

_NULL_BYTE = re.compile(r"\x00")


class ValidationError(Exception):
    """Raised when input validation fails."""


class InputValidator:
    """Validate inputs at system boundaries.

    Size checks raise ``ResourceLimitExceededError``; everything else
    raises ``ValidationError``.
    """

    def __init__(self, limits: ResourceLimits | None = None) -> None:
        self.limits = limits or ResourceLimits()

    def validate_document_text(self, text: str, *, max_chars: int | None = None) -> str:
        """Check a document before it is parsed.

        Args:
            text: Raw document text.
            max_chars: Overrides ``limits.max_document_chars`` when given.

        Returns:
            The text, unchanged.

        Raises:
            ResourceLimitExceededError: When the text is too long.
            ValidationError: When the text contains null bytes.
        """
        maximum = max_chars if max_chars is not None else self.limits.max_document_chars
        if len(text) > maximum:
            raise ResourceLimitExceededError("max_document_chars", len(text), maximum)
        if _NULL_BYTE.search(text):
            raise ValidationError("Document contains null bytes.")
        return text

    def validate_forest_payload(self, nodes: list[dict[str, Any]]) -> int:
        """Count submitted nodes and reject oversized or malformed forests.

        Args:
            nodes: Root node dictionaries as sent by the UI.

        Returns:
            Total number of nodes.

        Raises:
            ResourceLimitExceededError: When there are too many nodes.
            ValidationError: When an entry is not a node object.
        """
        total = 0
        stack = list(nodes)
        while stack:
            item = stack.pop()
            if not isinstance(item, dict):
                raise ValidationError("Every node must be a JSON object.")
            total += 1
            if total > self.limits.max_forest_nodes:
                raise ResourceLimitExceededError("max_forest_nodes", total, self.limits.max_forest_nodes)
            children = item.get("children") or []
            if not isinstance(children, list):
                raise ValidationError("Node children must be a list.")
            stack.extend(children)
        return total

    def validate_node_text(self, text: str) -> str:
        """Check text typed into a single node.

        Args:
            text: New node text.

        Returns:
            The text with control characters removed.

        Raises:
            ResourceLimitExceededError: When the text is too long.
        """
        if len(text) > self.limits.max_text_chars:
            raise ResourceLimitExceededError("max_text_chars", len(text), self.limits.max_text_chars)
        return _strip_control_chars(text)


def _strip_control_chars(text: str) -> str:
    """Remove ASCII control characters except tab, newline and carriage return.

    Args:
        text: Input string.

    Returns:
        Cleaned string.
    """
    return re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", text)
