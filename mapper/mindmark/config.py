"""
Converter configuration.

A single dataclass holds every tunable the parser and editing helpers
read. The HTTP layer keeps one instance in memory and exposes it through
``/api/settings``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any


@dataclass
class ConverterConfig:
    """Tunables for parsing and editing.

    Attributes:
        auto_collapse_threshold: Structural element count above which deep
            headings start out collapsed.
        default_collapse_depth: Heading stack depth (root heading = 1) from
            which headings are collapsed in large documents.
        max_list_depth: Deepest list nesting the builder will create.
        max_tables_per_block: Most tables split out of one trailing block.
        new_node_offset: Distance between a parent and nodes placed near it.
        default_line_ending: Line ending used when none can be detected.
        max_document_chars: Largest document accepted at the HTTP boundary.
    """

    auto_collapse_threshold: int = 30
    default_collapse_depth: int = 2
    max_list_depth: int = 64
    max_tables_per_block: int = 128
    new_node_offset: int = 28
    default_line_ending: str = "\n"
    max_document_chars: int = 5_000_000

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConverterConfig:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def update(self, changes: dict[str, Any]) -> ConverterConfig:
        """Return a copy with ``changes`` applied; unknown keys raise."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        merged = self.to_dict()
        merged.update(changes)
        return ConverterConfig(**merged)


DEFAULT_CONFIG = ConverterConfig()
