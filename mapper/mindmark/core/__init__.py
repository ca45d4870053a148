"""Core data models and abstractions for MindMark."""

from mindmark.core.errors import (
    ConversionError,
    ConversionErrorKind,
    MindmarkError,
    StructureError,
    StructureErrorKind,
)
from mindmark.core.node import (
    DEFAULT_LINE_ENDING,
    Forest,
    Node,
    NodeVariant,
    StructuralMeta,
    StructureKind,
    TableData,
    forest_from_dicts,
    forest_to_dicts,
)

__all__ = [
    "DEFAULT_LINE_ENDING",
    "ConversionError",
    "ConversionErrorKind",
    "Forest",
    "MindmarkError",
    "Node",
    "NodeVariant",
    "StructuralMeta",
    "StructureError",
    "StructureErrorKind",
    "StructureKind",
    "TableData",
    "forest_from_dicts",
    "forest_to_dicts",
]
