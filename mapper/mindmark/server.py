"""FastAPI router for MindMark (outline <-> text conversion).

Exposes the converter to the UI: parsing, serialization, the
layout-preserving merge, structural edits and link extraction. Endpoints
are registered on an ``APIRouter`` so that ``loom_server.py`` can mount
them.

The converter is stateless; forests travel in the request and response
bodies as the camelCase dictionaries produced by ``Node.to_dict``. The only
server-side state is the converter configuration.
"""

from __future__ import annotations

import logging
from typing import Any, NoReturn

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from mindmark.config import ConverterConfig
from mindmark.core.errors import ConversionError, StructureError
from mindmark.core.node import Forest, Node, StructureKind, forest_from_dicts, forest_to_dicts
from mindmark.inline import extract_node_links
from mindmark.structure import (
    ParseOptions,
    add_child_node,
    add_sibling_node,
    apply_text_changes,
    build_line_index,
    change_indent,
    change_list_style,
    change_node_type,
    diff_text_changes,
    merge_preserving_layout,
    parse,
    parse_document,
    renumber_ordered_lists,
    serialize,
    update_node_text,
)
from shared.hardening import (
    ErrorFormatter,
    InputValidator,
    ResourceLimitExceededError,
    ValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_formatter = ErrorFormatter()
_validator = InputValidator()

# In-memory state; the converter itself keeps none.
_state: dict[str, Any] = {
    "settings": ConverterConfig(),
}


def get_config() -> ConverterConfig:
    return _state["settings"]


def reset_state() -> None:
    """Restore default settings (used by tests)."""
    _state["settings"] = ConverterConfig()


def _raise_http(error: Exception) -> NoReturn:
    """Translate a converter or validation error into an HTTPException."""
    friendly = _formatter.format_error(error)
    logger.info("Request rejected: %s", friendly.technical_detail)
    if isinstance(error, (StructureError, ConversionError)):
        status = 422
    elif isinstance(error, ResourceLimitExceededError):
        status = 413
    else:
        status = 400
    raise HTTPException(status_code=status, detail=friendly.to_dict()) from error


def _load_forest(nodes: list[dict[str, Any]]) -> Forest:
    try:
        _validator.validate_forest_payload(nodes)
        return forest_from_dicts(nodes)
    except (ValidationError, ResourceLimitExceededError, ValueError) as e:
        _raise_http(e)


def _check_text(markdown: str) -> None:
    try:
        _validator.validate_document_text(markdown, max_chars=get_config().max_document_chars)
    except (ValidationError, ResourceLimitExceededError) as e:
        _raise_http(e)


def _forest_response(forest: Forest) -> dict[str, Any]:
    return {"nodes": forest_to_dicts(forest), "markdown": serialize(forest)}


# ============================================================================
# Pydantic Models for API
# ============================================================================


class ParseRequest(BaseModel):
    """Request for parsing a document into nodes."""

    markdown: str
    collapse_depth: int | None = Field(default=None, ge=1)
    trace: bool = False
    start_x: float | None = None
    start_y: float | None = None
    horizontal_spacing: float | None = None
    vertical_spacing: float | None = None


class ForestRequest(BaseModel):
    """Request carrying a forest."""

    nodes: list[dict[str, Any]]


class MergeRequest(BaseModel):
    """Request for merging a re-parsed document into the current forest.

    Either ``parsed`` nodes or the edited ``markdown`` must be given.
    """

    existing: list[dict[str, Any]]
    parsed: list[dict[str, Any]] | None = None
    markdown: str | None = None
    parent: dict[str, Any] | None = None


class SyncRequest(BaseModel):
    """Request for applying an editor change to the current forest."""

    nodes: list[dict[str, Any]]
    markdown: str


class NodeTypeRequest(BaseModel):
    nodes: list[dict[str, Any]]
    node_id: str
    new_type: str


class ListStyleRequest(BaseModel):
    nodes: list[dict[str, Any]]
    node_id: str
    new_style: str


class IndentRequest(BaseModel):
    nodes: list[dict[str, Any]]
    node_id: str
    direction: str = Field(..., pattern="^(increase|decrease)$")


class NodeTextRequest(BaseModel):
    nodes: list[dict[str, Any]]
    node_id: str
    text: str


class AddNodeRequest(BaseModel):
    """Request for adding a child or sibling node."""

    nodes: list[dict[str, Any]]
    node_id: str
    text: str = "New Node"
    insert_after: bool = True


class LinksRequest(BaseModel):
    note: str | None = None
    current_map_id: str | None = None


# ============================================================================
# Settings Endpoints
# ============================================================================


@router.get("/api/settings")
def get_settings() -> dict[str, Any]:
    """Get converter settings."""
    return get_config().to_dict()


@router.put("/api/settings")
def save_settings(settings: dict[str, Any]) -> dict[str, Any]:
    """Update converter settings, preserving any that weren't sent."""
    try:
        _state["settings"] = get_config().update(settings)
    except (TypeError, ValueError) as e:
        _raise_http(e)
    logger.info("Settings updated: %s", sorted(settings))
    return {"saved": True, "settings": get_config().to_dict()}


# ============================================================================
# Conversion Endpoints
# ============================================================================


@router.post("/api/parse")
def parse_markdown(request: ParseRequest) -> dict[str, Any]:
    """Parse a document into a forest."""
    _check_text(request.markdown)
    options = ParseOptions(
        start_x=request.start_x,
        start_y=request.start_y,
        horizontal_spacing=request.horizontal_spacing,
        vertical_spacing=request.vertical_spacing,
        collapse_depth=request.collapse_depth,
        trace=request.trace,
    )
    try:
        document = parse_document(request.markdown, options, get_config())
    except StructureError as e:
        _raise_http(e)

    return {
        "nodes": forest_to_dicts(document.roots),
        "lineEnding": document.line_ending,
        "headingLevels": document.heading_levels,
        "layoutHints": document.layout_hints,
        "statistics": document.statistics,
    }


@router.post("/api/serialize")
def serialize_nodes(request: ForestRequest) -> dict[str, Any]:
    """Serialize a forest to text."""
    return {"markdown": serialize(_load_forest(request.nodes))}


@router.post("/api/merge")
def merge_nodes(request: MergeRequest) -> dict[str, Any]:
    """Merge freshly parsed nodes into the existing forest."""
    existing = _load_forest(request.existing)
    if request.parsed is not None:
        parsed = _load_forest(request.parsed)
    elif request.markdown is not None:
        _check_text(request.markdown)
        try:
            parsed = parse(request.markdown, config=get_config())
        except StructureError as e:
            _raise_http(e)
    else:
        raise HTTPException(status_code=400, detail="Provide either parsed nodes or markdown")

    parent = Node.from_dict(request.parent) if request.parent else None
    merged = merge_preserving_layout(existing, parsed, parent, get_config())
    return {"nodes": forest_to_dicts(merged)}


@router.post("/api/sync")
def sync_from_editor(request: SyncRequest) -> dict[str, Any]:
    """Apply an editor change to the forest the UI holds.

    When the edit kept the document's shape, only text and notes are
    patched so node identity is untouched. Otherwise the parse is merged
    into the current forest.
    """
    current = _load_forest(request.nodes)
    _check_text(request.markdown)
    try:
        parsed = parse(request.markdown, config=get_config())
    except StructureError as e:
        _raise_http(e)

    changes = diff_text_changes(current, parsed)
    if changes is not None:
        result = apply_text_changes(current, changes)
        mode = "patch"
    else:
        result = merge_preserving_layout(current, parsed, config=get_config())
        mode = "replace"

    index = build_line_index(parsed)
    return {
        "mode": mode,
        "changes": changes,
        "nodes": forest_to_dicts(result),
        "lineToNode": {str(line): node_id for line, node_id in index.line_to_node.items()},
    }


# ============================================================================
# Structural Edit Endpoints
# ============================================================================


@router.post("/api/nodes/type")
def change_type(request: NodeTypeRequest) -> dict[str, Any]:
    """Convert a node between heading and list item."""
    forest = _load_forest(request.nodes)
    try:
        updated = change_node_type(forest, request.node_id, StructureKind(request.new_type))
    except (ConversionError, ValueError) as e:
        _raise_http(e)
    return _forest_response(updated)


@router.post("/api/nodes/list-style")
def change_style(request: ListStyleRequest) -> dict[str, Any]:
    """Switch a list item between ordered and unordered."""
    forest = _load_forest(request.nodes)
    try:
        updated = change_list_style(forest, request.node_id, StructureKind(request.new_style))
    except ValueError as e:
        _raise_http(e)
    return _forest_response(updated)


@router.post("/api/nodes/indent")
def indent_node(request: IndentRequest) -> dict[str, Any]:
    """Indent or outdent a node."""
    forest = _load_forest(request.nodes)
    return _forest_response(change_indent(forest, request.node_id, request.direction))


@router.post("/api/nodes/renumber")
def renumber(request: ForestRequest) -> dict[str, Any]:
    """Renumber every ordered list."""
    return _forest_response(renumber_ordered_lists(_load_forest(request.nodes)))


@router.post("/api/nodes/text")
def update_text(request: NodeTextRequest) -> dict[str, Any]:
    """Replace a node's text."""
    forest = _load_forest(request.nodes)
    try:
        text = _validator.validate_node_text(request.text)
    except ResourceLimitExceededError as e:
        _raise_http(e)
    updated, markdown = update_node_text(forest, request.node_id, text)
    return {"nodes": forest_to_dicts(updated), "markdown": markdown}


@router.post("/api/nodes/child")
def add_child(request: AddNodeRequest) -> dict[str, Any]:
    """Append a child node."""
    forest = _load_forest(request.nodes)
    updated, new_id = add_child_node(forest, request.node_id, request.text, get_config())
    if new_id is None:
        raise HTTPException(status_code=404, detail="Node not found or cannot have children")
    return {**_forest_response(updated), "nodeId": new_id}


@router.post("/api/nodes/sibling")
def add_sibling(request: AddNodeRequest) -> dict[str, Any]:
    """Insert a sibling node."""
    forest = _load_forest(request.nodes)
    updated, new_id = add_sibling_node(
        forest, request.node_id, request.text, request.insert_after, get_config()
    )
    if new_id is None:
        raise HTTPException(status_code=404, detail="Node not found")
    return {**_forest_response(updated), "nodeId": new_id}


# ============================================================================
# Link Endpoints
# ============================================================================


@router.post("/api/links")
def links(request: LinksRequest) -> dict[str, Any]:
    """Extract node and map links from a note."""
    found = extract_node_links(request.note, request.current_map_id)
    return {"links": [link.to_dict() for link in found]}
