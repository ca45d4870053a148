"""Loom backend server.

Mounts the MindMark converter router under a single FastAPI application
for the outline editor UI. The router is imported lazily so that an import
failure does not prevent the server from starting -- the health endpoint
reports the error instead.

Usage::

    # Development (auto-reload)
    uvicorn loom_server:app --reload --port 8430

    # Or run directly
    python loom_server.py
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logger = logging.getLogger("loom")

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Loom API",
    description=(
        "Backend for the Loom outline editor: converts between structured "
        "Markdown and outline node forests."
    ),
    version=VERSION,
)

# ---------------------------------------------------------------------------
# CORS -- allow local Vite dev server and desktop shell origins
# ---------------------------------------------------------------------------

_ALLOWED_ORIGINS = [
    "http://localhost:5173",   # Vite dev server
    "http://localhost:8430",   # Self (for Swagger UI)
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8430",
    "app://.",                 # Desktop production build
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_tool_status: dict[str, dict[str, Any]] = {
    "mindmark": {"loaded": False, "error": None},
}


# ---------------------------------------------------------------------------
# Health endpoint (registered before the router)
# ---------------------------------------------------------------------------


@app.get("/api/health")
async def unified_health() -> dict[str, Any]:
    """Return service health.

    Returns:
        Dictionary with overall status and per-tool breakdown.
    """
    loaded = all(t["loaded"] for t in _tool_status.values())
    return {
        "status": "ok" if loaded else "error",
        "version": VERSION,
        "tools": _tool_status,
    }


# ---------------------------------------------------------------------------
# MindMark (outline <-> text conversion)
# ---------------------------------------------------------------------------


def _mount_mindmark() -> None:
    """Mount the MindMark router.

    MindMark endpoints keep their ``/api/...`` paths because the router
    paths already contain the ``/api/`` prefix.
    """
    try:
        from mindmark.server import router as mindmark_router

        app.include_router(mindmark_router, tags=["mindmark"])
        _tool_status["mindmark"]["loaded"] = True
        logger.info("MindMark router mounted successfully")
    except Exception as exc:
        _tool_status["mindmark"]["error"] = str(exc)
        logger.warning("MindMark router failed to load: %s", exc)


_mount_mindmark()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def run_server(host: str = "127.0.0.1", port: int = 8430) -> None:
    """Start the Loom server via uvicorn.

    Args:
        host: Bind address. Defaults to localhost.
        port: Port number. Defaults to 8430.
    """
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    run_server()
