"""
Shared helpers and re-exports for MCP tool modules.

Tool modules access commonly-patched names through this module
(e.g., ``_helpers.get_client()``) so that a single
``unittest.mock.patch`` target works for all tools.
"""

import asyncio
from typing import Any, Optional
from urllib.parse import urlsplit

from mcp.types import ToolAnnotations

# --- Re-exports (commonly patched in tests) ---

from matter_mcp.api import get_client as _get_client  # noqa: F401
from matter_mcp.errors import (  # noqa: F401
    AuthExpired,
    NotAuthenticated,
    RequestFailed,
)
from matter_mcp.responses import is_compact, make_error, make_response  # noqa: F401

DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 100


def request_from_context(ctx: Any) -> Optional[Any]:
    """The inbound HTTP request behind a tool call, or None over stdio."""
    if ctx is None:
        return None
    try:
        return getattr(ctx.request_context, "request", None)
    except (AttributeError, ValueError):
        # No active request (direct calls, tests)
        return None


def get_client(ctx: Any = None):
    """Build a Matter client for whoever is calling this tool."""
    return _get_client(request_from_context(ctx))


async def run_blocking(func, *args, **kwargs):
    """Run a blocking Matter API call in a worker thread."""
    return await asyncio.to_thread(func, *args, **kwargs)


def clamp_limit(limit: Any) -> int:
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        return DEFAULT_LIST_LIMIT
    return min(max(1, limit), MAX_LIST_LIMIT)


def is_valid_url(url: str) -> bool:
    """Absolute http(s) URL with a host."""
    if not url or any(c.isspace() for c in url.strip()):
        return False
    parts = urlsplit(url.strip())
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def error_type_for(e: Exception) -> str:
    if isinstance(e, NotAuthenticated):
        return "not_authenticated"
    if isinstance(e, AuthExpired):
        return "auth_expired"
    if isinstance(e, RequestFailed):
        return "request_failed"
    return "unexpected_error"


def suggest_for_error(e: Exception) -> str:
    """Pick a next step for the model based on the kind of failure."""
    if isinstance(e, NotAuthenticated):
        return (
            "Connect Matter first: run 'uvx matter-mcp --login', or set "
            "MATTER_ACCESS_TOKEN and MATTER_REFRESH_TOKEN."
        )
    if isinstance(e, AuthExpired):
        return (
            "Your Matter session has expired. Log in again with "
            "'uvx matter-mcp --login' (or reconnect the integration)."
        )
    if isinstance(e, RequestFailed):
        if e.status is not None and e.status >= 500:
            return "Matter is having trouble right now. Try again in a minute."
        return "Check the input and try again. Use matter_status() to verify the connection."
    return "Use matter_status() to check the connection."


def tool_error(e: Exception, compact: bool = False) -> str:
    details = getattr(e, "body", None) if isinstance(e, RequestFailed) else None
    return make_error(
        error_type=error_type_for(e),
        message=str(e),
        suggestion=suggest_for_error(e),
        details=details,
        compact=compact,
    )


# --- Tool annotations ---

# Base annotations for read-only operations
_READ_ONLY_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": False,  # Private reading list, not open world
}

LIST_ANNOTATIONS = ToolAnnotations(
    title="List Matter Articles",
    **_READ_ONLY_ANNOTATIONS,
)

GET_ANNOTATIONS = ToolAnnotations(
    title="Get Matter Article",
    **_READ_ONLY_ANNOTATIONS,
)

STATUS_ANNOTATIONS = ToolAnnotations(
    title="Check Matter Connection",
    **_READ_ONLY_ANNOTATIONS,
)

SAVE_ANNOTATIONS = ToolAnnotations(
    title="Save Article to Matter",
    readOnlyHint=False,
    destructiveHint=False,
    idempotentHint=False,
    openWorldHint=True,  # Matter fetches the URL
)
