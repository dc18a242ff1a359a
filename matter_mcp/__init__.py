"""
Matter MCP Server

An MCP server that provides access to a Matter reading list through the
Matter API.
"""

from matter_mcp.models import Credentials, Highlight, Item, LibraryState

__version__ = "0.1.0"


def get_mcp():
    """Get the MCP server instance. Only imports when called."""
    from matter_mcp.server import mcp

    return mcp


__all__ = [
    "get_mcp",
    "__version__",
    "Credentials",
    "Highlight",
    "Item",
    "LibraryState",
]
