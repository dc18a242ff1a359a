"""
MCP Tools for the Matter reading list.

The listing and lookup tools are read-only; matter_save_article adds an
entry to the queue.
"""

# Import tool modules to trigger registration with the MCP server
from matter_mcp.tools import (  # noqa: F401
    articles,
    save,
    status,
)
