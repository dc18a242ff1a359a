"""
Matter MCP Server initialization.
"""

import logging

from mcp.server.fastmcp import FastMCP

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"


def _build_instructions() -> str:
    """Build server instructions."""
    return """# Matter MCP Server

Access your Matter reading list: list saved articles, read highlights and notes,
and save new articles to your queue.

## Available Tools

- `matter_list_articles(limit)` - List saved articles with status and reading progress
- `matter_get_article(article_id)` - Full details for one article, including highlights and notes
- `matter_save_article(url)` - Add a URL to your Matter queue
- `matter_status()` - Check authentication and library counts

## Recommended Workflows

### Reviewing what you have read
1. Use `matter_list_articles(limit=20)` to see recent items and their IDs
2. Use `matter_get_article("<id>")` to get highlights, notes and the article text

### Saving something for later
Use `matter_save_article("https://example.com/post")`. Matter fetches and parses
the page itself, so the article may take a moment to show up in listings.

## Notes
- `matter_get_article` scans the library to find an article, so large libraries
  take longer.
- **Compact mode**: Use `compact_output=True` on any tool to omit hints.
"""


# Stateless HTTP: every request carries its own credentials, nothing is kept
# between requests.
mcp = FastMCP(
    "matter-mcp",
    instructions=_build_instructions(),
    stateless_http=True,
    streamable_http_path=MCP_PATH,
)

# Import tools and OAuth routes to register them
from matter_mcp import tools  # noqa: E402, F401
from matter_mcp.oauth import routes  # noqa: E402, F401


def run(transport: str = "stdio", host: str = "127.0.0.1", port: int = 8000):
    """Run the MCP server on the given transport."""
    if transport == "stdio":
        mcp.run()
        return

    import uvicorn

    from matter_mcp.http import build_http_app

    logger.info("Starting Matter MCP server (transport=%s) on %s:%d", transport, host, port)
    uvicorn.run(build_http_app(transport), host=host, port=port)
