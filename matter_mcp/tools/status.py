"""matter_status tool: check connection and authentication."""

from mcp.server.fastmcp import Context

from matter_mcp.server import mcp
from matter_mcp.tools import _helpers


@mcp.tool(annotations=_helpers.STATUS_ANNOTATIONS)
async def matter_status(compact_output: bool = False, ctx: Context = None) -> str:
    """
    <usecase>Check connection status and authentication with Matter.</usecase>
    <instructions>
    Returns where the credentials came from and your queue/archive counts.
    Use this to verify your connection or troubleshoot issues.
    </instructions>
    <examples>
    - matter_status()
    </examples>
    """
    compact = _helpers.is_compact(compact_output)
    source = None

    try:
        client, source = _helpers.get_client(ctx)
        feed = await _helpers.run_blocking(client.collect_feed, limit=1)

        result = {
            "authenticated": True,
            "connection": source,
            "status": "connected",
            "queue_count": feed.queue_count,
            "archive_count": feed.archive_count,
        }
        hint = (
            "Connected to Matter. Use matter_list_articles() to see your reading list."
        )
        return _helpers.make_response(result, hint, compact=compact)

    except Exception as e:
        result = {
            "authenticated": False,
            "connection": source,
            "error": str(e),
            "error_type": _helpers.error_type_for(e),
        }
        return _helpers.make_response(result, _helpers.suggest_for_error(e), compact=compact)
