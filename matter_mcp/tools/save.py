"""matter_save_article tool: add a URL to the Matter queue."""

from mcp.server.fastmcp import Context

from matter_mcp.server import mcp
from matter_mcp.tools import _helpers


@mcp.tool(annotations=_helpers.SAVE_ANNOTATIONS)
async def matter_save_article(url: str, compact_output: bool = False, ctx: Context = None) -> str:
    """
    <usecase>Save a new article to your Matter reading queue.</usecase>
    <instructions>
    Matter fetches and parses the page on its side; the article shows up in
    your queue once that is done.
    </instructions>
    <parameters>
    - url: Absolute http(s) URL of the article to save
    </parameters>
    <examples>
    - matter_save_article("https://example.com/interesting-post")
    </examples>
    """
    compact = _helpers.is_compact(compact_output)
    url = (url or "").strip()
    if not _helpers.is_valid_url(url):
        return _helpers.make_error(
            error_type="invalid_url",
            message=f"Not a valid absolute URL: {url!r}",
            suggestion="Pass a full URL starting with http:// or https://.",
            compact=compact,
        )

    try:
        client, _source = _helpers.get_client(ctx)
        saved = await _helpers.run_blocking(client.save_article, url)

        result = {
            "saved": True,
            "url": url,
            "id": saved.id,
            "content_id": saved.secondary_id,
        }
        hint = "Article saved to your queue. It will appear in matter_list_articles() shortly."
        return _helpers.make_response(result, hint, compact=compact)

    except Exception as e:
        return _helpers.tool_error(e, compact=compact)
