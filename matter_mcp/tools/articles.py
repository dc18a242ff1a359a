"""matter_list_articles and matter_get_article tools."""

from mcp.server.fastmcp import Context

from matter_mcp.server import mcp
from matter_mcp.tools import _helpers


@mcp.tool(annotations=_helpers.LIST_ANNOTATIONS)
async def matter_list_articles(
    limit: int = _helpers.DEFAULT_LIST_LIMIT,
    compact_output: bool = False,
    ctx: Context = None,
) -> str:
    """
    <usecase>List articles from your Matter reading list.</usecase>
    <instructions>
    Returns saved articles in library order with their IDs, titles, authors,
    URLs, status (QUEUE, LATER, ARCHIVE, FEED) and reading progress.

    Use the returned ID with matter_get_article to see highlights and notes.
    </instructions>
    <parameters>
    - limit: Maximum number of articles to return (default: 20, max: 100)
    </parameters>
    <examples>
    - matter_list_articles()
    - matter_list_articles(limit=50)
    </examples>
    """
    compact = _helpers.is_compact(compact_output)
    limit = _helpers.clamp_limit(limit)
    try:
        client, _source = _helpers.get_client(ctx)
        feed = await _helpers.run_blocking(client.collect_feed, limit=limit)

        articles = [item.to_summary() for item in feed.items]
        result = {
            "count": len(articles),
            "articles": articles,
            "has_more": feed.next_cursor is not None,
        }
        if feed.queue_count is not None:
            result["queue_count"] = feed.queue_count
        if feed.archive_count is not None:
            result["archive_count"] = feed.archive_count

        if articles:
            hint = (
                f"Found {len(articles)} articles. "
                f"To see highlights and notes: matter_get_article('{articles[0]['id']}')."
            )
            if feed.next_cursor is not None and limit < _helpers.MAX_LIST_LIMIT:
                hint += f" To see more: matter_list_articles(limit={min(limit * 2, _helpers.MAX_LIST_LIMIT)})."
        else:
            hint = "Your Matter library is empty. Save something with matter_save_article(url)."

        return _helpers.make_response(result, hint, compact=compact)

    except Exception as e:
        return _helpers.tool_error(e, compact=compact)


@mcp.tool(annotations=_helpers.GET_ANNOTATIONS)
async def matter_get_article(article_id: str, compact_output: bool = False, ctx: Context = None) -> str:
    """
    <usecase>Get full details for one Matter article: highlights, notes, tags and content.</usecase>
    <instructions>
    Looks the article up by the ID shown in matter_list_articles.
    Returns metadata, reading progress, your highlights with their notes,
    your article note and the full article text when Matter has it.

    Matter has no direct lookup, so this scans your library; it is slower
    for articles far down the list.
    </instructions>
    <parameters>
    - article_id: The ID of the article to retrieve
    </parameters>
    <examples>
    - matter_get_article("111847745")
    </examples>
    """
    compact = _helpers.is_compact(compact_output)
    article_id = (article_id or "").strip()
    if not article_id:
        return _helpers.make_error(
            error_type="invalid_input",
            message="article_id must not be empty",
            suggestion="Use matter_list_articles() to find article IDs.",
            compact=compact,
        )

    try:
        client, _source = _helpers.get_client(ctx)
        item = await _helpers.run_blocking(client.find_article, article_id)

        if item is None:
            result = {"found": False, "article_id": article_id}
            hint = (
                f"No article with ID '{article_id}' in your library. "
                "Use matter_list_articles() to see valid IDs."
            )
            return _helpers.make_response(result, hint, compact=compact)

        result = {"found": True, "article": item.to_dict()}
        hint = f"'{item.title}' has {len(item.highlights)} highlights."
        return _helpers.make_response(result, hint, compact=compact)

    except Exception as e:
        return _helpers.tool_error(e, compact=compact)
