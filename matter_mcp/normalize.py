"""
Normalization of raw Matter API payloads.

The Matter API is not documented and different endpoints (and versions) spell
the same fields differently. Every accepted raw shape is mapped to one
canonical model here, so the rest of the package never looks at raw dicts.
"""

import logging
from typing import Any, Dict, List, Optional

from matter_mcp.errors import RequestFailed
from matter_mcp.models import (
    Credentials,
    FeedPage,
    Highlight,
    Item,
    LibraryState,
    QRSession,
    SaveResult,
)

logger = logging.getLogger(__name__)


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    """Return the first truthy value among ``keys``."""
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return None


def _profile_name(profile: Any) -> Optional[str]:
    if not isinstance(profile, dict):
        return None
    return _first(profile, "any_name", "name")


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _progress(history: Any) -> Optional[float]:
    if not isinstance(history, dict):
        return None
    value = history.get("max_read_percentage")
    if value is None:
        value = history.get("last_read_percentage")
    if value is None:
        return None
    try:
        return min(max(float(value), 0.0), 1.0)
    except (TypeError, ValueError):
        return None


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _sequence(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _highlights(annotations: Any) -> List[Highlight]:
    result = []
    for annotation in _sequence(annotations):
        if not isinstance(annotation, dict) or not annotation.get("text"):
            continue
        result.append(Highlight(text=annotation["text"], note=annotation.get("note") or None))
    return result


def credentials_from_payload(raw: Any) -> Optional[Credentials]:
    """Extract a token pair, accepting snake_case and camelCase keys."""
    if not isinstance(raw, dict):
        return None
    access = _first(raw, "access_token", "accessToken")
    refresh = _first(raw, "refresh_token", "refreshToken")
    if not isinstance(access, str) or not isinstance(refresh, str):
        return None
    return Credentials(access_token=access, refresh_token=refresh)


def qr_session_from_payload(raw: Any) -> Optional[QRSession]:
    """Extract the session token and QR image URL from a trigger response."""
    if not isinstance(raw, dict):
        return None
    session_token = _first(raw, "session_token", "sessionToken")
    qr_code_url = _first(raw, "qr_code_url", "qrCodeUrl", "qr_url", "qrUrl")
    if not session_token or not qr_code_url:
        return None
    return QRSession(session_token=str(session_token), qr_code_url=str(qr_code_url))


def item_from_entry(raw: Dict[str, Any]) -> Item:
    """Map one updates-feed entry to an Item.

    Raises:
        RequestFailed: If the entry's content is not an object.
    """
    content = raw.get("content")
    if content is None:
        content = {}
    elif not isinstance(content, dict):
        raise RequestFailed("Malformed feed entry from Matter API", body=raw)
    article = _mapping(content.get("article"))
    library = _mapping(content.get("library"))

    content_id = content.get("id")
    entry_id = raw.get("id")

    return Item(
        id=content_id if content_id is not None else entry_id,
        entry_id=str(entry_id) if entry_id is not None else "",
        url=content.get("url") or "",
        title=content.get("title") or "",
        author=_profile_name(content.get("author")),
        publisher=_profile_name(content.get("publisher")),
        publication_date=content.get("publication_date"),
        status=LibraryState.from_value(library.get("library_state")),
        progress=_progress(content.get("history")),
        word_count=_as_int(article.get("word_count")),
        reading_time_minutes=_as_int(article.get("reading_time_minutes")),
        excerpt=content.get("excerpt"),
        note=content.get("my_note") or None,
        tags=tuple(
            t["name"] for t in _sequence(content.get("tags")) if isinstance(t, dict) and t.get("name")
        ),
        highlights=tuple(
            _highlights(raw.get("annotations")) + _highlights(content.get("my_annotations"))
        ),
        markdown=article.get("markdown"),
    )


def page_from_payload(raw: Any) -> FeedPage:
    """Map an updates-feed response to a FeedPage.

    Raises:
        RequestFailed: If the payload does not look like a feed page.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("feed"), list):
        raise RequestFailed("Unexpected feed response from Matter API", body=raw)

    items = []
    for entry in raw["feed"]:
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed feed entry: %r", entry)
            continue
        items.append(item_from_entry(entry))

    return FeedPage(
        items=items,
        next_cursor=raw.get("next") or None,
        queue_count=_as_int(raw.get("queue_count")),
        archive_count=_as_int(raw.get("archive_count")),
    )


def save_result_from_payload(raw: Any) -> SaveResult:
    if not isinstance(raw, dict) or raw.get("id") is None:
        raise RequestFailed("Unexpected save response from Matter API", body=raw)
    return SaveResult(id=raw["id"], secondary_id=raw.get("content_id"))
