"""
Matter API Client

Wraps the private, reverse-engineered API used by the Matter web app
(https://web.getmatter.com/). There is no public documentation; endpoints and
payload shapes follow what the web app and the Obsidian plugin send.
"""

import logging
import os
from typing import Any, Callable, Dict, Iterator, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from matter_mcp.errors import AuthExpired, QRLoginError, RequestFailed
from matter_mcp.models import Credentials, FeedPage, FeedResult, Item, QRSession, SaveResult
from matter_mcp.normalize import (
    credentials_from_payload,
    page_from_payload,
    qr_session_from_payload,
    save_result_from_payload,
)

logger = logging.getLogger(__name__)

# API endpoints
API_BASE = os.environ.get("MATTER_API_BASE", "https://api.getmatter.com/api/v20").rstrip("/")
# QR login is only served by the older API host
QR_API_BASE = os.environ.get("MATTER_QR_API_BASE", "https://api.getmatter.app/api/v11").rstrip("/")
SAVE_URL = "https://web.getmatter.com/api/save"
USER_AGENT = "Matter MCP Server/1.0"

# The epoch timestamp makes the updates feed return the whole library
FEED_START_TIMESTAMP = "1970-01-01T00:00:00.000000+00:00"
FEED_PATH = "/library_items/updates_feed/"

try:
    REQUEST_TIMEOUT = float(os.environ.get("MATTER_REQUEST_TIMEOUT", "30"))
except ValueError:
    logger.warning("Invalid MATTER_REQUEST_TIMEOUT value, using default of 30 seconds")
    REQUEST_TIMEOUT = 30.0

TokenObserver = Callable[[Credentials], None]


def _build_session() -> requests.Session:
    """Connection-pooling session that retries idempotent requests on 5xx."""
    session = requests.Session()
    retry_strategy = Retry(
        total=3,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(
        max_retries=retry_strategy,
        pool_connections=10,
        pool_maxsize=10,
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _error_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def refresh_credentials(
    credentials: Credentials,
    session: Optional[requests.Session] = None,
    base_url: str = API_BASE,
) -> Credentials:
    """
    Exchange a refresh token for a fresh token pair.

    Makes exactly one request and never retries. The caller decides what to do
    with the returned pair; nothing shared is modified here.

    Raises:
        AuthExpired: If the refresh request fails for any reason.
    """
    http = session or requests
    try:
        response = http.post(
            f"{base_url}/token/refresh/",
            json={"refresh_token": credentials.refresh_token},
            headers={"Content-Type": "application/json"},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        raise AuthExpired(f"Network error during token refresh: {e}") from e

    if not response.ok:
        raise AuthExpired(f"Token refresh rejected (HTTP {response.status_code})")

    try:
        payload = response.json()
    except ValueError as e:
        raise AuthExpired("Token refresh returned invalid JSON") from e

    refreshed = credentials_from_payload(payload)
    if refreshed is None:
        raise AuthExpired("Token refresh response did not contain both tokens")
    return refreshed


class MatterClient:
    """Client for the Matter library API.

    One instance owns one credential pair. Build a separate client per
    inbound request rather than sharing one across concurrent callers.
    """

    def __init__(
        self,
        credentials: Credentials,
        on_token_refresh: Optional[TokenObserver] = None,
        session: Optional[requests.Session] = None,
        base_url: str = API_BASE,
    ):
        self._credentials = credentials
        self._on_token_refresh = on_token_refresh
        self._session = session or _build_session()
        self._base_url = base_url

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith("http://") or endpoint.startswith("https://"):
            return endpoint
        return f"{self._base_url}{endpoint}"

    def _send(self, method: str, url: str, json: Any) -> requests.Response:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._credentials.access_token}",
        }
        try:
            return self._session.request(
                method, url, headers=headers, json=json, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            raise RequestFailed(f"Network error calling Matter API: {e}") from e

    def _install(self, credentials: Credentials) -> None:
        self._credentials = credentials
        if self._on_token_refresh is None:
            return
        try:
            self._on_token_refresh(credentials)
        except Exception:
            logger.warning("Token refresh observer failed", exc_info=True)

    def _request(self, method: str, endpoint: str, json: Any = None) -> Any:
        """Make an authenticated request, refreshing the token once on 401."""
        url = self._url(endpoint)
        response = self._send(method, url, json)

        if response.status_code == 401:
            logger.info("Matter access token rejected, refreshing")
            refreshed = refresh_credentials(
                self._credentials, session=self._session, base_url=self._base_url
            )
            self._install(refreshed)
            response = self._send(method, url, json)
            if response.status_code == 401:
                raise AuthExpired("Matter rejected the refreshed access token")

        if not response.ok:
            raise RequestFailed(
                f"Matter API request failed: {method} {endpoint}",
                status=response.status_code,
                body=_error_body(response),
            )

        try:
            return response.json()
        except ValueError as e:
            raise RequestFailed(
                "Invalid JSON from Matter API",
                status=response.status_code,
                body=response.text[:200],
            ) from e

    # --- Feed ---

    def _first_page_endpoint(self) -> str:
        return f"{FEED_PATH}?after_timestamp={quote(FEED_START_TIMESTAMP, safe='')}&page=1"

    def iter_feed_pages(self, start_cursor: Optional[str] = None) -> Iterator[FeedPage]:
        """
        Walk the updates feed page by page, following the ``next`` cursor.

        Pages are fetched lazily and strictly in order. A page with no items
        but a cursor does not end the walk; only a missing cursor does.

        Raises:
            RequestFailed: If the API hands back a cursor it already returned.
        """
        cursor = start_cursor or self._first_page_endpoint()
        seen = {cursor}
        while True:
            page = page_from_payload(self._request("GET", cursor))
            yield page

            if page.next_cursor is None:
                return
            if page.next_cursor in seen:
                raise RequestFailed(
                    "Matter API returned a repeated pagination cursor",
                    body={"next": page.next_cursor},
                )
            seen.add(page.next_cursor)
            cursor = page.next_cursor

    def collect_feed(
        self, limit: Optional[int] = None, start_cursor: Optional[str] = None
    ) -> FeedResult:
        """
        Collect up to ``limit`` items from the feed.

        The limit is honored as given (no clamping); ``None`` walks the whole
        feed. When the limit is hit mid-page, the remaining items on that page
        are dropped and the page's cursor is returned.

        Returns:
            FeedResult with the items in feed order
        """
        if limit is not None and limit < 1:
            raise ValueError("limit must be a positive integer")

        items = []
        result = FeedResult(items=items)
        first = True
        for page in self.iter_feed_pages(start_cursor):
            if first:
                result.queue_count = page.queue_count
                result.archive_count = page.archive_count
                first = False

            items.extend(page.items)
            if limit is not None and len(items) >= limit:
                result.items = items[:limit]
                result.next_cursor = page.next_cursor
                return result

        return result

    def find_article(self, article_id: str) -> Optional[Item]:
        """
        Find one article by id.

        The API has no fetch-by-id endpoint, so this scans the feed. An exact
        match on the entry id or the content id's string form is returned as
        soon as it is seen. A numeric-only match (``"0042"`` for content id
        42) is kept as a fallback and only returned once the feed is
        exhausted without an exact match.
        """
        article_id = str(article_id).strip()
        try:
            numeric_id: Optional[int] = int(article_id)
        except ValueError:
            numeric_id = None

        fallback: Optional[Item] = None
        for page in self.iter_feed_pages():
            for item in page.items:
                if item.entry_id == article_id or str(item.id) == article_id:
                    return item
                if (
                    fallback is None
                    and numeric_id is not None
                    and isinstance(item.id, int)
                    and item.id == numeric_id
                ):
                    fallback = item
        return fallback

    def save_article(self, url: str) -> SaveResult:
        """Add a URL to the Matter queue. Matter fetches and parses it server-side."""
        payload = self._request("POST", SAVE_URL, json={"url": url, "user_agent": USER_AGENT})
        return save_result_from_payload(payload)


# --- QR login (unauthenticated endpoints) ---


def trigger_qr_login(
    session: Optional[requests.Session] = None, base_url: str = QR_API_BASE
) -> QRSession:
    """
    Start a QR login with Matter.

    Returns:
        QRSession with the session token and the QR image URL to display

    Raises:
        QRLoginError: If Matter does not hand back both values
    """
    http = session or requests
    try:
        response = http.post(
            f"{base_url}/qr_login/trigger/",
            json={"client_type": "integration"},
            headers={"Content-Type": "application/json"},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        raise QRLoginError(f"Failed to connect to Matter API: {e}") from e

    if not response.ok:
        raise QRLoginError(
            f"Failed to initiate Matter login (HTTP {response.status_code}): {response.text[:200]}"
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise QRLoginError("Invalid JSON from Matter QR login") from e

    qr_session = qr_session_from_payload(payload)
    if qr_session is None:
        raise QRLoginError(f"Unexpected response from Matter API: {payload}")
    return qr_session


def exchange_qr_token(
    session_token: str,
    session: Optional[requests.Session] = None,
    base_url: str = QR_API_BASE,
) -> Optional[Credentials]:
    """
    Ask Matter whether a QR login has been completed.

    Returns:
        The token pair once the code has been scanned, None while it is
        still pending (including transient failures)
    """
    http = session or requests
    try:
        response = http.post(
            f"{base_url}/qr_login/exchange/",
            json={"session_token": session_token},
            headers={"Content-Type": "application/json"},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.warning("QR exchange poll failed: %s", e)
        return None

    if not response.ok:
        logger.debug("QR exchange pending (HTTP %s)", response.status_code)
        return None

    try:
        payload: Dict[str, Any] = response.json()
    except ValueError:
        logger.debug("QR exchange returned non-JSON body")
        return None

    return credentials_from_payload(payload)
