"""
Matter credential resolution and client construction.

Credentials come from the caller, never from server-side state:
request headers in the HTTP transports, or the environment / token file
when running locally over stdio.
"""

import base64
import binascii
import json as json_module
import logging
import os
from pathlib import Path
from typing import Any, Optional, Tuple

from matter_mcp.clients.matter import MatterClient
from matter_mcp.errors import InvalidEnvelope, NotAuthenticated
from matter_mcp.models import Credentials
from matter_mcp.normalize import credentials_from_payload
from matter_mcp.oauth.envelope import open_bearer_token

# Configuration - check env vars first, then fall back to file
MATTER_ACCESS_TOKEN = os.environ.get("MATTER_ACCESS_TOKEN")
MATTER_REFRESH_TOKEN = os.environ.get("MATTER_REFRESH_TOKEN")
MATTER_CONFIG_DIR = Path.home() / ".matter"
MATTER_TOKEN_FILE = MATTER_CONFIG_DIR / "token"
# Remote HTTP callers only fall back to this machine's tokens when opted in
MATTER_HTTP_LOCAL_CREDENTIALS = os.environ.get("MATTER_HTTP_LOCAL_CREDENTIALS", "").lower() in (
    "1",
    "true",
    "yes",
)

ACCESS_TOKEN_HEADER = "x-matter-access-token"
REFRESH_TOKEN_HEADER = "x-matter-refresh-token"

# Sources that live on this machine; rotated tokens are written back for these
LOCAL_SOURCES = ("environment variable", "file (~/.matter/token)")

logger = logging.getLogger(__name__)


def _header(request: Any, name: str) -> Optional[str]:
    headers = getattr(request, "headers", None)
    if headers is None:
        return None
    value = headers.get(name)
    return value.strip() if value else None


def _from_basic(value: str) -> Optional[Credentials]:
    try:
        decoded = base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    access, sep, refresh = decoded.partition(":")
    if not sep or not access or not refresh:
        return None
    return Credentials(access_token=access, refresh_token=refresh)


def credentials_from_request(request: Any) -> Optional[Tuple[Credentials, str]]:
    """Resolve credentials carried by an inbound HTTP request."""
    if request is None:
        return None

    access = _header(request, ACCESS_TOKEN_HEADER)
    refresh = _header(request, REFRESH_TOKEN_HEADER)
    if access and refresh:
        return Credentials(access_token=access, refresh_token=refresh), "request headers"

    authorization = _header(request, "authorization")
    if not authorization:
        return None

    scheme, _, value = authorization.partition(" ")
    scheme = scheme.lower()
    value = value.strip()
    if scheme == "basic":
        credentials = _from_basic(value)
        if credentials is not None:
            return credentials, "basic auth"
    elif scheme == "bearer":
        try:
            return open_bearer_token(value), "oauth bearer token"
        except InvalidEnvelope:
            logger.debug("Ignoring bearer token that is not a Matter envelope")
    return None


def load_token_file(token_file: Optional[Path] = None) -> Optional[Credentials]:
    token_file = token_file or MATTER_TOKEN_FILE
    if not token_file.exists():
        return None
    try:
        return credentials_from_payload(json_module.loads(token_file.read_text()))
    except (OSError, ValueError):
        logger.warning("Could not read Matter token file %s", token_file)
        return None


def save_token_file(credentials: Credentials, token_file: Optional[Path] = None) -> Path:
    """Write a token pair to disk, readable only by the current user."""
    token_file = token_file or MATTER_TOKEN_FILE
    token_file.parent.mkdir(parents=True, exist_ok=True)
    token_json = json_module.dumps(
        {
            "access_token": credentials.access_token,
            "refresh_token": credentials.refresh_token,
        }
    )
    fd = os.open(str(token_file), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    try:
        os.write(fd, token_json.encode())
    finally:
        os.close(fd)
    return token_file


def resolve_credentials(request: Any = None) -> Optional[Tuple[Credentials, str]]:
    """
    Find the Matter token pair for the current caller.

    Order: request headers, Basic auth, OAuth bearer envelope, environment
    variables, token file. The last two are skipped for HTTP requests
    unless MATTER_HTTP_LOCAL_CREDENTIALS is set.

    Returns:
        Tuple of (credentials, source description), or None
    """
    resolved = credentials_from_request(request)
    if resolved is not None:
        return resolved
    if request is not None and not MATTER_HTTP_LOCAL_CREDENTIALS:
        return None

    if MATTER_ACCESS_TOKEN and MATTER_REFRESH_TOKEN:
        return (
            Credentials(access_token=MATTER_ACCESS_TOKEN, refresh_token=MATTER_REFRESH_TOKEN),
            LOCAL_SOURCES[0],
        )

    credentials = load_token_file()
    if credentials is not None:
        return credentials, LOCAL_SOURCES[1]
    return None


def _persist_rotated(credentials: Credentials) -> None:
    path = save_token_file(credentials)
    logger.info("Saved refreshed Matter tokens to %s", path)


def _log_rotated(credentials: Credentials) -> None:
    logger.info("Matter tokens were refreshed for this request")


def get_client(request: Any = None) -> Tuple[MatterClient, str]:
    """
    Build a Matter client for the current caller.

    A new client is created on every call so that concurrent requests never
    share a credential pair.

    Returns:
        Tuple of (client, credential source)

    Raises:
        NotAuthenticated: If no credentials can be found
    """
    resolved = resolve_credentials(request)
    if resolved is None:
        raise NotAuthenticated(
            "No Matter credentials found. Run: uvx matter-mcp --login\n"
            "or set MATTER_ACCESS_TOKEN and MATTER_REFRESH_TOKEN."
        )

    credentials, source = resolved
    observer = _persist_rotated if source in LOCAL_SOURCES else _log_rotated
    return MatterClient(credentials, on_token_refresh=observer), source
