"""
Sealed envelopes carrying Matter tokens through the OAuth flow.

The authorization code and the bearer token both wrap the Matter token pair.
Intermediate hops (the MCP client, the browser) pass them along untouched;
only this server opens them. This keeps the server stateless: no
session-to-token mapping is ever stored.
"""

import base64
import binascii
import json

from matter_mcp.errors import InvalidEnvelope
from matter_mcp.models import Credentials


def _encode(payload: dict, urlsafe: bool) -> str:
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    if urlsafe:
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    return base64.b64encode(raw).decode("ascii")


def _decode(value: str) -> dict:
    if not value or not isinstance(value, str):
        raise InvalidEnvelope("Empty envelope")

    # Accept both alphabets and missing padding
    text = value.strip().replace("-", "+").replace("_", "/")
    text += "=" * (-len(text) % 4)
    try:
        data = json.loads(base64.b64decode(text, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise InvalidEnvelope("Envelope is not valid base64 JSON") from e

    if not isinstance(data, dict):
        raise InvalidEnvelope("Envelope does not contain an object")
    return data


def _credentials(data: dict, access_key: str, refresh_key: str) -> Credentials:
    access = data.get(access_key)
    refresh = data.get(refresh_key)
    if not isinstance(access, str) or not isinstance(refresh, str) or not access or not refresh:
        raise InvalidEnvelope("Invalid token structure")
    return Credentials(access_token=access, refresh_token=refresh)


def seal_authorization_code(credentials: Credentials) -> str:
    """Pack a token pair into a URL-safe authorization code."""
    return _encode(
        {
            "access_token": credentials.access_token,
            "refresh_token": credentials.refresh_token,
        },
        urlsafe=True,
    )


def open_authorization_code(code: str) -> Credentials:
    return _credentials(_decode(code), "access_token", "refresh_token")


def seal_bearer_token(credentials: Credentials) -> str:
    """Pack a token pair into the access token handed to the MCP client."""
    return _encode(
        {
            "accessToken": credentials.access_token,
            "refreshToken": credentials.refresh_token,
        },
        urlsafe=False,
    )


def open_bearer_token(token: str) -> Credentials:
    return _credentials(_decode(token), "accessToken", "refreshToken")
