"""
OAuth bridge for Matter's QR login.

``routes`` is imported by the server to register the HTTP endpoints.
"""

from matter_mcp.oauth.envelope import (  # noqa: F401
    open_authorization_code,
    open_bearer_token,
    seal_authorization_code,
    seal_bearer_token,
)
from matter_mcp.oauth.qr import QRLoginBridge, QRLoginState  # noqa: F401
from matter_mcp.oauth.store import SessionStore  # noqa: F401
