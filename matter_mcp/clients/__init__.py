"""
Matter transport backends.

Provides the HTTP client for the Matter API and its QR login endpoints.
"""

from matter_mcp.clients.matter import (  # noqa: F401
    MatterClient,
    exchange_qr_token,
    refresh_credentials,
    trigger_qr_login,
)
