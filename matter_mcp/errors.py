"""
Exceptions raised by the Matter client and the QR login bridge.
"""

from typing import Any, Optional


class MatterError(Exception):
    """Base class for Matter MCP errors."""


class AuthExpired(MatterError):
    """Credentials were rejected and a single refresh did not fix it."""

    def __init__(self, message: str = "Matter authentication expired"):
        super().__init__(message)


class RequestFailed(MatterError):
    """A Matter API call failed for a reason other than authentication."""

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        message = super().__str__()
        if self.status is not None:
            message = f"{message} (HTTP {self.status})"
        return message


class NotAuthenticated(MatterError):
    """No Matter credentials could be resolved for the current caller."""


class QRLoginError(MatterError):
    """The QR login could not be started or completed."""


class QRLoginTimeout(QRLoginError):
    """The QR code was not scanned within the polling window."""


class QRLoginCancelled(QRLoginError):
    """The caller stopped waiting for the QR code to be scanned."""


class InvalidEnvelope(ValueError):
    """An authorization code or bearer token could not be opened."""
