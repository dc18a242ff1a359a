"""
QR login bridge.

Matter logs integrations in with a QR code scanned from the phone app:

1. ``trigger`` returns a session token and a QR image URL
2. the user scans the QR code
3. ``exchange`` is polled with the session token until it returns tokens

The bridge drives that handshake and exposes it as a small state machine
(IDLE -> PENDING -> RESOLVED | EXPIRED, or CANCELLED if the caller gives up).
"""

import logging
import threading
import time
from enum import Enum
from typing import Optional

import requests

from matter_mcp.clients.matter import exchange_qr_token, trigger_qr_login
from matter_mcp.errors import QRLoginCancelled, QRLoginError, QRLoginTimeout
from matter_mcp.models import Credentials, QRSession

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 1.0
MAX_POLL_ATTEMPTS = 120


class QRLoginState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class QRLoginBridge:
    """Drives one QR login from trigger to resolved credentials."""

    def __init__(
        self,
        interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        session: Optional[requests.Session] = None,
    ):
        self.interval = interval
        self.max_attempts = max_attempts
        self.state = QRLoginState.IDLE
        self.attempts = 0
        self._session = session

    def start(self) -> QRSession:
        """Trigger a QR login. Raises QRLoginError if Matter refuses."""
        qr_session = trigger_qr_login(session=self._session)
        self.state = QRLoginState.PENDING
        self.attempts = 0
        logger.info("QR login started")
        return qr_session

    def poll_once(self, qr_session: QRSession) -> Optional[Credentials]:
        """One exchange attempt. Returns None while the code is not scanned yet."""
        credentials = exchange_qr_token(qr_session.session_token, session=self._session)
        if credentials is not None:
            self.state = QRLoginState.RESOLVED
            logger.info("QR login completed")
        return credentials

    def _wait(self, cancel: Optional[threading.Event]) -> None:
        if cancel is None:
            time.sleep(self.interval)
        elif cancel.wait(self.interval):
            self.state = QRLoginState.CANCELLED
            raise QRLoginCancelled("QR login cancelled")

    def wait_for_credentials(
        self, qr_session: QRSession, cancel: Optional[threading.Event] = None
    ) -> Credentials:
        """
        Poll until the QR code is scanned.

        Args:
            qr_session: Session returned by ``start``
            cancel: Optional event; setting it aborts the loop promptly

        Raises:
            QRLoginTimeout: If ``max_attempts`` polls all came back pending
            QRLoginCancelled: If ``cancel`` was set
        """
        if self.state is QRLoginState.IDLE:
            self.state = QRLoginState.PENDING
        elif self.state is not QRLoginState.PENDING:
            raise QRLoginError(f"QR login is already {self.state.value}")

        while self.attempts < self.max_attempts:
            if cancel is not None and cancel.is_set():
                self.state = QRLoginState.CANCELLED
                raise QRLoginCancelled("QR login cancelled")

            self.attempts += 1
            credentials = self.poll_once(qr_session)
            if credentials is not None:
                return credentials
            self._wait(cancel)

        self.state = QRLoginState.EXPIRED
        raise QRLoginTimeout(
            f"QR code was not scanned within {self.max_attempts * self.interval:.0f} seconds. "
            "Please try again."
        )
