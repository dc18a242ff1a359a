"""
Short-lived in-memory store for pending QR logins.

Entries are keyed by unpredictable session ids and expire after a fixed TTL.
The store is an explicit object so a deployment with several worker
processes can swap in a shared backend with the same interface.
"""

import logging
import os
import secrets
import threading
import time
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

try:
    _SESSION_TTL_SECONDS = float(os.environ.get("MATTER_QR_SESSION_TTL", "150"))
except ValueError:
    logger.warning("Invalid MATTER_QR_SESSION_TTL value, using default of 150 seconds")
    _SESSION_TTL_SECONDS = 150.0


class SessionStore:
    """Thread-safe map of session id -> value with expiry."""

    def __init__(self, ttl_seconds: float = _SESSION_TTL_SECONDS, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._purge_locked()
            return len(self._entries)

    def _expired(self, created: float) -> bool:
        return self._clock() - created >= self.ttl_seconds

    def _purge_locked(self) -> int:
        stale = [sid for sid, (created, _) in self._entries.items() if self._expired(created)]
        for sid in stale:
            del self._entries[sid]
        return len(stale)

    def create(self, value: Any) -> str:
        """Store ``value`` under a fresh random session id and return the id."""
        session_id = secrets.token_urlsafe(32)
        with self._lock:
            self._purge_locked()
            self._entries[session_id] = (self._clock(), value)
        return session_id

    def get(self, session_id: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            if self._expired(entry[0]):
                del self._entries[session_id]
                return None
            return entry[1]

    def pop(self, session_id: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.pop(session_id, None)
        if entry is None or self._expired(entry[0]):
            return None
        return entry[1]

    def purge_expired(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        with self._lock:
            removed = self._purge_locked()
        if removed:
            logger.debug("Purged %d expired QR login sessions", removed)
        return removed
