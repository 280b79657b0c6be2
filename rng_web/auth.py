"""Passphrase login backed by in-memory session cookies."""

import hashlib
import hmac
import logging
import re
import secrets
import threading
import time
from typing import Callable, Dict, Optional

from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)

SHA256_HEX_RE = re.compile(r"^[0-9a-f]{64}$")


class LoginRequired(Exception):
    """Raised for page requests without a live session; handled as a redirect."""


class PassphraseNotConfigured(Exception):
    pass


class SessionStore:
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.time) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, float] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self) -> str:
        sid = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[sid] = self._clock()
        return sid

    def drop(self, sid: Optional[str]) -> None:
        if not sid:
            return
        with self._lock:
            self._sessions.pop(sid, None)

    def is_live(self, sid: Optional[str]) -> bool:
        now = self._clock()
        with self._lock:
            # drop every stale session on each check, as the cookie gate is the only reader
            for k, created in list(self._sessions.items()):
                if now - created > self.ttl_seconds:
                    del self._sessions[k]
            return bool(sid) and sid in self._sessions


def check_passphrase(passphrase: str, expected_sha256: str) -> bool:
    """Compare sha256(passphrase) with the configured hex digest in constant time."""
    expected = (expected_sha256 or "").strip().lower()
    if not SHA256_HEX_RE.match(expected):
        raise PassphraseNotConfigured("PASSPHRASE_SHA256 must be 64 hex chars")
    digest = hashlib.sha256(passphrase.encode("utf-8")).hexdigest()
    return hmac.compare_digest(digest, expected)


async def require_session(request: Request) -> str:
    settings = request.app.state.settings
    sessions: SessionStore = request.app.state.sessions
    sid = request.cookies.get(settings.SESSION_COOKIE)

    if sessions.is_live(sid):
        return sid

    if request.url.path.startswith("/api/"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    raise LoginRequired()
