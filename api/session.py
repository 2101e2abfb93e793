"""Signed session tokens and the in-memory store that keeps saved games."""

import logging
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable
from uuid import uuid4

from itsdangerous import BadSignature, URLSafeTimedSerializer

from config import config

logger = logging.getLogger(__name__)

SessionData = dict[str, Any]


class SessionSigner:
    """Issue and verify tamper-proof session tokens with itsdangerous."""

    def __init__(self, secret_key: str | None = None, max_age: int | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(
            secret_key or config.security.secret_key,
            salt="solitaire-session",
        )
        self.max_age = max_age or config.session_ttl

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """Return the session id inside ``token``, or None if it is forged or too old."""
        try:
            return self._serializer.loads(token, max_age=max_age or self.max_age)
        except BadSignature:
            return None

    def issue(self) -> str:
        """Sign a fresh random session id."""
        return self.sign(str(uuid4()))


class SessionStore(ABC):
    """Where a session keeps its data between requests, keyed by its token."""

    @abstractmethod
    async def get(self, token: str) -> SessionData | None:
        ...

    @abstractmethod
    async def set(self, token: str, data: SessionData) -> None:
        ...

    @abstractmethod
    async def delete(self, token: str) -> None:
        ...

    async def exists(self, token: str) -> bool:
        return await self.get(token) is not None


@dataclass
class _Entry:
    data: SessionData
    expires_at: float


class InMemorySessionStore(SessionStore):
    """
    Process-local session store with a sliding expiry.

    Every read or write pushes a session's expiry ``ttl`` seconds into the
    future. When ``max_sessions`` live sessions are held, storing a new one
    first drops expired sessions and then the least recently used ones.

    Args:
        max_sessions: Capacity, defaults to ``config.max_sessions``
        ttl: Idle lifetime in seconds, defaults to ``config.session_ttl``
        clock: Monotonic time source
    """

    def __init__(
        self,
        max_sessions: int | None = None,
        ttl: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self.max_sessions = max_sessions or config.max_sessions
        self.ttl = ttl or config.session_ttl
        self._clock = clock

    def _live(self, token: str) -> _Entry | None:
        entry = self._entries.get(token)
        if entry is not None and entry.expires_at <= self._clock():
            del self._entries[token]
            return None
        return entry

    def _touch(self, token: str, entry: _Entry) -> None:
        entry.expires_at = self._clock() + self.ttl
        self._entries.move_to_end(token)

    def _make_room(self) -> None:
        if len(self._entries) < self.max_sessions:
            return
        self.purge_expired()
        while len(self._entries) >= self.max_sessions:
            token, _ = self._entries.popitem(last=False)
            logger.info("Session limit reached, evicting %s", token[:8])

    async def get(self, token: str) -> SessionData | None:
        entry = self._live(token)
        if entry is None:
            return None
        self._touch(token, entry)
        return entry.data

    async def set(self, token: str, data: SessionData) -> None:
        entry = self._live(token)
        if entry is None:
            self._make_room()
            entry = self._entries[token] = _Entry(data, 0.0)
        entry.data = data
        self._touch(token, entry)

    async def delete(self, token: str) -> None:
        self._entries.pop(token, None)

    async def exists(self, token: str) -> bool:
        """Check for a live session without extending it."""
        return self._live(token) is not None

    def purge_expired(self) -> int:
        """Drop expired sessions and return how many went."""
        now = self._clock()
        expired = [token for token, entry in self._entries.items() if entry.expires_at <= now]
        for token in expired:
            del self._entries[token]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


_session_signer: SessionSigner | None = None
_session_store: SessionStore | None = None


def get_session_signer() -> SessionSigner:
    """Get or create the process-wide signer."""
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


async def get_session_store() -> SessionStore:
    """Get or create the process-wide store."""
    global _session_store
    if _session_store is None:
        _session_store = InMemorySessionStore()
    return _session_store


async def create_session(data: SessionData | None = None) -> str:
    """Store a new session and return its signed token."""
    token = get_session_signer().issue()
    store = await get_session_store()
    await store.set(token, data or {})
    return token


def extract_session_id(token: str) -> str | None:
    """The raw session id inside a signed token, or None when it does not verify."""
    return get_session_signer().unsign(token)
