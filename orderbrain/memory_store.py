# orderbrain/memory_store.py
"""
Session stores.

`SessionStore` is the contract the orchestrator depends on: load/save by
session id plus a per-session lock that serializes turns for one session
while letting different sessions proceed concurrently.

`MemoryStore` is the in-process implementation: TTL expiry checked on load
and swept by `purge_expired`, plus an LRU bound on the number of sessions.

In production you might back the same contract with:
- Redis
- A database table keyed by session id
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from .config import settings
from .session_context import SessionContext

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}

    @abstractmethod
    def load(self, session_id: str) -> Optional[SessionContext]:
        """Return the live session or None when missing/expired."""

    @abstractmethod
    def save(self, ctx: SessionContext) -> None:
        ...

    @abstractmethod
    def delete(self, session_id: str) -> None:
        ...

    def lock_for(self, session_id: str) -> asyncio.Lock:
        """
        One lock per session id. Turns for the same session are handled in
        arrival order because asyncio.Lock wakes waiters FIFO.
        """
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def _drop_lock(self, session_id: str) -> None:
        lock = self._locks.get(session_id)
        if lock is not None and not lock.locked():
            self._locks.pop(session_id, None)


class MemoryStore(SessionStore):
    """
    In-memory dictionary-based session store.

    Not persistent across deployments.
    """

    def __init__(
        self,
        ttl_minutes: Optional[int] = None,
        max_entries: Optional[int] = None,
    ) -> None:
        super().__init__()
        self._store: "OrderedDict[str, SessionContext]" = OrderedDict()
        self.ttl = timedelta(
            minutes=settings.SESSION_TTL_MINUTES if ttl_minutes is None else ttl_minutes
        )
        self.max_entries = settings.SESSION_MAX_ENTRIES if max_entries is None else max_entries

    def __len__(self) -> int:
        return len(self._store)

    def load(
        self, session_id: str, now: Optional[datetime] = None
    ) -> Optional[SessionContext]:
        """
        Load a SessionContext if it exists and is not expired, else return None.
        """
        ctx = self._store.get(session_id)
        if ctx is None:
            return None

        now = now or datetime.now(timezone.utc)
        if now - ctx.last_seen_at > self.ttl:
            logger.debug("Session %s expired", session_id)
            self.delete(session_id)
            return None

        self._store.move_to_end(session_id)
        return ctx

    def save(self, ctx: SessionContext) -> None:
        """
        Save or update a SessionContext, evicting the least recently used
        sessions beyond `max_entries`.
        """
        self._store[ctx.session_id] = ctx
        self._store.move_to_end(ctx.session_id)
        while self.max_entries and len(self._store) > self.max_entries:
            evicted, _ = self._store.popitem(last=False)
            self._drop_lock(evicted)
            logger.debug("Evicted session %s (store full)", evicted)

    def delete(self, session_id: str) -> None:
        self._store.pop(session_id, None)
        self._drop_lock(session_id)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """
        Remove expired sessions. Called periodically by the hosting layer.
        """
        now = now or datetime.now(timezone.utc)
        to_delete = [
            key for key, ctx in self._store.items() if now - ctx.last_seen_at > self.ttl
        ]
        for key in to_delete:
            self.delete(key)
        if to_delete:
            logger.info("Purged %d expired sessions", len(to_delete))
        return len(to_delete)
