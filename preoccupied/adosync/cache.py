"""
Expiring cache of authenticated Azure DevOps connections.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import asyncio
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple


logger = logging.getLogger(__name__)


DEFAULT_TTL = timedelta(hours=1)
DEFAULT_GRACE = timedelta(minutes=5)


ConnectionFactory = Callable[[str, str], Awaitable[Any]]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def connection_cache_key(project_url: str, token: str) -> str:
    """
    Cache key for a connection: the upper-case hex SHA-256 digest of
    the UTF-8 encoded project URL followed by the token. The project
    URL is included in case tokens differ per project, and the token
    so that a rotated token produces a fresh connection.
    """

    digest = hashlib.sha256(f'{project_url}{token}'.encode('utf-8')).hexdigest()
    return f'connections:{digest.upper()}'


class ConnectionCache:
    """
    Connections keyed by project URL and token, each kept for a fixed
    time-to-live after creation. Creation is serialized per key so
    concurrent callers never build duplicate connections, while lookups
    of live entries take no lock at all.
    """

    def __init__(
            self,
            factory: ConnectionFactory,
            ttl: timedelta = DEFAULT_TTL,
            clock: Clock = utcnow,
            grace: timedelta = DEFAULT_GRACE):

        self._factory = factory
        self._ttl = ttl
        self._clock = clock
        self._grace = grace

        self._entries: Dict[str, Tuple[Any, datetime]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

        # expired connections and when they expired, awaiting close
        self._retired: List[Tuple[Any, datetime]] = []


    def __len__(self) -> int:
        return len(self._entries)


    def _lookup(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        handle, expires_at = entry
        if self._clock() < expires_at:
            return handle

        logger.debug(f'Connection {key} expired at {expires_at}, removing from cache')
        del self._entries[key]
        self._retired.append((handle, expires_at))
        return None


    async def _close_retired(self, everything: bool = False) -> None:
        """
        Close expired connections once they have been retired for the
        grace period, so that calls already using them can finish.
        """

        if not self._retired:
            return

        cutoff = self._clock() - self._grace
        closing = [h for h, at in self._retired if everything or at <= cutoff]
        self._retired = [(h, at) for h, at in self._retired if not (everything or at <= cutoff)]

        for handle in closing:
            await _close(handle)


    async def get_or_create(self, project_url: str, token: str) -> Any:
        """
        Return the cached connection for project_url and token, or
        create one with the factory and cache it. Nothing is cached if
        the factory raises.
        """

        if not (project_url and token):
            raise ValueError('project_url and token must be set')

        key = connection_cache_key(str(project_url), token)

        handle = self._lookup(key)
        await self._close_retired()
        if handle is not None:
            logger.debug(f'Using cached connection {key}')
            return handle

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            # another task may have created it while we waited
            handle = self._lookup(key)
            if handle is not None:
                return handle

            handle = await self._factory(str(project_url), token)
            expires_at = self._clock() + self._ttl
            self._entries[key] = (handle, expires_at)

            # later callers find the entry without locking
            if self._locks.get(key) is lock:
                del self._locks[key]

        logger.debug(f'New connection {key} expires at {expires_at}')
        return handle


    async def aclose(self) -> None:
        """
        Close and forget every cached and expired connection
        """

        entries = list(self._entries.values())
        self._entries.clear()
        self._locks.clear()

        for handle, _expires_at in entries:
            await _close(handle)

        await self._close_retired(everything=True)


async def _close(handle: Any) -> None:
    close = getattr(handle, 'aclose', None)
    if close is not None:
        await close()


# The end.
