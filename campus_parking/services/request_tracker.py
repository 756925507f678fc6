"""
Latest-request-wins bookkeeping for availability reads.

When a user flips between dates or floors quickly, several reads for the
same screen are in flight at once. Only the newest one may publish its
result; older ones come back as `Superseded` and are dropped.
"""

import itertools
from typing import Any, Awaitable, Hashable

from campus_parking.utils.logger import get_logger

logger = get_logger(__name__)


class _SupersededType:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "Superseded"

    def __bool__(self):
        return False


Superseded = _SupersededType()


class LatestRequestTracker:
    def __init__(self):
        self._counter = itertools.count(1)
        self._latest = {}

    def begin(self, scope_key: Hashable) -> int:
        token = next(self._counter)
        self._latest[scope_key] = token
        return token

    def is_current(self, scope_key: Hashable, token: int) -> bool:
        return self._latest.get(scope_key) == token

    async def run(self, scope_key: Hashable, coro: Awaitable) -> Any:
        """
        Await `coro`; return its result only if no newer request for the
        same scope started meanwhile, otherwise return Superseded.
        Exceptions from a superseded request are discarded too.
        A scope is forgotten once its newest request finishes.
        """
        token = self.begin(scope_key)
        try:
            result = await coro
        except Exception:
            if not self.is_current(scope_key, token):
                logger.debug(f"[AVAIL] scope={scope_key} request #{token} failed after being superseded")
                return Superseded
            raise
        else:
            if not self.is_current(scope_key, token):
                logger.debug(f"[AVAIL] scope={scope_key} request #{token} superseded, result dropped")
                return Superseded
            return result
        finally:
            if self.is_current(scope_key, token):
                del self._latest[scope_key]

    @property
    def in_flight(self) -> int:
        """Number of scopes with a request still running."""
        return len(self._latest)
