import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional


class SessionCache:
    """Per-portfolio cache of broker clients and resolved account identifiers.

    Clients and account identifiers are kept in separate maps: an account
    identifier survives a client rebuild but both are evicted together when
    credentials are refreshed or rewritten. Callers hold ``lock(portfolio_id)``
    around any lookup-or-create sequence. A portfolio's lock exists only while
    some task holds or waits for it.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._clients: Dict[int, Any] = {}
        self._account_ids: Dict[int, str] = {}
        self._locks: Dict[int, asyncio.Lock] = {}
        self._lock_users: Dict[int, int] = defaultdict(int)

    @asynccontextmanager
    async def lock(self, portfolio_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(portfolio_id, asyncio.Lock())
        self._lock_users[portfolio_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[portfolio_id] -= 1
            if not self._lock_users[portfolio_id]:
                del self._lock_users[portfolio_id]
                del self._locks[portfolio_id]

    def get_client(self, portfolio_id: int) -> Optional[Any]:
        return self._clients.get(portfolio_id)

    def set_client(self, portfolio_id: int, client: Any) -> None:
        self._clients[portfolio_id] = client

    def get_account_id(self, portfolio_id: int) -> Optional[str]:
        return self._account_ids.get(portfolio_id)

    def set_account_id(self, portfolio_id: int, account_id: str) -> None:
        self._account_ids[portfolio_id] = account_id

    def invalidate(self, portfolio_id: int) -> None:
        """Drop the cached client and account identifier for one portfolio"""
        had_client = self._clients.pop(portfolio_id, None) is not None
        had_account = self._account_ids.pop(portfolio_id, None) is not None
        if had_client or had_account:
            self.logger.debug(f"Evicted cached broker session for portfolio {portfolio_id}")

    def clear(self) -> None:
        self._clients.clear()
        self._account_ids.clear()
