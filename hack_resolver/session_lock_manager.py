import logging
from asyncio import Lock
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class SessionLockManager:
    def __init__(self):
        self.locks: Dict[str, Lock] = {}  # one Lock per session_address
        self.waiters: Dict[str, int] = {}  # holders and waiters per session_address
        self.lock = Lock()  # protects locks and waiters

    async def acquire_entry(self, session_address: str) -> Lock:
        """Get the Lock of the specified session_address and register a waiter

        Args:
            session_address (str): Handle of the hack session

        Returns:
            Lock: Lock of the specified session_address
        """
        async with self.lock:
            if session_address not in self.locks:
                self.locks[session_address] = Lock()
                self.waiters[session_address] = 0
            self.waiters[session_address] += 1
            return self.locks[session_address]

    async def release_entry(self, session_address: str):
        """Unregister a waiter and drop the Lock once nobody uses it

        Args:
            session_address (str): Handle of the hack session
        """
        async with self.lock:
            self.waiters[session_address] -= 1
            if self.waiters[session_address] == 0:
                del self.locks[session_address]
                del self.waiters[session_address]

    @asynccontextmanager
    async def hold(self, session_address: str) -> AsyncIterator[None]:
        """Serialize mutations of one hack session inside this process

        Args:
            session_address (str): Handle of the hack session
        """
        session_lock = await self.acquire_entry(session_address)
        try:
            async with session_lock:
                logging.debug(f"Holding lock for hack session {session_address}")
                yield
        finally:
            await self.release_entry(session_address)


session_lock_manager = SessionLockManager()
