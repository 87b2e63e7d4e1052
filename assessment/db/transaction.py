"""
Transaction Manager

Scoped acquisition of one exclusive connection with an explicit
transaction on it.

    async with manager.acquire(timeout=20) as tx:
        tx.session.add(...)
        await tx.commit()

Guarantees:
- The wait for a pooled connection is bounded. Both our own asyncio
  timeout and SQLAlchemy's pool timeout surface as ResourceTimeout.
- A transaction that was not committed when the block exits (normally or
  by exception) is rolled back.
- The connection goes back to the pool exactly once, on every exit path.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncSession

from assessment.core.exceptions import ResourceTimeout

logger = logging.getLogger(__name__)


class Transaction:
    """
    A connection-bound unit of work.

    `session` is bound to the exclusive connection, so every repository
    built on it writes inside this transaction and nowhere else.
    """

    def __init__(self, connection: AsyncConnection, session: AsyncSession):
        self.connection = connection
        self.session = session
        self._resolved = False
        self._released = False

    @property
    def is_resolved(self) -> bool:
        return self._resolved

    @property
    def is_released(self) -> bool:
        return self._released

    async def commit(self) -> None:
        if self._resolved:
            raise RuntimeError("Transaction already resolved")
        await self.session.flush()
        await self.connection.commit()
        self._resolved = True

    async def rollback(self) -> None:
        if self._resolved:
            return
        # Mark first so a failing rollback is never retried on a dead connection
        self._resolved = True
        await self.connection.rollback()

    async def release(self) -> None:
        """Return the connection to the pool. Idempotent."""
        if self._released:
            return
        self._released = True
        try:
            await self.session.close()
        finally:
            await self.connection.close()


class TransactionManager:
    """Hands out exclusive transactions from the engine's bounded pool."""

    def __init__(self, engine: AsyncEngine, default_timeout: float = 20.0):
        self.engine = engine
        self.default_timeout = default_timeout

    async def _connect(self, timeout: float) -> AsyncConnection:
        try:
            return await asyncio.wait_for(self.engine.connect().start(), timeout=timeout)
        except (asyncio.TimeoutError, PoolTimeoutError) as e:
            raise ResourceTimeout(
                f"No database connection available within {timeout:g}s"
            ) from e

    @asynccontextmanager
    async def acquire(self, timeout: Optional[float] = None) -> AsyncIterator[Transaction]:
        timeout = self.default_timeout if timeout is None else timeout

        connection = await self._connect(timeout)
        tx = Transaction(
            connection,
            AsyncSession(bind=connection, expire_on_commit=False, autoflush=False),
        )
        try:
            await connection.begin()
            yield tx
        except BaseException:
            if not tx.is_resolved:
                logger.warning("Rolling back transaction after failure")
                try:
                    await tx.rollback()
                except Exception:
                    logger.exception("Rollback failed")
            raise
        else:
            if not tx.is_resolved:
                logger.debug("Transaction left open at scope exit, rolling back")
                await tx.rollback()
        finally:
            await tx.release()
