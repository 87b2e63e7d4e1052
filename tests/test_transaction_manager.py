import pytest
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

from assessment.core.exceptions import ResourceTimeout
from assessment.db.transaction import TransactionManager
from assessment.models import Quiz


@pytest.fixture
def checkins(db_engine):
    """Count connections returned to the pool."""
    counter = {"n": 0}

    def on_checkin(dbapi_connection, connection_record):
        counter["n"] += 1

    event.listen(db_engine.sync_engine.pool, "checkin", on_checkin)
    yield counter
    event.remove(db_engine.sync_engine.pool, "checkin", on_checkin)


async def quiz_titles(session_factory):
    async with session_factory() as session:
        return [q.title for q in (await session.execute(select(Quiz))).scalars().all()]


async def test_commit_persists_and_releases_once(db_engine, session_factory, checkins):
    manager = TransactionManager(db_engine, default_timeout=5)

    async with manager.acquire() as tx:
        tx.session.add(Quiz(title="committed"))
        await tx.commit()
        assert tx.is_resolved

    assert tx.is_released
    assert checkins["n"] == 1
    assert await quiz_titles(session_factory) == ["committed"]


async def test_leaving_without_commit_rolls_back(db_engine, session_factory, checkins):
    manager = TransactionManager(db_engine, default_timeout=5)

    async with manager.acquire() as tx:
        tx.session.add(Quiz(title="forgotten"))
        await tx.session.flush()

    assert tx.is_resolved
    assert checkins["n"] == 1
    assert await quiz_titles(session_factory) == []


async def test_exception_rolls_back_and_propagates(db_engine, session_factory, checkins):
    manager = TransactionManager(db_engine, default_timeout=5)

    with pytest.raises(ValueError, match="boom"):
        async with manager.acquire() as tx:
            tx.session.add(Quiz(title="doomed"))
            await tx.session.flush()
            raise ValueError("boom")

    assert tx.is_released
    assert checkins["n"] == 1
    assert await quiz_titles(session_factory) == []


async def test_release_is_idempotent(db_engine, checkins):
    manager = TransactionManager(db_engine, default_timeout=5)

    async with manager.acquire() as tx:
        await tx.rollback()
        await tx.release()
        await tx.release()

    assert checkins["n"] == 1


async def test_commit_twice_is_an_error(db_engine):
    manager = TransactionManager(db_engine, default_timeout=5)

    async with manager.acquire() as tx:
        await tx.commit()
        with pytest.raises(RuntimeError):
            await tx.commit()


async def test_exhausted_pool_raises_resource_timeout(db_engine):
    tiny = create_async_engine(
        db_engine.url,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=1,
        max_overflow=0,
        pool_timeout=0.2,
    )
    manager = TransactionManager(tiny, default_timeout=5)

    try:
        async with tiny.connect():
            # The pool gives up first
            with pytest.raises(ResourceTimeout):
                async with manager.acquire():
                    pass

            # Our own deadline gives up first
            with pytest.raises(ResourceTimeout):
                async with manager.acquire(timeout=0.05):
                    pass
    finally:
        await tiny.dispose()
