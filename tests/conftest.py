# tests/conftest.py
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker

from flatwatch.adapters.repos.listings import SqlAlchemyStore
from flatwatch.models import Base

from fakes import make_memory_engine


@pytest.fixture
async def engine():
    """
    Fresh in-memory DB per test. StaticPool makes all connections share the same
    in-memory database for the lifetime of this engine fixture.
    """
    engine = make_memory_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def async_session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=True)


@pytest.fixture
def store(async_session_maker):
    return SqlAlchemyStore(async_session_maker)
