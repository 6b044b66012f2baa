from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


def make_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for the SQLite store.

    An in-memory database lives on a single shared connection; a file
    database gets its parent directory created on demand.
    """
    url = make_url(database_url)
    if url.database in (None, "", ":memory:"):
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(database_url, echo=echo)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
