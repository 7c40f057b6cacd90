"""Meet database engine.

One SQLite file (meets.db under DATA_DIR) holds every meet. Rescores and
other writes are single transactions; the standings and what-if tools only
read, so WAL keeps them answering while a rescore is committing.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = "~/.meet-scoring"
DB_FILENAME = "meets.db"

_MEET_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    # A second server process waits behind an in-flight rescore instead of failing.
    "PRAGMA busy_timeout=5000",
    # Deleting a meet must take its events, entries, relays and teams with it.
    "PRAGMA foreign_keys=ON",
)


def get_db_path() -> Path:
    """Location of meets.db, creating DATA_DIR if needed."""
    data_dir = Path(os.path.expanduser(os.environ.get("DATA_DIR", DEFAULT_DATA_DIR)))
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / DB_FILENAME


def _apply_meet_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    for pragma in _MEET_PRAGMAS:
        cursor.execute(pragma)
    cursor.close()


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        path = get_db_path()
        _engine = create_async_engine(f"sqlite+aiosqlite:///{path}", echo=False)
        event.listen(_engine.sync_engine, "connect", _apply_meet_pragmas)
        logger.debug("Opened meet database engine for %s", path)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Sessions keep loaded rows usable after commit; the store returns models built from them."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def init_db():
    """Create the meet tables if they don't exist."""
    from .sqlmodels import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Meet database ready at %s (%d tables)", get_db_path(), len(Base.metadata.tables))


async def close_db():
    """Dispose of the engine so the next call reopens against the current DATA_DIR."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
