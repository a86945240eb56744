from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from urlanalyzer import config

# Simple cache to avoid creating multiple Engine objects in the same process.
_ENGINE: Optional[Engine] = None


def make_engine(database_url: Optional[str] = None) -> Engine:
    """Create or return a cached SQLAlchemy Engine for `database_url`.

    Caches a single Engine instance per process so the worker and the API
    share one connection pool.
    """
    global _ENGINE
    database_url = database_url or config.DATABASE_URL
    if not database_url:
        raise RuntimeError("DATABASE_URL not set")
    if _ENGINE is None:
        _ENGINE = create_engine(database_url, future=True)
    return _ENGINE


def init_schema(engine: Engine) -> None:
    """Create tables that do not exist yet."""
    from urlanalyzer.db.models import Base

    Base.metadata.create_all(engine)
