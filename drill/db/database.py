from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import Engine, create_engine, inspect
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from drill.db.models import Base, ExerciseRecord

_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for the given URL."""
    return create_engine(url, echo=echo, pool_pre_ping=True)


def get_engine() -> Engine:
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_db_engine(settings.database_url, echo=settings.database_echo)
    return _engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Build a session factory bound to an engine."""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_session_factory() -> sessionmaker[Session]:
    """Get or create the session factory for the configured engine."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = make_session_factory(get_engine())
    return _SessionLocal


@contextmanager
def session_scope(
    factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ========================================
# Schema Management
# ========================================


def bootstrap_schema(engine: Engine | None = None) -> None:
    """Create the exercises table and its due date index if missing."""
    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema bootstrapped")


def drop_schema(engine: Engine | None = None) -> None:
    """Drop the exercises table."""
    engine = engine or get_engine()
    Base.metadata.drop_all(bind=engine)
    logger.info("Database schema dropped")


def schema_is_loaded(engine: Engine | None = None) -> bool:
    """Check whether the exercises table exists."""
    engine = engine or get_engine()
    return inspect(engine).has_table(ExerciseRecord.__tablename__)
