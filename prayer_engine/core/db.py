"""
SQLAlchemy engines, session, and bases. DB urls from config or default.

Base holds the read-only reference dataset (countries, locations, stored times),
ScheduleBase the generated schedules, kept in their own database.
"""
import logging
from pathlib import Path
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()
ScheduleBase = declarative_base()

_engine = None
_schedule_engine = None
_SessionLocal = None

DEFAULT_DB_DIR = Path.home() / ".prayer_engine"


@contextmanager
def session_scope(session_factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """Context manager for a single DB session. Commits on success, rolls back on error."""
    factory = session_factory or _SessionLocal
    if factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_engine():
    return _engine


def _url_from_config(config_data: Optional[dict], url_key: str = "url", path_key: str = "path") -> Optional[str]:
    db_config = (config_data or {}).get("database") or {}
    if db_config.get(url_key):
        return db_config[url_key]
    path = db_config.get(path_key)
    if path:
        path = Path(path).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{path}"
    return None


def _is_memory(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def _create_engine(url: str):
    if _is_memory(url):
        # One shared connection, otherwise every session sees its own empty database
        return create_engine(
            url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=False, future=True)


def init_db(
    config_data: Optional[dict] = None,
    db_url: Optional[str] = None,
    schedule_url: Optional[str] = None,
) -> sessionmaker:
    """
    Initialize database engines, create tables and return the session factory.
    config_data: app config dict; used for database.url / database.path if db_url not given,
        and database.schedule_url / database.schedule_path if schedule_url not given.
    db_url: optional SQLAlchemy URL override for the reference dataset.
    schedule_url: optional URL for generated schedules. The reference database is never
        written to; an in-memory reference database keeps schedules in the same memory.
    """
    global _engine, _schedule_engine, _SessionLocal

    if _engine is not None:
        logger.debug("Database already initialized")
        return _SessionLocal

    if db_url is None:
        db_url = _url_from_config(config_data)

    if not db_url:
        DEFAULT_DB_DIR.mkdir(parents=True, exist_ok=True)
        db_url = f"sqlite:///{DEFAULT_DB_DIR / 'prayer_engine.db'}"

    if schedule_url is None:
        schedule_url = _url_from_config(config_data, "schedule_url", "schedule_path")

    if not schedule_url and not _is_memory(db_url):
        DEFAULT_DB_DIR.mkdir(parents=True, exist_ok=True)
        schedule_url = f"sqlite:///{DEFAULT_DB_DIR / 'schedule.db'}"

    _engine = _create_engine(db_url)
    _schedule_engine = _create_engine(schedule_url) if schedule_url and schedule_url != db_url else _engine

    # Import all model modules so tables are registered with their bases
    from prayer_engine.core import models as _core_models  # noqa: F401
    from prayer_engine.schedule import models as _schedule_models  # noqa: F401

    Base.metadata.create_all(_engine)
    ScheduleBase.metadata.create_all(_schedule_engine)
    _SessionLocal = sessionmaker(
        binds={Base: _engine, ScheduleBase: _schedule_engine},
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    logger.info(f"Database initialized: {db_url.split('?')[0]}")
    if _schedule_engine is not _engine:
        logger.info(f"Schedule database: {schedule_url.split('?')[0]}")
    return _SessionLocal


def reset_db() -> None:
    """Dispose the engines and forget the session factory (tests, re-configuration)."""
    global _engine, _schedule_engine, _SessionLocal
    if _schedule_engine is not None and _schedule_engine is not _engine:
        _schedule_engine.dispose()
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _schedule_engine = None
    _SessionLocal = None
