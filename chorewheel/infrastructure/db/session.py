"""
Engine, session factory and connectivity check for the chore store
"""
import psycopg
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from chorewheel.config import get_settings


class Base(DeclarativeBase):
    """Metadata root shared by every chorewheel table"""
    pass


# Built lazily on first use, one per process
_engine = None
_SessionLocal = None


def get_engine():
    global _engine
    if _engine is None:
        _engine = create_engine(get_settings().get_sqlalchemy_url(), pool_pre_ping=True)
    return _engine


def get_session_factory():
    """Session factory bound to the chorewheel engine"""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)
    return _SessionLocal


def check_db_connection() -> None:
    """
    Fail fast when the chore store cannot be reached.

    Used by the house tick CLI before it opens a session.

    Raises:
        psycopg.OperationalError: store unreachable within 3 seconds
    """
    with psycopg.connect(get_settings().DATABASE_URL, connect_timeout=3) as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1;")
            cur.fetchone()
