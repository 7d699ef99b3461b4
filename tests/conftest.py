"""
Pytest fixtures for testing
"""
from datetime import datetime

import pytest
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.dialects.postgresql import JSONB

from chorewheel.config import get_settings
from chorewheel.infrastructure.db.session import Base
import chorewheel.infrastructure.db.models  # noqa: F401  registers tables
from chorewheel.application.residents import ResidentService
from chorewheel.application.chores import ChoreService

HOUSE = "T1"
RESIDENTS = ["R1", "R2", "R3", "R4"]
MOVED_IN = datetime(2020, 1, 1)


@pytest.fixture
def db_engine():
    """Create in-memory SQLite engine for tests, with JSONB→JSON mapping."""
    engine = create_engine("sqlite:///:memory:")

    # SQLite doesn't support JSONB — remap to JSON for tests
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def settings():
    """Default settings, isolated from any cached instance"""
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def house_id(db_session, settings):
    ResidentService(db_session).add_house(HOUSE, "Sage House")
    db_session.commit()
    return HOUSE


@pytest.fixture
def residents(db_session, house_id):
    """Four active residents who moved in long ago"""
    service = ResidentService(db_session)
    for resident_id in RESIDENTS:
        service.add_resident(house_id, resident_id, MOVED_IN)
    db_session.commit()
    return list(RESIDENTS)


@pytest.fixture
def chores(db_session, house_id):
    """Three active chores: dishes, sweeping, restock"""
    service = ChoreService(db_session)
    result = [service.add_chore(house_id, name) for name in ("dishes", "sweeping", "restock")]
    db_session.commit()
    return result
