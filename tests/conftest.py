"""Shared fixtures: temporary workspaces and an in-memory database."""
import tempfile
from pathlib import Path
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from iacgen.db import models  # noqa: F401  registers oam_requests on Base.metadata
from iacgen.db.session import Base, create_session_factory


@pytest.fixture
def tmp_workspaces():
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    return create_session_factory(sqlite_engine)
