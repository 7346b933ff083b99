import sys
from pathlib import Path

import numpy as np
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure project root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from reelfeed.catalog import VideoCatalog
from reelfeed.database import Base
from reelfeed.store import SQLAlchemyStore


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db_session):
    return SQLAlchemyStore(db_session)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


def write_catalog(root: Path, layout: dict) -> VideoCatalog:
    """Create one folder per category holding empty files with the given names."""
    root.mkdir(parents=True, exist_ok=True)
    for category, files in layout.items():
        folder = root / category
        folder.mkdir(exist_ok=True)
        for name in files:
            (folder / name).write_bytes(b"")
    return VideoCatalog(str(root))


@pytest.fixture
def make_catalog(tmp_path):
    def _make(layout: dict) -> VideoCatalog:
        return write_catalog(tmp_path / "videos", layout)
    return _make
