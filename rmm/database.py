"""
RMM Database Initialization

Every session gets its own SQLite connection; SQLite serialises writers
and the busy timeout makes concurrent writers wait their turn. An
in-memory URL ("sqlite://") is mapped to a database file in a private
temporary directory that is removed at exit, so the store still starts
empty on every restart.
"""

import atexit
import shutil
import tempfile
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rmm.config import DATABASE_URL, SQLITE_BUSY_TIMEOUT_SEC
from rmm.models import Base

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def _process_private_sqlite_url() -> str:
    directory = Path(tempfile.mkdtemp(prefix="rmm-store-"))
    atexit.register(shutil.rmtree, directory, True)
    return f"sqlite:///{directory / 'rmm.db'}"


def make_engine(url: str = DATABASE_URL):
    if url in IN_MEMORY_URLS:
        url = _process_private_sqlite_url()
    if url.startswith("sqlite"):
        return create_engine(
            url, connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SEC}
        )
    return create_engine(url)


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
