"""Database configuration for the geocode cache."""

import os
from collections.abc import Generator
from pathlib import Path

import sqlmodel

DATA_DIR = os.getenv('DATA_DIR', 'data')
DATABASE_PATH = Path(DATA_DIR) / 'daylight.db'

DATABASE_URL = f'sqlite:///{DATABASE_PATH}'

SQLITE_BUSY_TIMEOUT = float(os.getenv('SQLITE_BUSY_TIMEOUT', '5'))

# check_same_thread=False lets FastAPI's threadpool share pooled connections.
# timeout is how long a writer waits on a locked database before failing.
engine = sqlmodel.create_engine(
    DATABASE_URL,
    connect_args={'check_same_thread': False, 'timeout': SQLITE_BUSY_TIMEOUT},
    echo=False,
)


def create_db_and_tables() -> None:
    """Create database tables if they don't exist."""
    # Import models to ensure they're registered with SQLModel
    from . import models  # noqa: F401 # pyright: ignore[reportUnusedImport]

    DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
    sqlmodel.SQLModel.metadata.create_all(engine)


def get_session() -> Generator[sqlmodel.Session, None, None]:
    """Get a database session."""
    with sqlmodel.Session(engine) as session:
        yield session
