"""Database connection and session management.

This module handles the store connection using SQLAlchemy and the translation
of store failures into the portal's error taxonomy.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import DATA_DIR, DATABASE_URL, STORE_TIMEOUT_SECONDS
from core.exceptions import DependencyError
from models.base import Base
# Import models to ensure they are registered with Base.metadata
import models  # noqa: F401

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = DATABASE_URL


def engine_options(url: str) -> dict:
    """Build engine keyword arguments for the configured backend."""
    if url.startswith("sqlite"):
        options = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": STORE_TIMEOUT_SECONDS,
            }
        }
        # In-memory databases live inside one connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        else:
            # Ensure the database directory exists
            database = make_url(url).database
            db_dir = Path(database).parent if database else DATA_DIR
            db_dir.mkdir(parents=True, exist_ok=True)
        return options

    options = {"pool_pre_ping": True, "pool_timeout": STORE_TIMEOUT_SECONDS}
    timeout_ms = int(STORE_TIMEOUT_SECONDS * 1000)
    backend = make_url(url).get_backend_name()
    # Bound connecting and every statement, not only the wait for a pooled connection
    if backend == "postgresql":
        options["connect_args"] = {
            "connect_timeout": max(1, int(STORE_TIMEOUT_SECONDS)),
            "options": f"-c statement_timeout={timeout_ms}",
        }
    elif backend in ("mysql", "mariadb"):
        options["connect_args"] = {
            "connect_timeout": max(1, int(STORE_TIMEOUT_SECONDS)),
            "init_command": f"SET SESSION max_execution_time={timeout_ms}",
        }
    else:
        logger.warning(
            "No statement timeout support for backend '%s'; only the pool wait is bounded",
            backend,
        )
    return options


engine = create_engine(SQLALCHEMY_DATABASE_URL, **engine_options(SQLALCHEMY_DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    Base.metadata.create_all(bind=engine)


# Initialize DB (create tables if not exist)
init_db()


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def store_errors(db: Session, action: str) -> Iterator[None]:
    """Translate store failures raised inside the block into DependencyError.

    Integrity violations are re-raised untouched so the caller can map them to
    the invariant they protect. In both cases the session is rolled back.

    Args:
        db: The session the block works with.
        action: Short description used in the log and error message.

    Raises:
        DependencyError: If the store call fails for any other reason.
    """
    try:
        yield
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Store failure while trying to %s: %s", action, e)
        raise DependencyError(f"Failed to {action}: {e}") from e
