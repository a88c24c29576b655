# File: config/db_config.py
# This file serves as a centralized controller for database configurations in the SRA metadata importer.
# It provides the declarative Base for ORM models, lazily created engines for the target and source
# databases, and context-managed sessions with rollback on error.

import logging  # For logging messages
from contextlib import contextmanager  # For context-managed database sessions
from typing import Optional
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError  # For SQLAlchemy error handling
from sqlalchemy.orm import declarative_base, sessionmaker  # For ORM models and session creation
from config.postgres_config import create_postgres_engine, create_source_engine

logger = logging.getLogger(__name__)

# Define the SQLAlchemy Base class for ORM models
Base = declarative_base()

# Engines are created on first use so that importing models never requires credentials
_target_engine: Optional[Engine] = None
_source_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_postgres_engine() -> Engine:
    """
    Provides the SQLAlchemy engine for the target PostgreSQL database.

    Returns:
        Engine: The SQLAlchemy engine for PostgreSQL.
    """
    global _target_engine
    if _target_engine is None:
        _target_engine = create_postgres_engine()
    return _target_engine


def get_source_engine() -> Engine:
    """
    Provides the SQLAlchemy engine for the source SRA database.

    Returns:
        Engine: The SQLAlchemy engine for the source database.
    """
    global _source_engine
    if _source_engine is None:
        _source_engine = create_source_engine()
    return _source_engine


def get_session_factory() -> sessionmaker:
    """Returns the session factory bound to the target engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=get_postgres_engine())
    return _session_factory


@contextmanager
def get_session_context():
    """
    Provides a target database session as a context manager.

    This method allows safe usage in `with` statements, ensuring the session
    is rolled back on database errors and always closed.

    Yields:
        Session: A SQLAlchemy session for ORM operations.
    """
    session = get_session_factory()()
    try:
        yield session
    except SQLAlchemyError as e:
        session.rollback()  # Rollback the transaction on error
        logger.error(f"Error during session operation: {e}")
        raise
    finally:
        session.close()
        logger.debug("Session closed.")
