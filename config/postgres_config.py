# File: config/postgres_config.py
# This file builds the SQLAlchemy engines used by the SRA importer: the target PostgreSQL
# metadata database and the source SRA/ERA relational dump the XML is read from.
# Settings come from environment variables, loaded from config/.env when present.

import os  # Import os for accessing environment variables
import logging  # Import logging to track database connection information and errors
from pathlib import Path  # Import Path for managing filesystem paths
from sqlalchemy import create_engine  # Import create_engine to establish connections with SQLAlchemy
from sqlalchemy.engine import Engine  # Import Engine type for type hinting
from sqlalchemy.exc import SQLAlchemyError  # Import SQLAlchemyError for error handling
from dotenv import load_dotenv  # Import load_dotenv to load environment variables from a .env file

logger = logging.getLogger(__name__)

# Load environment variables from the .env file in the config directory, if one exists
ENV_PATH = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=ENV_PATH)

POSTGRES_ENV_VARS = ["DB_USER", "DB_PASSWORD", "PG_HOST", "PG_PORT", "PG_DB_NAME"]
SOURCE_DB_ENV_VAR = "SRA_SOURCE_DB_URL"


def build_postgres_url() -> str:
    """
    Constructs the PostgreSQL connection URL for the target metadata database.

    Returns:
        str: A SQLAlchemy URL for PostgreSQL.

    Raises:
        RuntimeError: If one or more required environment variables are missing.
    """
    missing = [key for key in POSTGRES_ENV_VARS if not os.getenv(key)]
    if missing:
        logger.error(f"Missing PostgreSQL environment variables: {missing}")
        raise RuntimeError(
            f"Environment variables {missing} are required for PostgreSQL configuration."
        )
    return (
        f"postgresql://{os.getenv('DB_USER')}:{os.getenv('DB_PASSWORD')}"
        f"@{os.getenv('PG_HOST')}:{os.getenv('PG_PORT')}/{os.getenv('PG_DB_NAME')}"
    )


def build_source_url() -> str:
    """
    Returns the SQLAlchemy URL of the source SRA database.

    Raises:
        RuntimeError: If SRA_SOURCE_DB_URL is not set.
    """
    url = os.getenv(SOURCE_DB_ENV_VAR)
    if not url:
        logger.error(f"Missing environment variable: {SOURCE_DB_ENV_VAR}")
        raise RuntimeError(f"Environment variable {SOURCE_DB_ENV_VAR} is required for the source database.")
    return url


def create_postgres_engine(url: str = None) -> Engine:
    """
    Creates the target engine with connection pooling.

    Args:
        url (str, optional): Overrides the URL built from the environment.

    Returns:
        Engine: The SQLAlchemy engine for PostgreSQL.

    Raises:
        RuntimeError: If the engine cannot be created.
    """
    try:
        engine = create_engine(
            url or build_postgres_url(),
            pool_size=int(os.getenv("PG_POOL_SIZE", 20)),  # Max number of connections in the pool
            max_overflow=int(os.getenv("PG_MAX_OVERFLOW", 10)),  # Additional connections if the pool is full
            pool_timeout=int(os.getenv("PG_POOL_TIMEOUT", 30)),  # Seconds to wait for a pooled connection
            pool_recycle=1800,  # Recycle connections every 30 minutes
            echo=os.getenv("DEBUG", "False").lower() == "true",  # SQL echo in DEBUG mode
        )
        logger.info("PostgreSQL engine created successfully.")
        return engine
    except SQLAlchemyError as sql_err:
        logger.error(f"SQLAlchemyError during PostgreSQL engine creation: {sql_err}")
        raise RuntimeError(
            "Unexpected SQLAlchemy error occurred during engine creation. Verify SQLAlchemy setup.") from sql_err


def create_source_engine(url: str = None) -> Engine:
    """
    Creates the engine for the source SRA database. The source is read-only for the importer.

    Args:
        url (str, optional): Overrides SRA_SOURCE_DB_URL.

    Returns:
        Engine: The SQLAlchemy engine for the source database.
    """
    try:
        engine = create_engine(
            url or build_source_url(),
            pool_pre_ping=True,
            echo=os.getenv("DEBUG", "False").lower() == "true",
        )
        logger.info("Source SRA database engine created successfully.")
        return engine
    except SQLAlchemyError as sql_err:
        logger.error(f"SQLAlchemyError during source engine creation: {sql_err}")
        raise RuntimeError("Failed to create the source SRA database engine.") from sql_err
