# File: initialize_schema.py
"""
This script initializes the database schema by creating the SRA metadata tables
(study, analysis, sample, taxonomy and their association tables) defined in
db/schema/sra_metadata_schema.py.
"""

import logging
import sys
import os
from typing import List, Optional
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from config.db_config import get_postgres_engine, Base  # Import engine creation function
from db.schema.sra_metadata_schema import Study, Analysis, Sample, Taxonomy

logger = logging.getLogger(__name__)

SRA_MODELS = [Study, Analysis, Sample, Taxonomy]


def initialize_tables(models: List[type], engine: Optional[Engine] = None) -> List[str]:
    """
    Initializes the tables in the PostgreSQL database for the provided SQLAlchemy models.
    Association tables shared through Base.metadata are created along with them.

    Args:
        models (List[type]): List of SQLAlchemy ORM models to initialize.
        engine (Optional[Engine]): Target engine; the configured PostgreSQL engine by default.

    Returns:
        List[str]: Names of the tables that exist after initialization.

    Raises:
        RuntimeError: If an error occurs during schema initialization.
    """
    try:
        engine = engine or get_postgres_engine()

        logger.info("Initializing database schema...")
        Base.metadata.create_all(bind=engine)
        for model in models:
            logger.info(f"Initialized schema for model: {model.__tablename__}")

        logger.info("Database schema initialized successfully.")
        return sorted(Base.metadata.tables)

    except SQLAlchemyError as e:
        logger.error(f"SQLAlchemy error occurred during initialization: {e}")
        raise RuntimeError("Database initialization failed.") from e


if __name__ == "__main__":
    # Add the project root directory to sys.path
    sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    logging.basicConfig(level=logging.INFO)

    initialize_tables(SRA_MODELS)
