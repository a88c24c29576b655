import argparse
import logging
from typing import Optional
from sqlalchemy import MetaData
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ProgrammingError
from config.db_config import get_postgres_engine, Base
import db.schema.sra_metadata_schema  # noqa: F401  Registers the SRA tables on Base.metadata

logger = logging.getLogger(__name__)


def reset_database(engine: Optional[Engine] = None) -> None:
    """
    Drops and recreates all tables and associated indexes in the database to match the current schema.
    WARNING: This will delete all existing data in the tables!
    """
    engine = engine or get_postgres_engine()

    # Reflect current tables in the database, including ones no longer in the schema
    meta = MetaData()
    meta.reflect(bind=engine)

    logger.info("Dropping existing tables...")
    try:
        meta.drop_all(engine)
        logger.info("Existing tables dropped successfully.")
    except ProgrammingError as e:
        logger.error(f"Error dropping tables: {e}")
        raise

    logger.info("Creating new tables...")
    Base.metadata.create_all(engine)
    logger.info("Database schema updated successfully.")


def confirm_reset() -> bool:
    """
    Prompt the user to confirm if they want to proceed with resetting the database.
    Returns:
        bool: True if the user confirms, False otherwise.
    """
    while True:
        user_input = input(
            "WARNING: This will remove all imported studies, analyses, samples and taxonomies.\n"
            "Are you sure you want to proceed? (yes/no): "
        ).strip().lower()
        if user_input in ['yes', 'no']:
            return user_input == 'yes'
        print("Invalid input. Please type 'yes' or 'no'.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(
        description="Reset the SRA metadata schema by dropping all tables and recreating them."
    )
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Skip the confirmation prompt and reset the database immediately."
    )
    args = parser.parse_args()

    if args.confirm or confirm_reset():
        reset_database()
    else:
        logger.info("Operation aborted. The database was not modified.")
