# File: utils/connection_checker.py
# This script provides functionality to check connections to the target PostgreSQL database and the
# source SRA database with retry logic and exponential backoff between attempts.

import time  # Import the time module for delays between retry attempts
import logging  # Import the logging module to log connection status
from sqlalchemy import text  # Import text to execute raw SQL commands
from sqlalchemy.exc import OperationalError  # Import OperationalError to handle connection issues
from config.db_config import get_postgres_engine, get_source_engine

logger = logging.getLogger(__name__)


class DatabaseConnectionError(Exception):
    """
    Custom exception for database connection failures.

    Attributes:
        db_type (str): Name of the database that caused the failure (e.g., 'PostgreSQL', 'SRA source').
    """

    def __init__(self, db_type, message="Database connection failed"):
        self.db_type = db_type
        super().__init__(f"{message}: {db_type}")


class DatabaseConnectionChecker:
    """
    Checks the connection to the target and source databases with retry logic and exponential backoff.
    """

    def __init__(self, retries: int = 3, delay: int = 2) -> None:
        """
        Initializes the DatabaseConnectionChecker with retry parameters.

        Args:
            retries (int): Maximum number of retry attempts.
            delay (int): Base delay (in seconds) between retry attempts.
        """
        self.retries = max(retries, 1)  # Ensure retries are at least 1
        self.delay = max(delay, 0)  # Ensure delay is non-negative

    def _check(self, get_engine, db_type: str) -> bool:
        for attempt in range(1, self.retries + 1):
            try:
                engine = get_engine()
                if engine is None:
                    logger.error(f"{db_type} engine could not be created. Check environment variables.")
                    return False
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))  # Execute a simple query to validate the connection
                logger.info(f"{db_type} connection successful.")
                return True
            except OperationalError as e:
                wait = self.delay * (2 ** (attempt - 1))
                logger.warning(
                    f"Attempt {attempt}: {db_type} connection failed. Error: {e}. Retrying in {wait} seconds..."
                )
                time.sleep(wait)  # Apply exponential backoff
        raise DatabaseConnectionError(db_type)

    def check_postgresql_connection(self) -> bool:
        """
        Attempts to connect to the target PostgreSQL database.

        Returns:
            bool: True if the connection is successful, False if no engine is available.

        Raises:
            DatabaseConnectionError: If the connection fails after the maximum number of retries.
        """
        return self._check(get_postgres_engine, "PostgreSQL")

    def check_source_connection(self) -> bool:
        """
        Attempts to connect to the source SRA database.

        Raises:
            DatabaseConnectionError: If the connection fails after the maximum number of retries.
        """
        return self._check(get_source_engine, "SRA source")

    def check_all_connections(self) -> bool:
        """
        Checks both database connections.

        Returns:
            bool: True only if all connections are successful.
        """
        results = {
            "postgresql": self.check_postgresql_connection(),
            "source": self.check_source_connection(),
        }
        for db, status in results.items():
            logger.info(f"{db} connection status: {'SUCCESS' if status else 'FAILED'}")
        return all(results.values())
