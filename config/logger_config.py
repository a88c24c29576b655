# File: config/logger_config.py
# This file provides a centralized configuration for logging in the SRA metadata importer.
# It defines a function that configures a logger with specified settings, such as log level, output format, and log file rotation.

import logging  # Provides logging functionality
import os  # For handling file system paths and directories
from logging.handlers import RotatingFileHandler  # For managing rotating log files
from typing import Optional  # For optional type hinting

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logger(
    name: Optional[str] = None,  # The name of the logger; None defaults to the root logger
    log_dir: Optional[str] = None,  # Directory where log files will be stored; None uses SRA_LOG_DIR or <project>/logs
    log_file: str = "sra_import.log",  # Name of the log file
    level: int = logging.INFO,  # Logging level (e.g., DEBUG, INFO, WARNING, ERROR)
    max_bytes: int = 10 * 1024 * 1024,  # Maximum size of a log file before rotation (default: 10 MB)
    backup_count: int = 5,  # Number of backup files to keep during log rotation
    output: str = "both",  # Where to output logs: "file", "console", or "both"
) -> logging.Logger:
    """
    Configures and returns a logger instance.

    Args:
        name (Optional[str]): Name of the logger. If None, the root logger is used.
        log_dir (Optional[str]): Directory to store log files. Falls back to the
            SRA_LOG_DIR environment variable, then to the project's logs directory.
        log_file (str): Name of the log file.
        level (int): Logging level (e.g., logging.INFO, logging.DEBUG).
        max_bytes (int): Maximum size of the log file before rotation.
        backup_count (int): Number of backup files to keep during rotation.
        output (str): Where to send logs: "file", "console", or "both".

    Returns:
        logging.Logger: Configured logger instance.

    Raises:
        ValueError: If output is not one of "file", "console" or "both".
        RuntimeError: If the log directory or a handler cannot be set up.
    """
    if output not in {"file", "console", "both"}:
        raise ValueError(f"Unsupported log output '{output}'. Use 'file', 'console' or 'both'.")

    try:
        if log_dir is None:
            # Default to the centralized logs directory within the project root
            project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
            log_dir = os.getenv("SRA_LOG_DIR", os.path.join(project_root, "logs"))

        # Create or retrieve the logger instance with the specified name
        logger = logging.getLogger(name)
        logger.setLevel(level)

        # Check if the logger already has handlers to prevent duplicate logs
        if not logger.handlers:
            formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

            if output in {"file", "both"}:
                os.makedirs(log_dir, exist_ok=True)
                log_path = os.path.join(log_dir, log_file)
                try:
                    file_handler = RotatingFileHandler(
                        log_path, maxBytes=max_bytes, backupCount=backup_count
                    )
                    file_handler.setLevel(level)
                    file_handler.setFormatter(formatter)
                    logger.addHandler(file_handler)
                except Exception as e:
                    raise RuntimeError(
                        f"Failed to configure file handler for logger: {e}"
                    ) from e

            if output in {"console", "both"}:
                console_handler = logging.StreamHandler()
                console_handler.setLevel(level)
                console_handler.setFormatter(formatter)
                logger.addHandler(console_handler)

        return logger

    except OSError as e:  # Handle issues with creating log directories or files
        raise RuntimeError(
            f"Failed to create or access log directory: {e}"
        ) from e
