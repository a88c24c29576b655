# File: utils/config_utils.py
# Description: Utility functions for loading, validating, and managing the import configuration.

import logging
import os  # Import OS for file and directory handling
from typing import Dict, Optional
import yaml  # Import PyYAML for reading and parsing YAML files
from pipeline.abstract_etl.data_retriever import EnaObjectQuery

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ["accessions_file", "summary_path"]

DEFAULT_CONFIG = {
    "retries": 2,
    "queries": {},
    "entrez": {},
}


class ConfigLoaderError(Exception):
    """
    Custom exception for errors encountered during configuration loading or validation.
    """
    pass


def load_config(config_file_path: str, default_config: dict = None) -> dict:
    """
    Load the configuration from a YAML file.

    Args:
        config_file_path (str): Path to the YAML configuration file.
        default_config (dict, optional): Default configuration to use if loading fails.

    Returns:
        dict: Parsed configuration dictionary.

    Raises:
        ConfigLoaderError: If the configuration file does not exist or fails to parse.
    """
    # Step 1: Check if the YAML file exists at the specified path
    if not os.path.exists(config_file_path):
        if default_config is not None:
            logger.warning(f"Config file '{config_file_path}' not found. Using default configuration.")
            return default_config
        raise ConfigLoaderError(f"Config file '{config_file_path}' not found.")

    # Step 2: Attempt to load the YAML file
    try:
        with open(config_file_path, "r") as config_file:
            config = yaml.safe_load(config_file)
    except yaml.YAMLError as e:
        if default_config is not None:
            logger.warning(f"Error parsing YAML file '{config_file_path}': {e}. Using default configuration.")
            return default_config
        raise ConfigLoaderError(f"Error parsing YAML file '{config_file_path}': {e}")

    if not isinstance(config, dict):
        raise ConfigLoaderError(f"Config file '{config_file_path}' must contain a mapping at the top level.")

    # Step 3: Fill in defaults for optional keys
    return {**DEFAULT_CONFIG, **config}


def validate_config(config: dict, required_keys: list = None) -> None:
    """
    Validate that required keys are present in the configuration dictionary.

    Args:
        config (dict): The configuration dictionary to validate.
        required_keys (list, optional): Keys that must be present. Defaults to REQUIRED_KEYS.

    Raises:
        ConfigLoaderError: If any required keys are missing or a value has the wrong type.
    """
    required_keys = REQUIRED_KEYS if required_keys is None else required_keys
    missing_keys = [key for key in required_keys if key not in config]
    if missing_keys:
        raise ConfigLoaderError(f"Missing required keys in configuration: {missing_keys}")

    retries = config.get("retries", 0)
    if not isinstance(retries, int) or retries < 0:
        raise ConfigLoaderError(f"'retries' must be a non-negative integer, got {retries!r}")

    # Fail early on unknown query names rather than at the first retrieval
    parse_query_overrides(config.get("queries"))


def parse_query_overrides(queries: Optional[Dict[str, str]]) -> Dict[EnaObjectQuery, str]:
    """
    Maps the `queries` section (keyed by STUDY_QUERY, ANALYSIS_QUERY or SAMPLE_QUERY)
    to SQL text per query mode.

    Raises:
        ConfigLoaderError: If a key is not a known query mode or its SQL is empty.
    """
    overrides = {}
    for name, sql in (queries or {}).items():
        try:
            query = EnaObjectQuery[name]
        except KeyError:
            raise ConfigLoaderError(
                f"Unknown query '{name}'. Expected one of {[q.name for q in EnaObjectQuery]}"
            )
        if not sql or not str(sql).strip():
            raise ConfigLoaderError(f"SQL for '{name}' cannot be empty.")
        overrides[query] = str(sql)
    return overrides


def ensure_directories(config: dict, keys: list) -> None:
    """
    Ensure that the parent directories of the paths named by `keys` exist.

    Args:
        config (dict): The configuration dictionary containing file paths.
        keys (list): List of keys in the configuration that correspond to output file paths.

    Raises:
        ConfigLoaderError: If any paths are missing or cannot be created.
    """
    for key in keys:
        path = config.get(key)
        if not path:
            raise ConfigLoaderError(f"Missing or invalid path for key: {key}")

        dir_path = os.path.dirname(os.path.abspath(path))
        try:
            os.makedirs(dir_path, exist_ok=True)
            logger.debug(f"Verified or created directory: {dir_path}")
        except OSError as e:
            raise ConfigLoaderError(f"Error creating directory '{dir_path}': {e}")
