"""Configuration Manager for the Patient Data Store.

This module loads and validates the storage configuration (where the patient
data file lives and how it is written) from environment variables or a JSON
configuration file.

Security Impact:
    - Patient data paths are validated before any file is opened
    - Configuration values are validated before use (fail-fast)

Architecture:
    - Follows Hexagonal Architecture: Infrastructure layer isolated from domain
    - Type-safe configuration using Pydantic models
    - Supports environment variables (with an optional project .env file) and JSON files
"""

import codecs
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "data/patients.json"


class StorageConfig(BaseModel):
    """Storage configuration for the JSON patient data file.

    Parameters:
        data_file: Path to the JSON data file (created on first save)
        indent: Indentation used when writing the file
        encoding: Text encoding of the file
    """

    data_file: Path = Field(default=Path(DEFAULT_DATA_FILE), description="Path to the JSON data file")
    indent: int = Field(default=2, ge=0, le=8, description="JSON indentation")
    encoding: str = Field(default="utf-8", description="File encoding")

    @field_validator("data_file")
    @classmethod
    def validate_data_file(cls, v: Path) -> Path:
        """Validate the data file path.

        The file itself may not exist yet, but the path must not point at a
        directory and must name a .json file.
        """
        if str(v).strip() in ("", "."):
            raise ValueError("Data file path cannot be empty")
        if v.exists() and v.is_dir():
            raise ValueError(f"Data file path is a directory: {v}")
        if v.suffix.lower() != ".json":
            raise ValueError(f"Data file must be a .json file. Got: {v}")
        return v

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown encoding: {v}")
        return v


class ConfigManager:
    """Configuration manager for storage settings.

    Example Usage:
        ```python
        # Load from environment variables
        config = ConfigManager.from_environment()
        storage_config = config.get_storage_config()

        # Load from file
        config = ConfigManager.from_file("config.json")
        storage_config = config.get_storage_config()
        ```
    """

    def __init__(self, config_data: Dict[str, Any]):
        """Initialize configuration manager.

        Parameters:
            config_data: Configuration dictionary
        """
        self._config_data = config_data
        self._storage_config: Optional[StorageConfig] = None

    @classmethod
    def from_environment(cls) -> 'ConfigManager':
        """Load configuration from environment variables.

        Environment Variables:
            - CR_DATA_FILE: Path to the JSON data file
            - CR_JSON_INDENT: Indentation used when writing the file
            - CR_FILE_ENCODING: Text encoding of the file

        A .env file in the project root is loaded first when present; values
        already set in the environment take precedence.

        Returns:
            ConfigManager instance

        Raises:
            ValueError: If CR_JSON_INDENT is not an integer
        """
        env_path = Path(__file__).parent.parent.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug(f"Loaded environment variables from {env_path}")

        storage: Dict[str, Any] = {}
        if os.getenv("CR_DATA_FILE"):
            storage["data_file"] = os.getenv("CR_DATA_FILE")
        if os.getenv("CR_JSON_INDENT"):
            try:
                storage["indent"] = int(os.getenv("CR_JSON_INDENT"))
            except ValueError:
                raise ValueError(f"CR_JSON_INDENT must be an integer. Got: {os.getenv('CR_JSON_INDENT')}") from None
        if os.getenv("CR_FILE_ENCODING"):
            storage["encoding"] = os.getenv("CR_FILE_ENCODING")

        return cls({"storage": storage})

    @classmethod
    def from_file(cls, config_path: str) -> 'ConfigManager':
        """Load configuration from a JSON file.

        Parameters:
            config_path: Path to configuration file

        Returns:
            ConfigManager instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {str(e)}")

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a JSON object")

        return cls(config_data)

    def get_storage_config(self) -> StorageConfig:
        """Get storage configuration.

        Returns:
            StorageConfig instance (validated, cached after first access)
        """
        if self._storage_config is None:
            storage_data = self._config_data.get("storage") or {}
            self._storage_config = StorageConfig(**storage_data)
        return self._storage_config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Parameters:
            key: Configuration key (supports dot notation, e.g., "storage.data_file")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config_data

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default


# ============================================================================
# Convenience Functions
# ============================================================================

def get_storage_config() -> StorageConfig:
    """Convenience function to get storage configuration from environment.

    Returns:
        StorageConfig instance (defaults to data/patients.json)
    """
    config_manager = ConfigManager.from_environment()
    return config_manager.get_storage_config()
