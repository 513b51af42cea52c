"""Application Settings and Configuration.

This module provides application-wide settings that combine configuration
from the configuration manager with application-specific defaults.
"""

import os
from typing import Optional

from src.infrastructure.config_manager import ConfigManager, StorageConfig

# Application metadata
APP_NAME = "Clinic-Records"
APP_VERSION = "1.0.0"


class Settings:
    """Application settings loaded from configuration manager and environment.

    The storage configuration is loaded lazily so that importing this module
    never touches the filesystem.
    """

    def __init__(self):
        """Initialize settings from environment."""
        self._storage_config: Optional[StorageConfig] = None
        self._config_manager: Optional[ConfigManager] = None

        self.app_name = os.getenv("CR_APP_NAME", APP_NAME)

        # Logging
        self.log_level = os.getenv("CR_LOG_LEVEL", "WARNING")
        self.log_json = os.getenv("CR_LOG_JSON", "false").lower() == "true"

    @property
    def config_manager(self) -> ConfigManager:
        """Get configuration manager instance."""
        if self._config_manager is None:
            self._config_manager = ConfigManager.from_environment()
        return self._config_manager

    @property
    def storage_config(self) -> StorageConfig:
        """Get storage configuration (loaded on first access)."""
        if self._storage_config is None:
            self._storage_config = self.config_manager.get_storage_config()
        return self._storage_config


# Global settings instance
settings = Settings()
