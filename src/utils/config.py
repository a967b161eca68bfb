"""
Configuration management for the Intake backup engine.

This module handles:
- Database path and URL configuration
- Environment-specific configuration (development vs. production)
- The single-tenant default owner used when no user is named
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import DATABASE_FILENAME, DEFAULT_USER_ID

logger = logging.getLogger(__name__)

ENV_ENVIRONMENT = "INTAKE_ENV"
ENV_DATABASE_URL = "INTAKE_DATABASE_URL"
ENV_DEFAULT_USER_ID = "INTAKE_DEFAULT_USER_ID"


class Config:
    """
    Application configuration manager.

    Handles database location and the default owning user. The default
    user is passed explicitly into the import path so that running more
    than one tenant is a configuration change.
    """

    def __init__(
        self,
        environment: str = "production",
        database_url: Optional[str] = None,
        default_user_id: Optional[str] = None,
    ):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
            database_url: Optional SQLAlchemy URL overriding the file location
            default_user_id: Optional fallback owner id
        """
        self.environment = environment
        if environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_data_dir()

        self._database_dir = self._base_dir
        self._database_path = self._database_dir / DATABASE_FILENAME
        self._database_url = database_url or os.environ.get(ENV_DATABASE_URL)
        self._default_user_id = (
            default_user_id or os.environ.get(ENV_DEFAULT_USER_ID) or DEFAULT_USER_ID
        )

    def _get_project_data_dir(self) -> Path:
        """
        Get the project's data directory for development.

        Returns:
            Path to project data/ directory
        """
        project_root = Path(__file__).parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """
        Get the per-user data directory for production.

        Returns:
            Path to ~/.intake
        """
        return Path.home() / ".intake"

    def ensure_directories(self):
        """Create the database directory if it doesn't exist."""
        self._database_dir.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        """Full path to the database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        An explicit URL (argument or INTAKE_DATABASE_URL) wins over the
        file location derived from the environment.

        Returns:
            Database URL string for SQLAlchemy
        """
        if self._database_url:
            return self._database_url
        # Use forward slashes for SQLite URL
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def default_user_id(self) -> str:
        """Owner used when neither the caller nor a bundle names one."""
        return self._default_user_id

    def database_exists(self) -> bool:
        """
        Check if database file exists.

        Returns:
            True if database file exists, False otherwise
        """
        if self._database_url:
            return True
        return self._database_path.exists()

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"Config(environment='{self.environment}', "
            f"database_url='{self.database_url}', "
            f"default_user_id='{self._default_user_id}')"
        )


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument - this prevents accidental database
    switching mid-session.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    INTAKE_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton to prevent database switching."
        )

    return _config_instance


def set_config(config: Config) -> None:
    """Install a prebuilt configuration as the global instance."""
    global _config_instance
    _config_instance = config


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None


def get_default_user_id() -> str:
    """Get the configured single-tenant default owner id."""
    return get_config().default_user_id
