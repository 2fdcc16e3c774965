"""
Configuration management for the Kitchen Costing application.

This module handles:
- Database location (SQLite file per environment, or an explicit URL)
- Environment-specific configuration (production, development, test)
- Logging level
- Access-control reporting behavior

Environment variables:
    KITCHEN_COSTING_ENV: 'production' (default), 'development' or 'test'
    KITCHEN_COSTING_DATABASE_URL: explicit SQLAlchemy URL (overrides the file path)
    KITCHEN_COSTING_DB_TIMEOUT: SQLite busy timeout in seconds (default 30)
    KITCHEN_COSTING_LOG_LEVEL: logging level name (default INFO)
    KITCHEN_COSTING_CONCEAL_ACCESS_DENIED: report denied recipe fetches as
        not found (default true)
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import DATABASE_FILENAME

logger = logging.getLogger(__name__)

ENV_PREFIX = "KITCHEN_COSTING_"

DEFAULT_DB_TIMEOUT = 30
DEFAULT_LOG_LEVEL = "INFO"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class Config:
    """
    Application configuration manager.

    Handles database location, environment mode, logging level and the
    access-control reporting switch. Values are read from the environment
    once, when the instance is created.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production', 'development' or 'test'
        """
        self.environment = environment

        if environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_data_dir()

        self._database_path = self._base_dir / DATABASE_FILENAME
        self._database_url_override = os.environ.get(f"{ENV_PREFIX}DATABASE_URL")

        self._db_timeout = self._read_int("DB_TIMEOUT", DEFAULT_DB_TIMEOUT)
        self._log_level = self._read_log_level()
        self._conceal_access_denied = self._read_bool("CONCEAL_ACCESS_DENIED", True)

    def _get_project_data_dir(self) -> Path:
        """Project-local data/ directory used in development."""
        project_root = Path(__file__).parent.parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """Per-user application directory used in production."""
        return Path.home() / ".kitchen_costing"

    def _read_int(self, name: str, default: int) -> int:
        raw = os.environ.get(f"{ENV_PREFIX}{name}")
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError:
            logger.warning(f"Invalid {ENV_PREFIX}{name}={raw!r}, using default {default}")
            return default
        if value <= 0:
            logger.warning(f"Invalid {ENV_PREFIX}{name}={raw!r}, using default {default}")
            return default
        return value

    def _read_bool(self, name: str, default: bool) -> bool:
        raw = os.environ.get(f"{ENV_PREFIX}{name}")
        if raw is None:
            return default
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        logger.warning(f"Invalid {ENV_PREFIX}{name}={raw!r}, using default {default}")
        return default

    def _read_log_level(self) -> str:
        raw = os.environ.get(f"{ENV_PREFIX}LOG_LEVEL")
        if raw is None:
            return DEFAULT_LOG_LEVEL
        level = raw.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            logger.warning(
                f"Invalid {ENV_PREFIX}LOG_LEVEL={raw!r}, using default {DEFAULT_LOG_LEVEL}"
            )
            return DEFAULT_LOG_LEVEL
        return level

    def ensure_directories(self) -> None:
        """Create the database directory if a file-based database is used."""
        if self._database_url_override is None and not self.is_test:
            self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        """Full path to the SQLite database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Returns:
            The KITCHEN_COSTING_DATABASE_URL override if set, an in-memory
            SQLite URL in test mode, otherwise the SQLite file URL.
        """
        if self._database_url_override:
            return self._database_url_override
        if self.is_test:
            return "sqlite:///:memory:"
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def db_timeout(self) -> int:
        """SQLite busy timeout in seconds."""
        return self._db_timeout

    @property
    def log_level(self) -> str:
        """Logging level name."""
        return self._log_level

    @property
    def conceal_access_denied(self) -> bool:
        """Whether denied recipe fetches are reported as not found."""
        return self._conceal_access_denied

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.environment == "test"

    def database_exists(self) -> bool:
        """Check if the SQLite database file exists."""
        return self._database_path.exists()

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    KITCHEN_COSTING_ENV or defaults to production. Ignored if
                    the singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(f"{ENV_PREFIX}ENV", "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    """Get the database URL from the global configuration."""
    return get_config().database_url


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging for command-line use.

    Args:
        level: Level name; defaults to Config.log_level
    """
    logging.basicConfig(
        level=(level or get_config().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
