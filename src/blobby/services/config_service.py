"""Configuration service for loading blobby.yml."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..models import BlobbyConfig

logger = logging.getLogger(__name__)


class ConfigService:
    """Service for loading and caching application configuration."""

    CONFIG_FILE = "blobby.yml"

    def __init__(self, config_dir: Path) -> None:
        """Initialize the config service.

        Args:
            config_dir: Directory containing blobby.yml
        """
        self.config_dir = config_dir
        self._config: BlobbyConfig | None = None
        self._config_error: str | None = None

    @property
    def config_path(self) -> Path:
        return self.config_dir / self.CONFIG_FILE

    @property
    def has_config_error(self) -> bool:
        """Check if there was an error loading config."""
        return self._config_error is not None

    @property
    def config_error(self) -> str | None:
        """Get the config error message if any."""
        return self._config_error

    def get_config(self) -> BlobbyConfig:
        """Get configuration, loading from file if not cached."""
        if self._config is None:
            self._config = self._load_config()
        return self._config

    def reload(self) -> None:
        """Clear cached configuration, forcing reload on next access."""
        self._config = None
        self._config_error = None

    def _load_config(self) -> BlobbyConfig:
        """Load configuration from file or return default."""
        config_path = self.config_path
        self._config_error = None

        if not config_path.exists():
            logger.debug("No %s found, using defaults", self.CONFIG_FILE)
            return BlobbyConfig.default()

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f)

            if data is None:
                self._config_error = f"{self.CONFIG_FILE} is empty"
                logger.warning(self._config_error)
                return BlobbyConfig.default()

            config = BlobbyConfig(**data)
            logger.info("Loaded %s (default board: %s)", self.CONFIG_FILE, config.default_board)
            return config

        except yaml.YAMLError as e:
            self._config_error = f"Invalid YAML in {self.CONFIG_FILE}: {e}"
            logger.warning(self._config_error)
            return BlobbyConfig.default()

        except (ValidationError, TypeError) as e:
            self._config_error = f"Invalid {self.CONFIG_FILE}: {e}"
            logger.warning(self._config_error)
            return BlobbyConfig.default()

        except OSError as e:
            self._config_error = f"Error loading {self.CONFIG_FILE}: {e}"
            logger.warning(self._config_error)
            return BlobbyConfig.default()
