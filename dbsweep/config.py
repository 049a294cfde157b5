"""Configuration management for dbsweep.

Loads environment variables and provides centralized config access.
"""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

__version__ = "1.0.0"


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: Optional[Path] = None):
        """Initialize config by loading .env file.

        Args:
            env_path: Explicit .env location (defaults to the project root)
        """
        if env_path is None:
            env_path = Path(__file__).parent.parent / ".env"
        load_dotenv(env_path)

        self._validate()

    def _validate(self):
        """Validate numeric settings.

        Raises:
            ValueError: If a numeric setting is not a positive integer
        """
        for name, value in (("DBSWEEP_MAX_CHAIN_DEPTH", self.max_chain_depth),
                            ("DBSWEEP_MAX_FILE_SIZE", self.max_file_size)):
            if value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value}")

    def _int_setting(self, name: str, default: int) -> int:
        raw = os.getenv(name)
        if raw is None or raw.strip() == "":
            return default
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{name} must be an integer, got {raw!r}")

    @property
    def log_dir(self) -> str:
        """Directory for per-repository analysis logs."""
        return os.getenv("DBSWEEP_LOG_DIR", "log")

    @property
    def log_level(self) -> str:
        """Console log level for loguru."""
        return os.getenv("DBSWEEP_LOG_LEVEL", "INFO").upper()

    @property
    def model_table_name(self) -> Optional[str]:
        """Fixed table name for self/this model receivers.

        Unset means: use the enclosing class name.
        """
        return os.getenv("DBSWEEP_MODEL_TABLE") or None

    @property
    def max_chain_depth(self) -> int:
        """Upper bound on steps when walking a call chain."""
        return self._int_setting("DBSWEEP_MAX_CHAIN_DEPTH", 64)

    @property
    def max_file_size(self) -> int:
        """Largest file (bytes) the scanner will read."""
        return self._int_setting("DBSWEEP_MAX_FILE_SIZE", 1024 * 1024)


# Cached instance for the CLI; the analyzer takes its settings via AnalysisContext
_config = None


def get_config() -> Config:
    """Get or create the cached Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config
