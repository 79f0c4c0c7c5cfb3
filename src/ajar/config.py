"""
Configuration Management for Ajar

Handles loading, saving, and overriding the settings that drive member
resolution and diagnostics.
"""

import contextlib
import json
import logging
import os
import threading
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger("ajar.config")

ENV_PREFIX = "AJAR_"


@dataclass
class AjarConfig:
    """Main configuration class for Ajar."""

    # Logging settings
    logger_name: str = "ajar.accessor"
    log_level: str = "ERROR"
    diagnostic_buffer_size: int = 100

    # Resolution settings
    resolve_mangled: bool = True
    search_bases: bool = False

    def __post_init__(self):
        """Normalize values coming from files or the environment."""
        self.log_level = str(self.log_level).upper()
        if logging.getLevelName(self.log_level) == f"Level {self.log_level}":
            raise ValueError(f"Unknown log level: {self.log_level}")
        if self.diagnostic_buffer_size < 1:
            raise ValueError("diagnostic_buffer_size must be positive")


def _parse_env_value(raw: str, current: Any) -> Any:
    if isinstance(current, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(current, int):
        return int(raw)
    return raw


class Config:
    """Global configuration singleton."""

    _instance: Optional[AjarConfig] = None
    _lock = threading.RLock()
    _config_file: Optional[Path] = None

    @classmethod
    def initialize(cls, config_path: Optional[Path] = None, **kwargs) -> AjarConfig:
        """Initialize configuration from file or kwargs."""
        with cls._lock:
            if config_path:
                cls._config_file = config_path
                cls._instance = cls.load_config(config_path)
            else:
                cls._instance = cls.apply_environment(AjarConfig(**kwargs))
            return cls._instance

    @classmethod
    def get_instance(cls) -> AjarConfig:
        """Get the configuration instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = cls.apply_environment(AjarConfig())
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the current configuration so the next read rebuilds defaults."""
        with cls._lock:
            cls._instance = None
            cls._config_file = None

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        instance = cls.get_instance()
        return getattr(instance, key, default)

    @classmethod
    def set(cls, key: str, value: Any) -> None:
        """Set a configuration value."""
        instance = cls.get_instance()
        if hasattr(instance, key):
            setattr(instance, key, value)

    @classmethod
    def apply_environment(cls, config: AjarConfig) -> AjarConfig:
        """Return a copy of config with AJAR_* environment variables applied."""
        updates = {}
        for f in fields(config):
            raw = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is not None:
                updates[f.name] = _parse_env_value(raw, getattr(config, f.name))
        return replace(config, **updates) if updates else config

    @classmethod
    def load_config(cls, config_path: Path) -> AjarConfig:
        """Load configuration from file."""
        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = json.load(f)
                return cls.apply_environment(AjarConfig(**data))
            except (OSError, ValueError, TypeError) as e:
                logger.warning(f"Error loading config from {config_path}: {e}")

        return cls.apply_environment(AjarConfig())

    @classmethod
    def save_config(cls, config_path: Optional[Path] = None) -> bool:
        """Save current configuration to file."""
        instance = cls.get_instance()
        path = config_path or cls._config_file
        if not path:
            raise ValueError("No configuration path given")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(asdict(instance), f, indent=2, default=str)
            return True
        except OSError as e:
            logger.warning(f"Error saving config to {path}: {e}")
            return False

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(cls.get_instance())

    @classmethod
    def update(cls, updates: Dict[str, Any]) -> None:
        """Update multiple configuration values."""
        instance = cls.get_instance()
        for key, value in updates.items():
            if hasattr(instance, key):
                setattr(instance, key, value)

    @classmethod
    @contextlib.contextmanager
    def override(cls, **kwargs) -> Iterator[AjarConfig]:
        """Temporarily replace configuration values."""
        with cls._lock:
            previous = cls.get_instance()
            cls._instance = replace(previous, **kwargs)
        try:
            yield cls._instance
        finally:
            with cls._lock:
                cls._instance = previous


def load_config(config_path: Optional[Path] = None) -> AjarConfig:
    """Load configuration from file or use defaults."""
    return Config.initialize(config_path)


def save_config(config: AjarConfig, config_path: Path) -> bool:
    """Save configuration to file."""
    Config._instance = config
    return Config.save_config(config_path)


def get_config() -> AjarConfig:
    """Get the current configuration."""
    return Config.get_instance()
