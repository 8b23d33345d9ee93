"""
Configuration management for the web crawler.
"""

import yaml
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlsplit


DEFAULT_SEED_URL = "https://en.wikipedia.org/wiki/Keebler_Company"


class ConfigError(Exception):
    """Raised for missing, malformed or invalid configuration."""
    pass


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_url: str = DEFAULT_SEED_URL
    request_queue_size: int = 4
    fetch_workers: int = 1
    parse_workers: int = 1
    request_timeout: Optional[float] = None
    halt_on_malformed_document: bool = False
    stats_interval: float = 30.0


@dataclass
class StorageConfig:
    """Configuration for on-disk state."""
    content_directory: str = "content"
    checkpoint_file: str = "qrawler_states.json"
    history_file: str = "qrawler.log"


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/crawler.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build_section(section_cls, name: str, data: Any):
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown keys in section '{name}': {', '.join(unknown)}")
    return section_cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = "config.yaml"):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """
        Load configuration from a YAML file.

        With no path every setting takes its default.
        """
        config_data: Dict[str, Any] = {}
        if self.config_path is not None:
            if not self.config_path.exists():
                raise ConfigError(f"Configuration file not found: {self.config_path}")

            try:
                with open(self.config_path, 'r', encoding='utf-8') as file:
                    config_data = yaml.safe_load(file) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        self._config = self.from_dict(config_data)
        return self._config

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> Config:
        """Build and validate a Config from a plain mapping."""
        if not isinstance(config_data, dict):
            raise ConfigError(f"Top level of configuration must be a mapping, got {type(config_data).__name__}")

        unknown = sorted(set(config_data) - {'crawler', 'storage', 'logging'})
        if unknown:
            raise ConfigError(f"Unknown configuration sections: {', '.join(unknown)}")

        config = Config(
            crawler=_build_section(CrawlerConfig, 'crawler', config_data.get('crawler')),
            storage=_build_section(StorageConfig, 'storage', config_data.get('storage')),
            logging=_build_section(LoggingConfig, 'logging', config_data.get('logging'))
        )
        cls.validate_config(config)
        return config

    @staticmethod
    def validate_config(config: Config):
        """Validate configuration values."""
        crawler = config.crawler

        parsed = urlsplit(crawler.seed_url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ConfigError(f"seed_url must be an absolute http(s) URL: {crawler.seed_url!r}")

        for name in ('request_queue_size', 'fetch_workers', 'parse_workers'):
            value = getattr(crawler, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"{name} must be an integer, got {value!r}")

        for name in ('request_timeout', 'stats_interval'):
            value = getattr(crawler, name)
            if value is not None and (not isinstance(value, (int, float)) or isinstance(value, bool)):
                raise ConfigError(f"{name} must be a number, got {value!r}")

        if not isinstance(crawler.halt_on_malformed_document, bool):
            raise ConfigError("halt_on_malformed_document must be true or false")

        if crawler.request_queue_size < 1:
            raise ConfigError("request_queue_size must be at least 1")

        if crawler.fetch_workers < 1 or crawler.parse_workers < 1:
            raise ConfigError("fetch_workers and parse_workers must be at least 1")

        if crawler.request_timeout is not None and crawler.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive or null")

        if crawler.stats_interval is None or crawler.stats_interval < 0:
            raise ConfigError("stats_interval must be non-negative")

        if not isinstance(logging.getLevelName(config.logging.level.upper()), int):
            raise ConfigError(f"Unknown logging level: {config.logging.level}")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


# Global config manager instance
config_manager = ConfigManager(None)


def get_config() -> Config:
    """Get the global configuration instance."""
    return config_manager.config


def load_config(config_path: Optional[str] = "config.yaml") -> Config:
    """Load configuration from file, or defaults when config_path is None."""
    global config_manager
    config_manager = ConfigManager(config_path)
    return config_manager.load_config()
