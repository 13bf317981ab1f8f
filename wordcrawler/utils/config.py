"""
Configuration management for the word crawler.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional, Tuple
from dataclasses import dataclass, field, fields


class CrawlConfigurationError(ValueError):
    """Raised for invalid crawl configuration."""
    pass


@dataclass(frozen=True)
class CrawlRequest:
    """Immutable parameters of one crawl."""
    start_pages: Tuple[str, ...]
    timeout_seconds: float
    max_depth: int
    popular_word_count: int
    parallelism: int
    ignored_urls: Tuple[str, ...] = ()


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    start_pages: List[str]
    ignored_urls: List[str] = field(default_factory=list)
    ignored_words: List[str] = field(default_factory=list)
    parallelism: int = 4
    max_depth: int = 10
    timeout_seconds: float = 5.0
    popular_word_count: int = 10
    request_timeout: int = 10
    user_agent: str = "wordcrawler/1.0"
    max_page_bytes: int = 10 * 1024 * 1024

    def to_request(self) -> CrawlRequest:
        """Build the immutable crawl request for the engine."""
        return CrawlRequest(
            start_pages=tuple(self.start_pages),
            timeout_seconds=self.timeout_seconds,
            max_depth=self.max_depth,
            popular_word_count=self.popular_word_count,
            parallelism=self.parallelism,
            ignored_urls=tuple(self.ignored_urls)
        )


@dataclass
class OutputConfig:
    """Where results and profile data are written. Empty means stdout."""
    result_path: str = ""
    profile_output_path: str = ""


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/crawler.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    metrics_enabled: bool = False
    textfile_path: str = "metrics/crawler.prom"


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def _build_section(section_cls, name: str, data: Optional[Dict[str, Any]]):
    """Instantiate a config dataclass, rejecting unknown keys."""
    data = data or {}
    if not isinstance(data, dict):
        raise CrawlConfigurationError(f"Section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise CrawlConfigurationError(
            f"Unknown keys in section '{name}': {', '.join(sorted(unknown))}"
        )

    try:
        return section_cls(**data)
    except TypeError as e:
        raise CrawlConfigurationError(f"Invalid section '{name}': {e}")


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from a YAML (or JSON) file."""
        if not self.config_path.exists():
            raise CrawlConfigurationError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r') as file:
                config_data = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise CrawlConfigurationError(f"Malformed configuration file {self.config_path}: {e}")

        self._config = parse_config(config_data)
        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise CrawlConfigurationError("Configuration not loaded")

        validate_crawler_config(self._config.crawler)

        if not self._config.crawler.start_pages:
            raise CrawlConfigurationError("At least one start page must be provided")

        if not isinstance(self._config.logging.level, str):
            raise CrawlConfigurationError(f"Unknown log level: {self._config.logging.level!r}")

        level = self._config.logging.level.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise CrawlConfigurationError(f"Unknown log level: {self._config.logging.level}")

        logging.info("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise CrawlConfigurationError("Configuration not loaded. Call load_config() first.")
        return self._config


def parse_config(config_data: Any) -> Config:
    """Build a Config from already-decoded YAML/JSON data."""
    if not isinstance(config_data, dict) or 'crawler' not in config_data:
        raise CrawlConfigurationError("Configuration must contain a 'crawler' section")

    unknown = set(config_data) - {'crawler', 'output', 'logging', 'monitoring'}
    if unknown:
        raise CrawlConfigurationError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

    return Config(
        crawler=_build_section(CrawlerConfig, 'crawler', config_data['crawler']),
        output=_build_section(OutputConfig, 'output', config_data.get('output')),
        logging=_build_section(LoggingConfig, 'logging', config_data.get('logging')),
        monitoring=_build_section(MonitoringConfig, 'monitoring', config_data.get('monitoring'))
    )


def validate_crawler_config(crawler: CrawlerConfig):
    """Validate the numeric and list values of the crawler section."""
    if not isinstance(crawler.start_pages, list):
        raise CrawlConfigurationError("start_pages must be a list of URLs")

    for url in crawler.start_pages:
        if not isinstance(url, str) or not url.strip():
            raise CrawlConfigurationError(f"Invalid start page: {url!r}")

    for name in ('parallelism', 'max_depth', 'popular_word_count', 'max_page_bytes'):
        _require_number(crawler, name, int)

    for name in ('timeout_seconds', 'request_timeout'):
        _require_number(crawler, name, (int, float))

    for name in ('ignored_urls', 'ignored_words'):
        patterns = getattr(crawler, name)
        if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
            raise CrawlConfigurationError(f"{name} must be a list of regular expressions")

    if crawler.parallelism < 1:
        raise CrawlConfigurationError("parallelism must be at least 1")

    if crawler.max_depth < 0:
        raise CrawlConfigurationError("max_depth must be non-negative")

    if crawler.timeout_seconds < 0:
        raise CrawlConfigurationError("timeout_seconds must be non-negative")

    if crawler.popular_word_count < 0:
        raise CrawlConfigurationError("popular_word_count must be non-negative")

    if crawler.request_timeout <= 0:
        raise CrawlConfigurationError("request_timeout must be positive")

    if crawler.max_page_bytes <= 0:
        raise CrawlConfigurationError("max_page_bytes must be positive")


def _require_number(section: Any, name: str, types):
    """Reject non-numeric values (and booleans) before they reach a comparison."""
    value = getattr(section, name)
    if isinstance(value, bool) or not isinstance(value, types):
        raise CrawlConfigurationError(f"{name} must be a number, got {value!r}")


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config_manager.config


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from file."""
    global config_manager
    config_manager = ConfigManager(config_path)
    return config_manager.load_config()
