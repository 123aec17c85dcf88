"""
Configuration management for the site n-gram ranker.
"""

import os
import threading
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field, asdict
from pathlib import Path
import json
import logging
from jsonschema import validate, ValidationError

from site_ngram_ranker.crawl.models import CrawlBudget
from site_ngram_ranker.fetchers.http_client import DEFAULT_USER_AGENTS
from site_ngram_ranker.utils.errors import ConfigurationError


@dataclass
class CrawlConfig:
    """Default limits of a crawl run."""
    max_pages: int = 5
    max_links_per_page: int = 5
    fetch_timeout: float = 5.0
    default_order: int = 1
    result_limit: int = 20
    max_workers: int = 5
    wait_timeout: float = 300.0

    def to_budget(self, order: Optional[int] = None) -> CrawlBudget:
        """Build a CrawlBudget from these settings for the given n-gram order."""
        return CrawlBudget(
            max_pages=self.max_pages,
            max_links_per_page=self.max_links_per_page,
            fetch_timeout=self.fetch_timeout,
            ngram_order=order if order is not None else self.default_order,
            result_limit=self.result_limit,
            max_workers=self.max_workers,
            wait_timeout=self.wait_timeout
        )


@dataclass
class FetcherConfig:
    """HTTP fetcher settings."""
    user_agents: List[str] = field(default_factory=lambda: list(DEFAULT_USER_AGENTS))
    max_content_bytes: int = 10 * 1024 * 1024
    verify_ssl: bool = True
    parser: str = "lxml"


@dataclass
class ApiConfig:
    """HTTP API settings."""
    host: str = "127.0.0.1"
    port: int = 8080
    # Upper bound for the max_pages query parameter
    max_pages_limit: int = 50


@dataclass
class AnalysisConfig:
    """Text analysis settings."""
    extra_stopwords: List[str] = field(default_factory=list)


@dataclass
class SystemConfig:
    """Main system configuration."""
    crawl: CrawlConfig = field(default_factory=CrawlConfig)
    fetcher: FetcherConfig = field(default_factory=FetcherConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_retention_days: int = 7


# Configuration schema for validation
CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "crawl": {
            "type": "object",
            "properties": {
                "max_pages": {"type": "integer", "minimum": 1, "maximum": 10000},
                "max_links_per_page": {"type": "integer", "minimum": 0, "maximum": 1000},
                "fetch_timeout": {"type": "number", "exclusiveMinimum": 0, "maximum": 300},
                "default_order": {"type": "integer", "enum": [1, 2, 3]},
                "result_limit": {"type": "integer", "minimum": 1, "maximum": 10000},
                "max_workers": {"type": "integer", "minimum": 1, "maximum": 50},
                "wait_timeout": {"type": "number", "exclusiveMinimum": 0, "maximum": 86400}
            },
            "additionalProperties": False
        },
        "fetcher": {
            "type": "object",
            "properties": {
                "user_agents": {
                    "type": "array",
                    "items": {"type": "string", "minLength": 10},
                    "minItems": 1
                },
                "max_content_bytes": {"type": "integer", "minimum": 1024},
                "verify_ssl": {"type": "boolean"},
                "parser": {"type": "string", "enum": ["lxml", "html.parser", "html5lib"]}
            },
            "additionalProperties": False
        },
        "api": {
            "type": "object",
            "properties": {
                "host": {"type": "string", "minLength": 1},
                "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                "max_pages_limit": {"type": "integer", "minimum": 1, "maximum": 10000}
            },
            "additionalProperties": False
        },
        "analysis": {
            "type": "object",
            "properties": {
                "extra_stopwords": {
                    "type": "array",
                    "items": {"type": "string", "minLength": 1}
                }
            },
            "additionalProperties": False
        },
        "log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        },
        "log_file": {"type": ["string", "null"]},
        "log_retention_days": {"type": "integer", "minimum": 1, "maximum": 365}
    },
    "additionalProperties": False
}


# Environment variable -> (section, key, converter)
ENV_OVERRIDES = {
    "NGRAM_MAX_PAGES": ("crawl", "max_pages", int),
    "NGRAM_MAX_LINKS": ("crawl", "max_links_per_page", int),
    "NGRAM_FETCH_TIMEOUT": ("crawl", "fetch_timeout", float),
    "NGRAM_ORDER": ("crawl", "default_order", int),
    "NGRAM_RESULT_LIMIT": ("crawl", "result_limit", int),
    "NGRAM_WORKERS": ("crawl", "max_workers", int),
    "NGRAM_WAIT_TIMEOUT": ("crawl", "wait_timeout", float),
    "NGRAM_API_HOST": ("api", "host", str),
    "NGRAM_API_PORT": ("api", "port", int),
    "NGRAM_LOG_LEVEL": (None, "log_level", str.upper),
    "NGRAM_LOG_FILE": (None, "log_file", str),
}


class ConfigManager:
    """Configuration manager with schema validation and change detection."""

    def __init__(self, config_path: str = "config.json", env_file: str = ".env"):
        self.config_path = Path(config_path)
        self.env_file = Path(env_file)
        self._config: Optional[SystemConfig] = None
        self._last_modified: Optional[float] = None
        self._lock = threading.RLock()

    def validate_config(self, config_data: Dict[str, Any]) -> None:
        """Validate configuration data against schema."""
        try:
            validate(instance=config_data, schema=CONFIG_SCHEMA)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e.message}",
                {"path": list(e.absolute_path)}
            ) from e

    def load_config(self) -> SystemConfig:
        """Load configuration from file or environment variables."""
        with self._lock:
            if self.config_path.exists():
                current_modified = self.config_path.stat().st_mtime
                if self._config is None or current_modified != self._last_modified:
                    self._load_from_file()
                    self._last_modified = current_modified
            elif self._config is None:
                self._load_from_env()

            return self._config

    def _load_from_file(self) -> None:
        """Load configuration from JSON file with validation."""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Failed to read config file {self.config_path}: {e}",
                {"config_path": str(self.config_path)}
            ) from e

        self.validate_config(config_data)

        config = self._dict_to_config(config_data)
        self._override_with_env_vars(config)
        self._config = config

        logging.info(f"Configuration loaded and validated from {self.config_path}")

    def _load_from_env(self) -> None:
        """Load configuration from defaults plus environment variables."""
        config = SystemConfig()
        self._override_with_env_vars(config)
        self._config = config

        logging.info("Configuration loaded from environment variables")

    def _load_env_file(self) -> None:
        """Export KEY=VALUE lines of the .env file into os.environ."""
        if not self.env_file.exists():
            return

        try:
            with open(self.env_file, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        os.environ[key.strip()] = value.strip()
            logging.info(f"Loaded environment variables from {self.env_file}")
        except OSError as e:
            logging.warning(f"Failed to load {self.env_file}: {e}")

    def _override_with_env_vars(self, config: SystemConfig) -> None:
        """Override configuration with NGRAM_* environment variables."""
        self._load_env_file()

        for env_name, (section, key, convert) in ENV_OVERRIDES.items():
            raw_value = os.getenv(env_name)
            if raw_value is None or raw_value.strip() == "":
                continue

            try:
                value = convert(raw_value.strip())
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {env_name}: {raw_value!r}",
                    {"variable": env_name}
                ) from e

            target = getattr(config, section) if section else config
            setattr(target, key, value)

        extra_stopwords = os.getenv("NGRAM_EXTRA_STOPWORDS")
        if extra_stopwords:
            # Comma separated
            config.analysis.extra_stopwords = [
                word.strip() for word in extra_stopwords.split(',') if word.strip()
            ]

        self.validate_config(self._config_to_dict(config))

    def _dict_to_config(self, data: Dict[str, Any]) -> SystemConfig:
        """Convert dictionary to SystemConfig object."""
        config = SystemConfig()

        if "crawl" in data:
            config.crawl = CrawlConfig(**data["crawl"])

        if "fetcher" in data:
            config.fetcher = FetcherConfig(**data["fetcher"])

        if "api" in data:
            config.api = ApiConfig(**data["api"])

        if "analysis" in data:
            config.analysis = AnalysisConfig(**data["analysis"])

        config.log_level = data.get("log_level", config.log_level)
        config.log_file = data.get("log_file", config.log_file)
        config.log_retention_days = data.get("log_retention_days", config.log_retention_days)

        return config

    @staticmethod
    def _config_to_dict(config: SystemConfig) -> Dict[str, Any]:
        return {
            "crawl": asdict(config.crawl),
            "fetcher": asdict(config.fetcher),
            "api": asdict(config.api),
            "analysis": asdict(config.analysis),
            "log_level": config.log_level,
            "log_file": config.log_file,
            "log_retention_days": config.log_retention_days
        }

    def export_config(self) -> Dict[str, Any]:
        """Export current configuration as dictionary."""
        with self._lock:
            if not self._config:
                return {}
            return self._config_to_dict(self._config)

    def save_config(self, config_path: Optional[str] = None) -> None:
        """Save current configuration to file."""
        with self._lock:
            if not self._config:
                raise ConfigurationError("No configuration loaded to save")

            save_path = Path(config_path) if config_path else self.config_path
            config_dict = self.export_config()

            # Validate before saving
            self.validate_config(config_dict)

            with open(save_path, 'w', encoding='utf-8') as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)

            logging.info(f"Configuration saved to {save_path}")

    def reset(self) -> None:
        """Forget the loaded configuration so the next load starts fresh."""
        with self._lock:
            self._config = None
            self._last_modified = None


# Global config manager instance
config_manager = ConfigManager(os.getenv("NGRAM_CONFIG", "config.json"))


def get_config() -> SystemConfig:
    """Get the current system configuration."""
    return config_manager.load_config()

