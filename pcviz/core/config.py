"""
Configuration Management for PCViz

This module provides environment-based configuration management with validation
and support for multiple deployment environments.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from enum import Enum
import logging

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_IHOP_URL = "http://www.ihop-net.org/UniPub/iHOP/"
DEFAULT_PATHWAYCOMMONS_URL = "https://www.pathwaycommons.org/pc2"


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Config:
    """
    Configuration manager with environment-based settings.

    Supports configuration via:
    1. Environment variables
    2. Configuration files (JSON or YAML)
    3. Default values
    """

    def __init__(self, env: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            env: Environment name (development, staging, production, testing)
        """
        self.env = Environment(env or os.getenv('PCVIZ_ENV', 'development'))
        self._config = self._load_config()
        self._validate()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from environment."""
        config = {
            'environment': self.env.value,

            # External sources
            'ihop_url': os.getenv('IHOP_URL', DEFAULT_IHOP_URL),
            'pathwaycommons_url': os.getenv('PATHWAYCOMMONS_URL', DEFAULT_PATHWAYCOMMONS_URL),
            'http_timeout': float(os.getenv('HTTP_TIMEOUT', '30')),
            'user_agent': os.getenv('PCVIZ_USER_AGENT', 'pcviz/0.1'),
            'query_max_retries': int(os.getenv('QUERY_MAX_RETRIES', '3')),
            'max_concurrent_scrapes': int(os.getenv('MAX_CONCURRENT_SCRAPES', '8')),

            # Co-citation thresholds
            'cocitation_min_edge': int(os.getenv('COCITATION_MIN_EDGE', '3')),
            'cocitation_min_node': int(os.getenv('COCITATION_MIN_NODE', '5')),

            # Local data
            'precalculated_folder': os.getenv('PRECALCULATED_FOLDER', 'precalculated'),
            'gene_names_file': os.getenv('GENE_NAMES_FILE', ''),

            # Logging Configuration
            'log_level': os.getenv('LOG_LEVEL', 'INFO'),
            'log_file': os.getenv('LOG_FILE', ''),
            'log_format': os.getenv(
                'LOG_FORMAT',
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ),
            'structured_logging': os.getenv('STRUCTURED_LOGGING', 'false').lower() == 'true',
        }

        if self.env == Environment.PRODUCTION:
            config.update(self._get_production_overrides())
        elif self.env == Environment.TESTING:
            config.update(self._get_testing_overrides())

        return config

    def _get_production_overrides(self) -> Dict[str, Any]:
        """Get production-specific configuration overrides."""
        return {
            'log_level': 'WARNING',
            'structured_logging': True,
        }

    def _get_testing_overrides(self) -> Dict[str, Any]:
        """Get testing-specific configuration overrides."""
        return {
            'log_level': 'DEBUG',
            'http_timeout': 5.0,
            'query_max_retries': 1,
        }

    def _validate(self):
        """Validate configuration parameters."""
        errors = []

        for key in ('ihop_url', 'pathwaycommons_url'):
            if not str(self._config[key]).startswith(('http://', 'https://')):
                errors.append((key, f"{key} must be an http(s) URL"))

        if self._config['http_timeout'] <= 0:
            errors.append(('http_timeout', "http_timeout must be positive"))

        if self._config['query_max_retries'] < 1:
            errors.append(('query_max_retries', "query_max_retries must be at least 1"))

        if self._config['max_concurrent_scrapes'] < 1:
            errors.append(('max_concurrent_scrapes', "max_concurrent_scrapes must be at least 1"))

        for key in ('cocitation_min_edge', 'cocitation_min_node'):
            if self._config[key] < 0:
                errors.append((key, f"{key} must not be negative"))

        if not hasattr(logging, str(self._config['log_level']).upper()):
            errors.append(('log_level', f"Unknown log level: {self._config['log_level']}"))

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for _, e in errors)
            raise ConfigurationError(errors[0][0], error_msg)

        logger.debug(f"Configuration validated for {self.env.value} environment")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Get configuration value using dict-like access."""
        return self._config[key]

    def __getattr__(self, key: str) -> Any:
        """Get configuration value using attribute access."""
        if key.startswith('_'):
            return object.__getattribute__(self, key)
        return self._config.get(key)

    def update(self, values: Dict[str, Any]) -> None:
        """Apply overrides and re-validate."""
        self._config.update(values)
        self._validate()

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary."""
        return self._config.copy()

    def save_to_file(self, filepath: str):
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self._config, f, indent=2)
        logger.info(f"Configuration saved to {filepath}")

    @classmethod
    def from_file(cls, filepath: str, env: Optional[str] = None) -> 'Config':
        """Load configuration overrides from a JSON or YAML file."""
        path = Path(filepath)
        with open(path, 'r') as f:
            if path.suffix.lower() in ('.yaml', '.yml'):
                config_data = yaml.safe_load(f) or {}
            else:
                config_data = json.load(f)

        if not isinstance(config_data, dict):
            raise ConfigurationError('*', "Configuration file must contain a mapping", str(path))

        instance = cls(env)
        try:
            instance.update(config_data)
        except ConfigurationError as e:
            raise ConfigurationError(e.config_key, e.message, str(path)) from e
        return instance


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Reset global configuration (useful for testing)."""
    global _config
    _config = None


def configure_logging(config: Optional[Config] = None):
    """Configure logging based on configuration."""
    if config is None:
        config = get_config()

    if config.structured_logging:
        from .logging_config import setup_structured_logging
        setup_structured_logging(config.log_level, config.log_file or None)
        return

    handlers = [logging.StreamHandler()]
    if config.log_file:
        Path(config.log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.log_file))

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        format=config.log_format,
        handlers=handlers
    )

    logger.info(f"Logging configured: level={config.log_level}, file={config.log_file or '-'}")
