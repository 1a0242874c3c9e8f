"""Configuration management for adapters and the session store."""

import json
import logging
import os
from typing import Any, Dict, Optional

import yaml

from ..models.core import ConfidenceWeights, ProvidersConfig, SessionStoreConfig
from .error_handler import ConfigurationError


logger = logging.getLogger(__name__)

SUPABASE_KEY_ENV = "SUPABASE_KEY"
CONFIDENCE_FIELDS = ('base', 'transaction_id', 'reference', 'payer', 'min_transaction_id_length')
SESSION_STORE_FIELDS = ('driver', 'url', 'key', 'table', 'namespace', 'ttl_seconds')


class ConfigManager:
    """Loads and validates provider configuration"""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager

        Args:
            config_path: Path to configuration file. If None, searches for default locations.
        """
        self.config_path = config_path
        self._config_cache: Optional[ProvidersConfig] = None

    def load_config(self, force_reload: bool = False) -> ProvidersConfig:
        """Load configuration from file or return defaults

        Args:
            force_reload: Force reload from file even if cached

        Raises:
            ConfigurationError: If the configuration file is invalid
        """
        if self._config_cache is not None and not force_reload:
            return self._config_cache

        config_data = self._load_config_file()
        defaults = ProvidersConfig()

        statement_confidence = self._build_weights(
            defaults.statement_confidence, config_data.get('confidence', {}).get('statement'))
        sms_confidence = self._build_weights(
            defaults.sms_confidence, config_data.get('confidence', {}).get('sms'))

        store_data = dict(config_data.get('session_store') or {})
        if not store_data.get('key') and os.environ.get(SUPABASE_KEY_ENV):
            store_data['key'] = os.environ[SUPABASE_KEY_ENV]

        self._config_cache = ProvidersConfig(
            date_formats=config_data.get('date_formats'),
            plugin_directories=config_data.get('plugin_directories'),
            statement_confidence=statement_confidence,
            sms_confidence=sms_confidence,
            session_store=SessionStoreConfig(**store_data),
        )

        logger.info(f"Configuration loaded successfully from {self.config_path or 'defaults'}")
        return self._config_cache

    def _build_weights(self, default: ConfidenceWeights,
                       overrides: Optional[Dict[str, Any]]) -> ConfidenceWeights:
        if not overrides:
            return default
        values = {name: getattr(default, name) for name in CONFIDENCE_FIELDS}
        values.update(overrides)
        return ConfidenceWeights(**values)

    def _load_config_file(self) -> Dict[str, Any]:
        """Load configuration from file

        Returns:
            Dictionary with configuration data or empty dict if no file found
        """
        config_file = self._find_config_file()

        if not config_file or not os.path.exists(config_file):
            logger.info("No configuration file found, using defaults")
            return {}

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if config_file.endswith('.json'):
                    data = json.load(f)
                elif config_file.endswith(('.yml', '.yaml')):
                    data = yaml.safe_load(f) or {}
                else:
                    raise ConfigurationError(f"Unsupported config file format: {config_file}")
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Error reading configuration file {config_file}: {e}") from e

        self._validate_config_data(data)
        self.config_path = config_file
        logger.info(f"Configuration loaded from {config_file}")
        return data

    def _find_config_file(self) -> Optional[str]:
        if self.config_path:
            return self.config_path

        search_paths = [
            'providers_config.json',
            'providers_config.yml',
            'providers_config.yaml',
            'config/providers_config.json',
            'config/providers_config.yml',
            'config/providers_config.yaml',
            os.path.expanduser('~/.ibimina_providers/config.json'),
            os.path.expanduser('~/.ibimina_providers/config.yml'),
        ]

        for path in search_paths:
            if os.path.exists(path):
                return path

        return None

    def _validate_config_data(self, data: Any) -> None:
        """Validate configuration data structure

        Raises:
            ConfigurationError: If configuration data is invalid
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a dictionary")

        for list_key in ('date_formats', 'plugin_directories'):
            if list_key in data:
                if not isinstance(data[list_key], list):
                    raise ConfigurationError(f"{list_key} must be a list")
                if not all(isinstance(item, str) for item in data[list_key]):
                    raise ConfigurationError(f"All {list_key} entries must be strings")

        confidence = data.get('confidence', {})
        if not isinstance(confidence, dict):
            raise ConfigurationError("confidence must be a dictionary")
        for family, weights in confidence.items():
            if family not in ('statement', 'sms'):
                raise ConfigurationError(f"Unknown confidence family: {family}")
            if not isinstance(weights, dict):
                raise ConfigurationError(f"confidence.{family} must be a dictionary")
            for name, value in weights.items():
                if name not in CONFIDENCE_FIELDS:
                    raise ConfigurationError(f"Unknown confidence weight: {family}.{name}")
                if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                    raise ConfigurationError(f"confidence.{family}.{name} must be a non-negative number")

        store = data.get('session_store', {})
        if not isinstance(store, dict):
            raise ConfigurationError("session_store must be a dictionary")
        for name in store:
            if name not in SESSION_STORE_FIELDS:
                raise ConfigurationError(f"Unknown session_store option: {name}")
        ttl = store.get('ttl_seconds')
        if ttl is not None and (not isinstance(ttl, int) or isinstance(ttl, bool) or ttl <= 0):
            raise ConfigurationError("session_store.ttl_seconds must be a positive integer")

    def save_config_template(self, output_path: str) -> None:
        """Generate and save a configuration file template

        Args:
            output_path: Path where to save the template
        """
        defaults = ProvidersConfig()
        template = {
            "date_formats": defaults.date_formats,
            "plugin_directories": ["plugins", "~/.ibimina_providers/plugins"],
            "confidence": {
                "statement": {name: getattr(defaults.statement_confidence, name) for name in CONFIDENCE_FIELDS},
                "sms": {name: getattr(defaults.sms_confidence, name) for name in CONFIDENCE_FIELDS},
            },
            "session_store": {
                "driver": "cache",
                "url": "redis://localhost:6379/0",
                "namespace": "ibimina:agent:sessions",
                "ttl_seconds": 1800,
            },
        }

        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            if output_path.endswith(('.yml', '.yaml')):
                yaml.dump(template, f, default_flow_style=False, indent=2)
            else:
                json.dump(template, f, indent=2)

        logger.info(f"Configuration template saved to {output_path}")

    def reset_config(self) -> None:
        """Reset configuration cache, forcing reload on next access"""
        self._config_cache = None
        logger.debug("Configuration cache reset")
