"""Utility functions and helpers"""

from .adapter_registry import AdapterRegistry, create_default_registry, register_default_adapters
from .config_manager import ConfigManager
from .error_handler import (
    ConfigurationError,
    ErrorCategory,
    JSONFormatter,
    ProvidersError,
    SessionStoreError,
    configure_logging,
)

__all__ = [
    'AdapterRegistry',
    'create_default_registry',
    'register_default_adapters',
    'ConfigManager',
    'ConfigurationError',
    'ErrorCategory',
    'JSONFormatter',
    'ProvidersError',
    'SessionStoreError',
    'configure_logging',
]
