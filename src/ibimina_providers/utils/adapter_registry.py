"""Adapter registry with confidence-based auto-detection and plugin loading."""

import importlib.util
import inspect
import logging
import os
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from ..adapters.base import ProviderAdapter
from ..models.core import AdapterRegistryEntry, AdapterType, ParseResult, ProvidersConfig


logger = logging.getLogger(__name__)

NO_MATCH_ERROR = "No adapter could parse the input"


class AdapterRegistry:
    """Holds registered adapters indexed by country, provider and type.

    Entries are kept sorted by priority (highest first). Priority never
    changes which result wins, it only decides evaluation order and
    therefore breaks ties between equal confidences.
    """

    def __init__(self, config: Optional[ProvidersConfig] = None):
        self.config = config or ProvidersConfig()
        self._entries: List[AdapterRegistryEntry] = []

    def register(self, entry: AdapterRegistryEntry) -> None:
        """Register an adapter entry

        Args:
            entry: Entry binding an adapter to country/provider/type
        """
        if not isinstance(entry.adapter, ProviderAdapter):
            raise ValueError(f"Adapter must inherit from ProviderAdapter: {entry.adapter!r}")

        self._entries.append(entry)
        # Stable sort keeps registration order among equal priorities
        self._entries.sort(key=lambda e: e.priority, reverse=True)
        logger.debug(
            f"Registered adapter: {entry.country_code}/{entry.provider_name}/"
            f"{entry.adapter_type.value} (priority: {entry.priority})"
        )

    def register_adapter(self, adapter: ProviderAdapter,
                         adapter_type: Union[AdapterType, str],
                         country_code: str, provider_name: str,
                         priority: int = 0) -> AdapterRegistryEntry:
        """Build an entry for an adapter and register it

        Returns:
            The registered entry
        """
        entry = AdapterRegistryEntry(
            adapter=adapter,
            adapter_type=AdapterType(adapter_type),
            country_code=country_code,
            provider_name=provider_name,
            priority=priority,
        )
        self.register(entry)
        return entry

    def get_adapter(self, country_code: str, provider_name: str,
                    adapter_type: Union[AdapterType, str]) -> Optional[ProviderAdapter]:
        """Exact lookup, case-insensitive on country code and provider name"""
        adapter_type = AdapterType(adapter_type)
        for entry in self._entries:
            if (entry.country_code.upper() == country_code.upper() and
                    entry.provider_name.lower() == provider_name.lower() and
                    entry.adapter_type == adapter_type):
                return entry.adapter
        return None

    def get_adapters_by_country(self, country_code: str) -> List[AdapterRegistryEntry]:
        return [e for e in self._entries if e.country_code.upper() == country_code.upper()]

    def get_adapters_by_type(self, adapter_type: Union[AdapterType, str]) -> List[AdapterRegistryEntry]:
        adapter_type = AdapterType(adapter_type)
        return [e for e in self._entries if e.adapter_type == adapter_type]

    def get_all(self) -> List[AdapterRegistryEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries = []

    def __len__(self) -> int:
        return len(self._entries)

    def auto_parse(self, text: str,
                   adapter_type: Optional[Union[AdapterType, str]] = None) -> ParseResult:
        """Try every candidate adapter and keep the most confident success

        Args:
            text: Raw input (statement line or SMS body)
            adapter_type: Restrict candidates to one adapter type

        Returns:
            Best successful result, or a failure with confidence 0
        """
        candidates = self.get_adapters_by_type(adapter_type) if adapter_type else self._entries

        best: Optional[ParseResult] = None
        for entry in candidates:
            adapter = entry.adapter
            if not adapter.can_handle(text):
                continue

            try:
                result = adapter.parse(text)
            except Exception as e:
                logger.error(f"Error parsing input with {adapter!r}: {e}")
                continue

            if not result.success:
                logger.debug(f"{adapter!r} rejected input: {result.error} ({result.confidence})")
                continue

            if best is None or result.confidence > best.confidence:
                best = result

        if best is not None:
            return best

        return ParseResult.fail(NO_MATCH_ERROR, 0.0)

    def load_plugins(self, plugin_directories: Optional[Iterable[str]] = None) -> int:
        """Load adapter plugins from directories

        Every concrete ProviderAdapter subclass that declares a country code
        and provider name is instantiated and registered.

        Args:
            plugin_directories: Directories to scan, defaults to configured ones

        Returns:
            Number of adapters registered
        """
        directories = plugin_directories
        if directories is None:
            directories = self.config.plugin_directories or []

        loaded = 0
        for plugin_dir in directories:
            loaded += self._load_plugins_from_directory(plugin_dir)
        return loaded

    def _load_plugins_from_directory(self, plugin_dir: str) -> int:
        plugin_dir = os.path.expanduser(plugin_dir)

        if not os.path.exists(plugin_dir):
            logger.debug(f"Plugin directory does not exist: {plugin_dir}")
            return 0

        if not os.path.isdir(plugin_dir):
            logger.warning(f"Plugin path is not a directory: {plugin_dir}")
            return 0

        logger.info(f"Loading adapter plugins from: {plugin_dir}")

        loaded = 0
        for file_path in sorted(Path(plugin_dir).rglob("*.py")):
            if file_path.name.startswith('_'):
                continue  # Skip private modules
            loaded += self._load_plugin_from_file(file_path)
        return loaded

    def _load_plugin_from_file(self, file_path: Path) -> int:
        module_name = f"ibimina_plugin_{file_path.stem}_{abs(hash(str(file_path)))}"

        try:
            spec = importlib.util.spec_from_file_location(module_name, file_path)
            if spec is None or spec.loader is None:
                logger.warning(f"Could not create module spec for {file_path}")
                return 0

            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
        except Exception as e:
            logger.error(f"Error loading plugin from {file_path}: {e}")
            return 0

        return self._discover_adapters_in_module(module, str(file_path))

    def _discover_adapters_in_module(self, module: Any, file_path: str) -> int:
        loaded = 0
        for name, obj in inspect.getmembers(module, inspect.isclass):
            if (not issubclass(obj, ProviderAdapter) or
                    inspect.isabstract(obj) or
                    obj.__module__ != module.__name__):
                continue  # Imported base classes and built-ins are not plugins

            if not obj.country_code or not obj.provider_name:
                logger.warning(f"Plugin adapter {name} in {file_path} does not declare country/provider")
                continue

            try:
                adapter = obj(self.config)
            except Exception as e:
                logger.error(f"Error instantiating adapter {name} from {file_path}: {e}")
                continue

            self.register_adapter(adapter, obj.adapter_type, obj.country_code,
                                  obj.provider_name, obj.priority)
            logger.info(f"Loaded adapter plugin '{name}' from {file_path}")
            loaded += 1
        return loaded


def register_default_adapters(registry: AdapterRegistry,
                              config: Optional[ProvidersConfig] = None) -> None:
    """Register the shipped country/provider adapters"""
    from ..adapters.mtn_sms import MTNRwandaSmsAdapter
    from ..adapters.mtn_statement import MTNRwandaStatementAdapter

    config = config or registry.config
    for adapter_class in (MTNRwandaStatementAdapter, MTNRwandaSmsAdapter):
        registry.register_adapter(
            adapter_class(config),
            adapter_class.adapter_type,
            adapter_class.country_code,
            adapter_class.provider_name,
            adapter_class.priority,
        )

    logger.debug("Default adapters registered")


def create_default_registry(config: Optional[ProvidersConfig] = None) -> AdapterRegistry:
    """Build a registry with default adapters and configured plugins"""
    registry = AdapterRegistry(config)
    register_default_adapters(registry)
    registry.load_plugins()
    return registry
