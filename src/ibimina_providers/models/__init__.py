"""Data models and structures"""

from .core import (
    AdapterRegistryEntry,
    AdapterType,
    AgentMessage,
    AgentSessionRecord,
    ConfidenceWeights,
    ParsedTransaction,
    ParseResult,
    ProvidersConfig,
    SessionStoreConfig,
)

__all__ = [
    'AdapterRegistryEntry',
    'AdapterType',
    'AgentMessage',
    'AgentSessionRecord',
    'ConfidenceWeights',
    'ParsedTransaction',
    'ParseResult',
    'ProvidersConfig',
    'SessionStoreConfig',
]
