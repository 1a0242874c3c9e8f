"""Provider adapters for mobile money statements and SMS"""

from .base import ProviderAdapter, FieldExtractor
from .mtn_statement import MTNRwandaStatementAdapter
from .mtn_sms import MTNRwandaSmsAdapter

__all__ = ['ProviderAdapter', 'FieldExtractor', 'MTNRwandaStatementAdapter', 'MTNRwandaSmsAdapter']
