"""Abstract base classes and shared field extraction for provider adapters."""

import re
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence

from ..models.core import (
    AdapterType,
    ConfidenceWeights,
    ParsedTransaction,
    ParseResult,
    ProvidersConfig,
)


# Dotted reference linking a payment to district/group/member,
# e.g. RWA.NYA.GAS.TWIZ.001 (current) or NYA.GAS.TWIZ.001 (legacy)
REFERENCE_PATTERN = re.compile(
    r'\b([A-Z]{3}\.[A-Z0-9]{3}\.[A-Z0-9]{3,4}\.[A-Z0-9]{3,4}\.[0-9]{3})\b', re.IGNORECASE
)
LEGACY_REFERENCE_PATTERN = re.compile(
    r'\b([A-Z]{3}\.[A-Z0-9]{3,4}\.[A-Z0-9]{3,4}\.[0-9]{3})\b', re.IGNORECASE
)


class ProviderAdapter(ABC):
    """Abstract base class for all provider adapters.

    Subclasses declare the country/provider/type they serve as class
    attributes so the registry can also discover them from plugin files.
    """

    name: str = ""
    country_code: str = ""
    provider_name: str = ""
    adapter_type: AdapterType = AdapterType.STATEMENT
    priority: int = 0

    required_headers = ('date', 'transaction', 'amount')

    def __init__(self, config: Optional[ProvidersConfig] = None,
                 weights: Optional[ConfidenceWeights] = None):
        self.config = config or ProvidersConfig()
        self.weights = weights or self.default_weights()
        self.extractor = FieldExtractor(self.config)

    def default_weights(self) -> ConfidenceWeights:
        """Return the configured confidence weights for this adapter family"""
        if self.adapter_type == AdapterType.SMS:
            return self.config.sms_confidence
        return self.config.statement_confidence

    @abstractmethod
    def can_handle(self, text: str) -> bool:
        """Cheap check deciding whether this adapter should try the input"""
        pass

    @abstractmethod
    def parse_row(self, fields: Sequence[str]) -> ParseResult:
        """Parse an already tokenized row"""
        pass

    @abstractmethod
    def parse(self, text: str) -> ParseResult:
        """Parse raw text"""
        pass

    def validate_headers(self, headers: List[str]) -> bool:
        """Loose, case-insensitive substring match against the required headers"""
        normalized = [str(h).lower().strip() for h in headers]
        return all(
            any(required in header for header in normalized)
            for required in self.required_headers
        )

    def calculate_confidence(self, transaction: ParsedTransaction) -> float:
        return self.weights.score(transaction)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.country_code}/{self.provider_name}/{self.adapter_type.value})"


class FieldExtractor:
    """Normalizes amounts, timestamps, reference tokens and phone numbers"""

    def __init__(self, config: ProvidersConfig, country_prefix: str = "250",
                 mobile_prefix: str = "7", national_digits: int = 9):
        self.config = config
        self.country_prefix = country_prefix
        self._international = re.compile(rf'\b({country_prefix}\d{{{national_digits}}})\b')
        self._local = re.compile(rf'\b(0{mobile_prefix}\d{{{national_digits - 1}}})\b')

    def normalize_amount(self, amount_str: Optional[str]) -> Optional[Decimal]:
        """Convert an amount such as "RWF 5,000" to a non-negative Decimal.

        Sign is dropped: direction is carried by the transaction type.
        Returns None when no number can be read.
        """
        if amount_str is None or not str(amount_str).strip():
            return None

        # Remove currency codes, thousands separators and whitespace
        cleaned = re.sub(r'[A-Za-z,\s]', '', str(amount_str))
        cleaned = re.sub(r'[^\d.\-]', '', cleaned)

        match = re.match(r'-?(\d+(?:\.\d*)?|\.\d+)', cleaned)
        if not match:
            return None

        try:
            return Decimal(match.group(1)).copy_abs()
        except InvalidOperation:
            return None

    def normalize_timestamp(self, date_str: str, time_str: str = "",
                            formats: Optional[List[str]] = None) -> Optional[datetime]:
        """Combine a date and a time column into a datetime.

        ISO "dateTtime" is tried first, then "date time" against the
        configured formats. Returns None if nothing matches.
        """
        date_str = (date_str or "").strip()
        time_str = (time_str or "").strip()
        if not date_str:
            return None

        if '-' in date_str:
            combined = f"{date_str}T{time_str}" if time_str else date_str
            try:
                return datetime.fromisoformat(combined)
            except ValueError:
                pass

        combined = f"{date_str} {time_str}".strip()
        for fmt in formats or self.config.date_formats:
            try:
                return datetime.strptime(combined, fmt)
            except ValueError:
                continue

        return None

    def extract_reference(self, text: str) -> Optional[str]:
        """Find a dotted reference token, preferring the 5-segment form"""
        if not text:
            return None

        match = REFERENCE_PATTERN.search(text)
        if match:
            return match.group(1)

        legacy_match = LEGACY_REFERENCE_PATTERN.search(text)
        if legacy_match:
            return legacy_match.group(1)
        return None

    def extract_msisdn(self, text: str) -> Optional[str]:
        """Find a payer phone number and return it in international form"""
        if not text:
            return None

        intl_match = self._international.search(text)
        if intl_match:
            return intl_match.group(1)

        # 07XXXXXXXX -> 2507XXXXXXXX
        local_match = self._local.search(text)
        if local_match:
            return f"{self.country_prefix}{local_match.group(1)[1:]}"
        return None
