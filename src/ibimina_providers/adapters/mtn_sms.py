"""MTN Rwanda mobile money SMS adapter."""

import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence

from .base import ProviderAdapter
from ..models.core import AdapterType, ParsedTransaction, ParseResult


logger = logging.getLogger(__name__)

AMOUNT_PATTERNS = [
    re.compile(r'RWF\s*([\d,]+(?:\.\d{2})?)', re.IGNORECASE),
    re.compile(r'([\d,]+(?:\.\d{2})?)\s*RWF', re.IGNORECASE),
    re.compile(r'amount[:\s]*([\d,]+(?:\.\d{2})?)', re.IGNORECASE),
]

TXN_ID_PATTERNS = [
    re.compile(r'transaction\s+id[:\s]+([A-Z0-9.]+)', re.IGNORECASE),
    re.compile(r'txn\s*id[:\s]+([A-Z0-9.]+)', re.IGNORECASE),
    re.compile(r'ref[:\s]+([A-Z0-9.]+)', re.IGNORECASE),
]

LABELLED_REFERENCE_PATTERN = re.compile(
    r'reference[:\s]+([A-Z]{3}\.[A-Z0-9]{3}\.[A-Z0-9]{3,4}\.[A-Z0-9]{3,4}\.[0-9]{3})', re.IGNORECASE
)
BALANCE_PATTERN = re.compile(r'balance[:\s]+RWF\s*([\d,]+(?:\.\d{2})?)', re.IGNORECASE)
DATE_PATTERN = re.compile(
    r'date[:\s]+(\d{1,2}/\d{1,2}/\d{4})\s+(\d{1,2}:\d{2}(?::\d{2})?(?:\s*[AP]M)?)', re.IGNORECASE
)

MIN_TXN_ID_LENGTH = 6


class MTNRwandaSmsAdapter(ProviderAdapter):
    """Parser for MTN Rwanda mobile money confirmation messages.

    Example message::

        You have received RWF 5,000 from 250788123456.
        Transaction ID: MP240123.1234.A12345.
        Reference: RWA.NYA.GAS.TWIZ.001.
        Balance: RWF 15,000
    """

    name = "MTN Rwanda SMS"
    country_code = "RWA"
    provider_name = "MTN Rwanda"
    adapter_type = AdapterType.SMS
    priority = 100

    def get_sender_patterns(self) -> List[str]:
        """Return known MTN Rwanda SMS sender ids"""
        return ['MTN', 'MoMo', 'MTN-MM', 'MTN MOBILE MONEY']

    def can_handle(self, text: str) -> bool:
        lower = text.lower()
        return (
            ('mtn' in lower or 'momo' in lower) and
            any(keyword in lower for keyword in ('received', 'sent', 'rwf', 'confirmed'))
        )

    def validate_headers(self, headers: List[str]) -> bool:
        # SMS bodies never come with a header row
        return False

    def parse_row(self, fields: Sequence[str]) -> ParseResult:
        return self.parse(' '.join(str(field) for field in fields if field))

    def parse(self, text: str) -> ParseResult:
        return self.parse_sms(text)

    def parse_sms(self, sms_text: str) -> ParseResult:
        """Parse an SMS body into a transaction"""
        try:
            return self._parse_text(sms_text)
        except Exception as e:
            logger.debug(f"Unexpected error parsing SMS: {e}")
            return ParseResult.fail(str(e) or "SMS parse error", 0.0)

    def _parse_text(self, sms_text: str) -> ParseResult:
        amount = self._extract_amount(sms_text)
        if amount is None:
            return ParseResult.fail("Could not extract amount from SMS", 0.2)

        txn_id = self._extract_txn_id(sms_text)
        if not txn_id:
            return ParseResult.fail("Could not extract transaction ID from SMS", 0.4)

        parsed_at = datetime.now()
        timestamp = self._extract_timestamp(sms_text) or parsed_at

        transaction = ParsedTransaction(
            amount=amount,
            transaction_id=txn_id,
            timestamp=timestamp,
            payer_number=self.extractor.extract_msisdn(sms_text),
            reference_token=self._extract_reference(sms_text),
            balance=self._extract_balance(sms_text),
            raw_data={
                'sms_text': sms_text,
                'parsed_at': parsed_at.isoformat(),
            },
        )

        return ParseResult.ok(transaction, self.calculate_confidence(transaction))

    def _extract_amount(self, text: str) -> Optional[Decimal]:
        for pattern in AMOUNT_PATTERNS:
            match = pattern.search(text)
            if match:
                value = _to_decimal(match.group(1))
                if value is not None:
                    return value
        return None

    def _extract_txn_id(self, text: str) -> Optional[str]:
        for pattern in TXN_ID_PATTERNS:
            match = pattern.search(text)
            if match:
                # Sentence punctuation is not part of the id
                candidate = match.group(1).rstrip('.')
                if len(candidate) >= MIN_TXN_ID_LENGTH:
                    return candidate
        return None

    def _extract_reference(self, text: str) -> Optional[str]:
        match = LABELLED_REFERENCE_PATTERN.search(text)
        if match:
            return match.group(1)
        # Unlabelled 5-segment references, then the legacy 4-segment form
        return self.extractor.extract_reference(text)

    def _extract_balance(self, text: str) -> Optional[Decimal]:
        match = BALANCE_PATTERN.search(text)
        if match:
            return _to_decimal(match.group(1))
        return None

    def _extract_timestamp(self, text: str) -> Optional[datetime]:
        match = DATE_PATTERN.search(text)
        if match:
            return self.extractor.normalize_timestamp(match.group(1), match.group(2).upper())
        return None


def _to_decimal(value: str) -> Optional[Decimal]:
    cleaned = value.replace(',', '')
    if not cleaned:
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None
