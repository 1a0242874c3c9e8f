"""MTN Rwanda mobile money statement adapter."""

import logging
import re
from typing import List, Sequence

from .base import ProviderAdapter
from ..models.core import AdapterType, ParsedTransaction, ParseResult


logger = logging.getLogger(__name__)

ISO_DATE_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2}')
FIELD_DELIMITERS = re.compile(r'[,\t;|]')


class MTNRwandaStatementAdapter(ProviderAdapter):
    """Parser for rows of MTN Rwanda mobile money statement exports.

    Expected column order: Date, Time, Transaction ID, Details, Amount,
    Balance, Status. Balance and Status are optional.
    """

    name = "MTN Rwanda"
    country_code = "RWA"
    provider_name = "MTN Rwanda"
    adapter_type = AdapterType.STATEMENT
    priority = 100

    min_columns = 5

    def get_expected_headers(self) -> List[str]:
        """Return the column headers found in MTN Rwanda exports"""
        return ["Date", "Time", "Transaction ID", "Details", "Amount", "Balance", "Status"]

    def can_handle(self, text: str) -> bool:
        lower = text.lower()
        return 'mtn' in lower or 'mobile money' in lower or bool(ISO_DATE_PATTERN.search(text))

    def parse(self, text: str) -> ParseResult:
        """Split on common delimiters and parse as a row"""
        return self.parse_row(FIELD_DELIMITERS.split(text))

    def parse_row(self, fields: Sequence[str]) -> ParseResult:
        try:
            return self._parse_fields(list(fields))
        except Exception as e:
            logger.debug(f"Unexpected error parsing statement row {fields!r}: {e}")
            return ParseResult.fail(str(e) or "Parse error", 0.0)

    def _parse_fields(self, fields: List[str]) -> ParseResult:
        if len(fields) < self.min_columns:
            return ParseResult.fail("Insufficient columns in row", 0.0)

        cells = [str(cell).strip() if cell is not None else "" for cell in fields]
        cells += [""] * (7 - len(cells))
        date, time, txn_id, details, amount_str, balance_str, status = cells[:7]

        amount = self.extractor.normalize_amount(amount_str)
        if amount is None:
            return ParseResult.fail("Could not parse amount", 0.3)

        timestamp = self.extractor.normalize_timestamp(date, time)
        if timestamp is None:
            return ParseResult.fail("Could not parse timestamp", 0.5)

        transaction = ParsedTransaction(
            amount=amount,
            transaction_id=txn_id,
            timestamp=timestamp,
            payer_number=self.extractor.extract_msisdn(details),
            reference_token=self.extractor.extract_reference(details),
            balance=self.extractor.normalize_amount(balance_str),
            raw_data={
                'date': date,
                'time': time,
                'details': details,
                'status': status or None,
            },
        )

        return ParseResult.ok(transaction, self.calculate_confidence(transaction))
