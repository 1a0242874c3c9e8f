"""Example adapter plugin: Airtel Money Rwanda SMS confirmations."""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Sequence

from ibimina_providers.adapters.base import ProviderAdapter
from ibimina_providers.models.core import AdapterType, ParsedTransaction, ParseResult


AMOUNT_PATTERN = re.compile(r'received\s+RWF\s*([\d,]+(?:\.\d{2})?)', re.IGNORECASE)
REF_PATTERN = re.compile(r'\bref[:\s]+([A-Z0-9]{6,})', re.IGNORECASE)
BALANCE_PATTERN = re.compile(r'balance[:\s]+RWF\s*([\d,]+(?:\.\d{2})?)', re.IGNORECASE)


class AirtelRwandaSmsAdapter(ProviderAdapter):
    """Parses messages such as::

        Dear customer, you have received RWF 10,000 from 250733987654.
        Ref: AIR987654321
        Balance: RWF 60,000
    """

    name = "Airtel Rwanda SMS"
    country_code = "RWA"
    provider_name = "Airtel Rwanda"
    adapter_type = AdapterType.SMS
    priority = 50

    def can_handle(self, text: str) -> bool:
        lower = text.lower()
        return 'airtel' in lower or ('dear customer' in lower and 'rwf' in lower)

    def parse_row(self, fields: Sequence[str]) -> ParseResult:
        return self.parse(' '.join(fields))

    def parse(self, text: str) -> ParseResult:
        amount_match = AMOUNT_PATTERN.search(text)
        if not amount_match:
            return ParseResult.fail("Could not extract amount from SMS", 0.2)

        ref_match = REF_PATTERN.search(text)
        if not ref_match:
            return ParseResult.fail("Could not extract transaction reference from SMS", 0.4)

        try:
            amount = Decimal(amount_match.group(1).replace(',', ''))
        except InvalidOperation:
            return ParseResult.fail("Could not extract amount from SMS", 0.2)

        balance_match = BALANCE_PATTERN.search(text)
        transaction = ParsedTransaction(
            amount=amount,
            transaction_id=ref_match.group(1),
            timestamp=datetime.now(),
            payer_number=self.extractor.extract_msisdn(text),
            reference_token=self.extractor.extract_reference(text),
            balance=self.extractor.normalize_amount(balance_match.group(1)) if balance_match else None,
            raw_data={'sms_text': text},
        )
        return ParseResult.ok(transaction, self.calculate_confidence(transaction))


# Adapter classes are discovered by AdapterRegistry.load_plugins()
