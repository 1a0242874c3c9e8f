"""Tests for core data models."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from ibimina_providers.models.core import (
    AdapterRegistryEntry,
    AdapterType,
    AgentSessionRecord,
    ConfidenceWeights,
    ParsedTransaction,
    ParseResult,
)


def make_transaction(**overrides):
    values = dict(amount=Decimal('5000'), transaction_id="MP240315.1430.A12345",
                  timestamp=datetime(2024, 3, 15, 14, 30, 45))
    values.update(overrides)
    return ParsedTransaction(**values)


class TestParseResult:
    """Test cases for ParseResult invariants"""

    def test_ok_and_fail_shapes(self):
        ok = ParseResult.ok(make_transaction(), 0.8)
        fail = ParseResult.fail("Could not parse amount", 0.3)

        assert ok.success and ok.transaction is not None and ok.error is None
        assert not fail.success and fail.transaction is None and fail.error

    def test_fail_defaults_to_zero_confidence(self):
        assert ParseResult.fail("Insufficient columns in row").confidence == 0.0

    def test_rejects_mixed_shapes(self):
        with pytest.raises(ValueError):
            ParseResult(success=True, confidence=0.5)
        with pytest.raises(ValueError):
            ParseResult(success=False, confidence=0.5, transaction=make_transaction(), error="x")

    @pytest.mark.parametrize("confidence", [-0.1, 1.01])
    def test_rejects_out_of_range_confidence(self, confidence):
        with pytest.raises(ValueError):
            ParseResult.fail("x", confidence)

    def test_to_dict(self):
        txn = make_transaction(balance=Decimal('15000'), payer_number="250788123456")
        data = ParseResult.ok(txn, 0.85).to_dict()

        assert data['success'] is True
        assert data['transaction']['amount'] == '5000'
        assert data['transaction']['balance'] == '15000'
        assert data['transaction']['timestamp'] == '2024-03-15T14:30:45'
        assert ParseResult.fail("nope").to_dict() == {'success': False, 'confidence': 0.0, 'error': 'nope'}


class TestParsedTransaction:

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            make_transaction(amount=Decimal('-1'))

    def test_zero_amount_allowed(self):
        assert make_transaction(amount=Decimal('0')).amount == 0


class TestConfidenceWeights:

    def test_score_is_capped(self):
        weights = ConfidenceWeights(base=0.9, transaction_id=0.5, reference=0.5, payer=0.5)
        txn = make_transaction(reference_token="RWA.NYA.GAS.TWIZ.001", payer_number="250788123456")
        assert weights.score(txn) == 1.0

    def test_short_transaction_id_earns_nothing(self):
        weights = ConfidenceWeights(min_transaction_id_length=9)
        assert weights.score(make_transaction(transaction_id="MP12")) == pytest.approx(weights.base)


def test_registry_entry_coerces_type():
    entry = AdapterRegistryEntry(adapter=None, adapter_type="sms", country_code="RWA", provider_name="MTN Rwanda")
    assert entry.adapter_type is AdapterType.SMS


def test_session_record_expiry():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    record = AgentSessionRecord.new("s1", "org", "web", ttl_seconds=60, now=now)

    assert record.expires_at == now + timedelta(seconds=60)
    assert not record.is_expired(now)
    assert not record.is_expired(now + timedelta(seconds=60))
    assert record.is_expired(now + timedelta(seconds=61))
