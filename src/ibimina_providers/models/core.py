"""Core data models for provider ingestion and agent sessions."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Dict, Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..adapters.base import ProviderAdapter


class AdapterType(Enum):
    """Kind of input an adapter understands"""
    STATEMENT = "statement"
    SMS = "sms"


@dataclass
class ConfidenceWeights:
    """Heuristic constants used to score a parsed transaction.

    Attributes:
        base: Score given to any successful parse
        transaction_id: Increment for a transaction id of plausible length
        reference: Increment for an extracted reference token
        payer: Increment for an extracted payer number
        min_transaction_id_length: Shortest transaction id that earns the increment
    """
    base: float = 0.6
    transaction_id: float = 0.15
    reference: float = 0.15
    payer: float = 0.1
    min_transaction_id_length: int = 3

    def score(self, transaction: 'ParsedTransaction') -> float:
        """Score a transaction, capped at 1.0"""
        score = self.base
        if transaction.transaction_id and len(transaction.transaction_id) >= self.min_transaction_id_length:
            score += self.transaction_id
        if transaction.reference_token:
            score += self.reference
        if transaction.payer_number:
            score += self.payer
        return min(score, 1.0)


@dataclass
class ParsedTransaction:
    """Normalized transaction produced by every adapter"""
    amount: Decimal
    transaction_id: str
    timestamp: datetime
    payer_number: Optional[str] = None
    reference_token: Optional[str] = None
    balance: Optional[Decimal] = None
    raw_data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"Transaction amount cannot be negative: {self.amount}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'amount': str(self.amount),
            'transaction_id': self.transaction_id,
            'timestamp': self.timestamp.isoformat(),
            'payer_number': self.payer_number,
            'reference_token': self.reference_token,
            'balance': str(self.balance) if self.balance is not None else None,
            'raw_data': self.raw_data,
        }


@dataclass
class ParseResult:
    """Outcome of a parse attempt.

    A successful result carries a transaction, a failed one carries an error
    message. Failures may still report a nonzero confidence when the input was
    partially recognized.
    """
    success: bool
    confidence: float
    transaction: Optional[ParsedTransaction] = None
    error: Optional[str] = None

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.confidence}")
        if self.success and (self.transaction is None or self.error is not None):
            raise ValueError("A successful result needs a transaction and no error")
        if not self.success and (self.error is None or self.transaction is not None):
            raise ValueError("A failed result needs an error and no transaction")

    @classmethod
    def ok(cls, transaction: ParsedTransaction, confidence: float) -> 'ParseResult':
        return cls(success=True, confidence=confidence, transaction=transaction)

    @classmethod
    def fail(cls, error: str, confidence: float = 0.0) -> 'ParseResult':
        return cls(success=False, confidence=confidence, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        if self.success:
            return {
                'success': True,
                'confidence': self.confidence,
                'transaction': self.transaction.to_dict(),
            }
        return {'success': False, 'confidence': self.confidence, 'error': self.error}


@dataclass
class AdapterRegistryEntry:
    """Binds an adapter to the country/provider/type it serves.

    Priority only decides iteration order inside the registry.
    """
    adapter: 'ProviderAdapter'
    adapter_type: AdapterType
    country_code: str
    provider_name: str
    priority: int = 0

    def __post_init__(self):
        self.adapter_type = AdapterType(self.adapter_type)


@dataclass
class AgentMessage:
    """Single message in an agent conversation transcript"""
    role: str  # "system", "user", "assistant" or "tool"
    content: str
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'role': self.role, 'content': self.content}
        if self.created_at:
            data['created_at'] = self.created_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AgentMessage':
        return cls(
            role=data['role'],
            content=data.get('content', ''),
            created_at=data.get('created_at') or data.get('createdAt'),
        )


@dataclass
class AgentSessionRecord:
    """Persisted state of one multi-turn agent conversation.

    Attributes:
        id: Opaque session identifier
        org_id: Owning organization (SACCO)
        user_id: Authenticated user, if any
        channel: Messaging channel identifier (e.g. "web", "whatsapp")
        metadata: Open key-value map owned by the conversation handler
        messages: Ordered transcript
        created_at: Creation time (UTC)
        updated_at: Last time the record was saved (UTC)
        last_interaction_at: Last user/agent activity (UTC)
        expires_at: Time after which the session is treated as nonexistent (UTC)
    """
    id: str
    org_id: str
    channel: str
    created_at: datetime
    updated_at: datetime
    last_interaction_at: datetime
    expires_at: datetime
    user_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    messages: List[AgentMessage] = field(default_factory=list)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True once expires_at is strictly in the past"""
        now = now or datetime.now(timezone.utc)
        return self.expires_at < now

    @classmethod
    def new(cls, session_id: str, org_id: str, channel: str, ttl_seconds: int,
            user_id: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None,
            now: Optional[datetime] = None) -> 'AgentSessionRecord':
        """Build a fresh record expiring ttl_seconds from now"""
        now = now or datetime.now(timezone.utc)
        return cls(
            id=session_id,
            org_id=org_id,
            user_id=user_id,
            channel=channel,
            metadata=metadata or {},
            messages=[],
            created_at=now,
            updated_at=now,
            last_interaction_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )


@dataclass
class SessionStoreConfig:
    """Configuration for the agent session store"""
    driver: str = "relational"
    url: Optional[str] = None
    key: Optional[str] = None
    table: Optional[str] = None
    namespace: Optional[str] = None
    ttl_seconds: Optional[int] = None


@dataclass
class ProvidersConfig:
    """Configuration for adapters, registry and session store"""
    date_formats: Optional[List[str]] = None
    plugin_directories: Optional[List[str]] = None
    statement_confidence: Optional[ConfidenceWeights] = None
    sms_confidence: Optional[ConfidenceWeights] = None
    session_store: Optional[SessionStoreConfig] = None

    def __post_init__(self):
        if self.date_formats is None:
            self.date_formats = [
                "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d",
                "%d/%m/%Y %H:%M:%S", "%d/%m/%Y %H:%M", "%d/%m/%Y %I:%M %p",
                "%d/%m/%Y", "%d-%m-%Y %H:%M:%S", "%d-%m-%Y",
                "%d %b %Y %H:%M:%S", "%d %b %Y",
            ]
        if self.plugin_directories is None:
            self.plugin_directories = []
        if self.statement_confidence is None:
            self.statement_confidence = ConfidenceWeights()
        if self.sms_confidence is None:
            self.sms_confidence = ConfidenceWeights(
                base=0.5, transaction_id=0.2, reference=0.2, payer=0.1,
                min_transaction_id_length=9,
            )
        if self.session_store is None:
            self.session_store = SessionStoreConfig()
