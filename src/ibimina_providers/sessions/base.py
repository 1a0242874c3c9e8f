"""Session store interface and the record wire format shared by drivers."""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Union

from ..models.core import AgentMessage, AgentSessionRecord
from ..utils.error_handler import ConfigurationError


Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass a datetime through) as UTC"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def serialize_session(session: AgentSessionRecord) -> Dict[str, Any]:
    """Flatten a record into a snake_case row with ISO-8601 timestamps"""
    return {
        'id': session.id,
        'org_id': session.org_id,
        'user_id': session.user_id,
        'channel': session.channel,
        'metadata': session.metadata or {},
        'messages': [message.to_dict() for message in session.messages or []],
        'expires_at': session.expires_at.isoformat(),
        'created_at': session.created_at.isoformat(),
        'updated_at': session.updated_at.isoformat(),
        'last_interaction_at': session.last_interaction_at.isoformat(),
    }


def deserialize_session(row: Optional[Dict[str, Any]]) -> Optional[AgentSessionRecord]:
    """Build a record from a stored row.

    Accepts snake_case or camelCase keys. Raises ValueError/KeyError/TypeError
    for rows that are not session records.
    """
    if not row:
        return None
    if not isinstance(row, dict):
        raise TypeError(f"Session row must be a mapping, got {type(row).__name__}")

    expires_at = to_datetime(_pick(row, 'expires_at', 'expiresAt'))
    if expires_at is None:
        raise ValueError("Session row has no expiry")

    updated_at = to_datetime(_pick(row, 'updated_at', 'updatedAt'))
    created_at = to_datetime(_pick(row, 'created_at', 'createdAt'))
    last_interaction_at = to_datetime(_pick(row, 'last_interaction_at', 'lastInteractionAt'))
    now = utcnow()

    messages = row.get('messages')
    return AgentSessionRecord(
        id=row['id'],
        org_id=_pick(row, 'org_id', 'orgId'),
        user_id=_pick(row, 'user_id', 'userId'),
        channel=row.get('channel', ''),
        metadata=dict(row.get('metadata') or {}),
        messages=[AgentMessage.from_dict(m) for m in messages] if isinstance(messages, list) else [],
        expires_at=expires_at,
        created_at=created_at or now,
        updated_at=updated_at or now,
        last_interaction_at=last_interaction_at or updated_at or now,
    )


def _pick(row: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return None


class AgentSessionStore(ABC):
    """Abstract base class for agent session storage drivers.

    Every read path treats a record whose expires_at has passed as absent.
    Every method may raise SessionStoreError when the backend fails.
    """

    def __init__(self, ttl_seconds: Optional[int] = None, clock: Optional[Clock] = None):
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ConfigurationError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock or utcnow

    def now(self) -> datetime:
        return self._clock()

    def ttl_expiry(self) -> Optional[datetime]:
        """Expiry implied by the configured TTL, or None without a TTL"""
        if not self.ttl_seconds:
            return None
        return self.now() + timedelta(seconds=self.ttl_seconds)

    @abstractmethod
    def get(self, session_id: str) -> Optional[AgentSessionRecord]:
        """Load a live session, or None if missing, expired or corrupt"""
        pass

    @abstractmethod
    def save(self, session: AgentSessionRecord) -> AgentSessionRecord:
        """Persist a session and return it as stored"""
        pass

    @abstractmethod
    def touch(self, session_id: str, expires_at: Optional[datetime] = None) -> None:
        """Record activity and extend the session's lifetime"""
        pass

    @abstractmethod
    def delete(self, session_id: str) -> None:
        pass
