"""Cache session store backed by Redis keys with native expiry."""

import json
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Optional

from redis.exceptions import RedisError

from .base import AgentSessionStore, Clock, deserialize_session, serialize_session, to_datetime
from ..models.core import AgentSessionRecord
from ..utils.error_handler import ErrorCategory, SessionStoreError


logger = logging.getLogger(__name__)

DEFAULT_REDIS_NAMESPACE = "ibimina:agent:sessions"


class RedisAgentSessionStore(AgentSessionStore):
    """Stores each session as one JSON value under <namespace>:<session id>.

    Keys are written with a millisecond expiry so Redis removes stale
    sessions on its own; reads still re-check expires_at in case the
    application clock and the server disagree.
    """

    def __init__(self, client: Any, namespace: Optional[str] = None,
                 ttl_seconds: Optional[int] = None, clock: Optional[Clock] = None):
        super().__init__(ttl_seconds=ttl_seconds, clock=clock)
        self.client = client
        self.namespace = namespace or DEFAULT_REDIS_NAMESPACE

    def key(self, session_id: str) -> str:
        return f"{self.namespace}:{session_id}"

    def get(self, session_id: str) -> Optional[AgentSessionRecord]:
        key = self.key(session_id)
        try:
            value = self.client.get(key)
        except RedisError as e:
            raise SessionStoreError(f"Failed to load agent session: {e}", session_id) from e

        if value is None:
            return None

        session = self._deserialize(value, session_id)
        if session is None:
            self._discard(key, session_id)
            return None

        try:
            remaining_ms = self.client.pttl(key)
        except RedisError as e:
            raise SessionStoreError(f"Failed to read agent session expiry: {e}", session_id) from e

        now = self.now()
        # A fast-path touch only moves the key's expiry, not the stored payload.
        # While the key has a native expiry it wins over expires_at, so the
        # skew re-check below only applies to keys without one.
        if remaining_ms is not None and remaining_ms > 0:
            native_expiry = now + timedelta(milliseconds=remaining_ms)
            if native_expiry > session.expires_at:
                session.expires_at = native_expiry

        if session.is_expired(now):
            self._discard(key, session_id)
            return None

        return session

    def save(self, session: AgentSessionRecord) -> AgentSessionRecord:
        now = self.now()
        expires_at = self.ttl_expiry() or session.expires_at
        normalized = replace(
            session,
            expires_at=expires_at,
            updated_at=now,
            last_interaction_at=session.last_interaction_at or now,
        )

        ttl_ms = max(_milliseconds(expires_at - now), 1)
        try:
            self.client.set(self.key(session.id), json.dumps(serialize_session(normalized)), px=ttl_ms)
        except RedisError as e:
            raise SessionStoreError(f"Failed to persist agent session: {e}", session.id) from e
        return normalized

    def touch(self, session_id: str, expires_at: Optional[datetime] = None) -> None:
        key = self.key(session_id)
        now = self.now()

        if expires_at is not None:
            ttl_ms = _milliseconds(to_datetime(expires_at) - now)
        elif self.ttl_seconds:
            ttl_ms = self.ttl_seconds * 1000
        else:
            # No expiry to move: rewrite the payload with a fresh interaction time
            session = self.get(session_id)
            if session is not None:
                self.save(replace(session, last_interaction_at=now))
            return

        try:
            if ttl_ms > 0:
                self.client.pexpire(key, ttl_ms)
            else:
                self.client.delete(key)
        except RedisError as e:
            raise SessionStoreError(f"Failed to update agent session heartbeat: {e}", session_id) from e

    def delete(self, session_id: str) -> None:
        try:
            self.client.delete(self.key(session_id))
        except RedisError as e:
            raise SessionStoreError(f"Failed to delete agent session: {e}", session_id) from e

    def _deserialize(self, value: Any, session_id: str) -> Optional[AgentSessionRecord]:
        try:
            if isinstance(value, bytes):
                value = value.decode('utf-8')
            return deserialize_session(json.loads(value))
        except (KeyError, TypeError, ValueError) as e:
            logger.error(
                f"agent.session.redis.deserialize_failed for {session_id}: {e}",
                extra={'category': ErrorCategory.STORAGE.value, 'session_id': session_id},
            )
            return None

    def _discard(self, key: str, session_id: str) -> None:
        """Best-effort removal of an expired or corrupt key"""
        try:
            self.client.delete(key)
        except RedisError as e:
            logger.warning(
                f"Could not remove stale agent session {session_id}: {e}",
                extra={'category': ErrorCategory.STORAGE.value, 'session_id': session_id},
            )


def _milliseconds(delta: timedelta) -> int:
    return int(delta.total_seconds() * 1000)
