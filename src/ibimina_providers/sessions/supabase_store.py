"""Relational session store backed by a Supabase (PostgREST) table."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Optional

from .base import AgentSessionStore, Clock, deserialize_session, serialize_session, to_datetime
from ..models.core import AgentSessionRecord
from ..utils.error_handler import ErrorCategory, SessionStoreError


logger = logging.getLogger(__name__)

DEFAULT_SESSION_TABLE = "agent_sessions"


class SupabaseAgentSessionStore(AgentSessionStore):
    """Stores one flat row per session, upserted by id.

    With a TTL configured the store owns expiry: save() sets expires_at to
    now + TTL and every successful get() pushes it forward again.
    """

    def __init__(self, client: Any, table: Optional[str] = None,
                 ttl_seconds: Optional[int] = None, clock: Optional[Clock] = None):
        super().__init__(ttl_seconds=ttl_seconds, clock=clock)
        self.client = client
        self.table = table or DEFAULT_SESSION_TABLE

    def _query(self):
        return self.client.table(self.table)

    def get(self, session_id: str) -> Optional[AgentSessionRecord]:
        try:
            response = self._query().select("*").eq("id", session_id).maybe_single().execute()
        except Exception as e:
            raise SessionStoreError(f"Failed to load agent session: {e}", session_id) from e

        # maybe_single() yields no response at all for a missing row in some client versions
        row = getattr(response, 'data', None) if response is not None else None
        if not row:
            return None

        try:
            session = deserialize_session(row)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(
                f"Discarding unreadable agent session {session_id}: {e}",
                extra={'category': ErrorCategory.STORAGE.value, 'session_id': session_id},
            )
            self._discard(session_id)
            return None

        now = self.now()
        if session.is_expired(now):
            self._discard(session_id)
            return None

        refreshed = self.ttl_expiry()
        if refreshed is not None and session.expires_at < refreshed:
            session.expires_at = refreshed
            self._refresh_expiry(session_id, refreshed)

        return session

    def save(self, session: AgentSessionRecord) -> AgentSessionRecord:
        now = self.now()
        persisted = replace(
            session,
            expires_at=self.ttl_expiry() or session.expires_at,
            updated_at=now,
            last_interaction_at=session.last_interaction_at or now,
        )
        payload = serialize_session(persisted)

        try:
            response = self._query().upsert(payload, on_conflict="id").execute()
        except Exception as e:
            raise SessionStoreError(f"Failed to persist agent session: {e}", session.id) from e

        rows = getattr(response, 'data', None)
        row = rows[0] if isinstance(rows, list) and rows else payload

        try:
            stored = deserialize_session(row)
        except (KeyError, TypeError, ValueError) as e:
            raise SessionStoreError("Failed to deserialize persisted agent session", session.id) from e
        if stored is None:
            raise SessionStoreError("Failed to deserialize persisted agent session", session.id)
        return stored

    def touch(self, session_id: str, expires_at: Optional[datetime] = None) -> None:
        patch: Dict[str, Any] = {'last_interaction_at': self.now().isoformat()}

        expiry = to_datetime(expires_at) if expires_at else self.ttl_expiry()
        if expiry is not None:
            patch['expires_at'] = expiry.isoformat()

        try:
            self._query().update(patch).eq("id", session_id).execute()
        except Exception as e:
            raise SessionStoreError(f"Failed to update agent session heartbeat: {e}", session_id) from e

    def delete(self, session_id: str) -> None:
        try:
            self._query().delete().eq("id", session_id).execute()
        except Exception as e:
            raise SessionStoreError(f"Failed to delete agent session: {e}", session_id) from e

    def _discard(self, session_id: str) -> None:
        """Best-effort removal of an expired or corrupt row"""
        try:
            self.delete(session_id)
        except SessionStoreError as e:
            logger.warning(
                f"Could not remove stale agent session {session_id}: {e}",
                extra={'category': ErrorCategory.STORAGE.value, 'session_id': session_id},
            )

    def _refresh_expiry(self, session_id: str, expires_at: datetime) -> None:
        """Best-effort write-back of a refreshed expiry"""
        try:
            self._query().update({'expires_at': expires_at.isoformat()}).eq("id", session_id).execute()
        except Exception as e:
            logger.warning(
                f"Could not refresh expiry of agent session {session_id}: {e}",
                extra={'category': ErrorCategory.STORAGE.value, 'session_id': session_id},
            )
