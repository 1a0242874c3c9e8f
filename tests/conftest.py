"""Shared fixtures: in-memory stand-ins for the Redis and Supabase clients."""

from datetime import datetime, timedelta, timezone

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from ibimina_providers.models.core import AgentMessage, AgentSessionRecord


class FakeRedisClient:
    """Subset of redis.Redis used by the cache session store"""

    def __init__(self):
        self.store = {}
        self.ttl = {}
        self.fail = False
        self.fail_deletes = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("redis unavailable")

    def get(self, key):
        self._check()
        return self.store.get(key)

    def set(self, key, value, px=None):
        self._check()
        self.store[key] = value
        if px is None:
            self.ttl.pop(key, None)
        else:
            self.ttl[key] = px
        return True

    def delete(self, *keys):
        self._check()
        if self.fail_deletes:
            raise RedisConnectionError("redis unavailable")
        removed = 0
        for key in keys:
            if key in self.store:
                removed += 1
            self.store.pop(key, None)
            self.ttl.pop(key, None)
        return removed

    def pexpire(self, key, ttl_ms):
        self._check()
        if key not in self.store:
            return 0
        self.ttl[key] = ttl_ms
        return 1

    def pttl(self, key):
        self._check()
        if key not in self.store:
            return -2
        return self.ttl.get(key, -1)


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable query builder mimicking the supabase-py table API"""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.operation = None
        self.payload = None
        self.filters = {}
        self.single = False

    def select(self, *columns):
        self.operation = self.operation or 'select'
        return self

    def upsert(self, payload, on_conflict=None):
        self.operation = 'upsert'
        self.payload = payload
        return self

    def update(self, patch):
        self.operation = 'update'
        self.payload = patch
        return self

    def delete(self):
        self.operation = 'delete'
        return self

    def eq(self, column, value):
        self.filters[column] = value
        return self

    def maybe_single(self):
        self.single = True
        return self

    def execute(self):
        self.client.calls.append((self.table, self.operation, self.payload, dict(self.filters)))
        if self.operation in self.client.fail_on:
            raise RuntimeError(f"postgrest {self.operation} failed")

        rows = self.client.tables.setdefault(self.table, {})
        row_id = self.filters.get('id')

        if self.operation == 'select':
            row = rows.get(row_id)
            if self.single and row is None:
                return None
            return FakeResponse(dict(row) if row else None)
        if self.operation == 'upsert':
            rows[self.payload['id']] = dict(self.payload)
            return FakeResponse([dict(self.payload)])
        if self.operation == 'update':
            if row_id in rows:
                rows[row_id].update(self.payload)
                return FakeResponse([dict(rows[row_id])])
            return FakeResponse([])
        if self.operation == 'delete':
            removed = rows.pop(row_id, None)
            return FakeResponse([removed] if removed else [])
        raise AssertionError(f"Unexpected operation {self.operation}")


class FakeSupabaseClient:
    """Subset of supabase.Client used by the relational session store"""

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.fail_on = set()

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_redis():
    return FakeRedisClient()


@pytest.fixture
def fake_supabase():
    return FakeSupabaseClient()


@pytest.fixture
def make_session():
    """Factory for session records expiring a minute from now"""

    def _make(**overrides):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        values = dict(
            id="session-test",
            org_id="org-test",
            user_id="user-test",
            channel="web",
            metadata={"locale": "rw"},
            messages=[
                AgentMessage(role="user", content="Muraho"),
                AgentMessage(role="assistant", content="How can I help?", created_at="2024-01-01T00:00:01+00:00"),
            ],
            created_at=now,
            updated_at=now,
            last_interaction_at=now,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=60),
        )
        values.update(overrides)
        return AgentSessionRecord(**values)

    return _make
