"""Tests for session store construction."""

import pytest
import redis

from ibimina_providers.models.core import SessionStoreConfig
from ibimina_providers.sessions.factory import create_agent_session_store, create_store_from_config
from ibimina_providers.sessions.redis_store import RedisAgentSessionStore
from ibimina_providers.sessions.supabase_store import SupabaseAgentSessionStore
from ibimina_providers.utils.error_handler import ConfigurationError


def test_cache_driver_requires_client_or_url():
    with pytest.raises(ConfigurationError, match="either a client instance or connection URL"):
        create_agent_session_store("cache", namespace="demo")


def test_relational_driver_requires_client_or_target():
    with pytest.raises(ConfigurationError, match="Supabase client"):
        create_agent_session_store("relational")
    with pytest.raises(ConfigurationError):
        create_agent_session_store("relational", url="https://example.supabase.co")


def test_unknown_driver():
    with pytest.raises(ConfigurationError, match="Unsupported agent session store driver"):
        create_agent_session_store("dynamodb", client=object())


def test_non_positive_ttl_rejected(fake_redis):
    with pytest.raises(ConfigurationError):
        create_agent_session_store("cache", client=fake_redis, ttl_seconds=0)


@pytest.mark.parametrize("driver", ["cache", "redis", "REDIS"])
def test_cache_aliases(driver, fake_redis):
    store = create_agent_session_store(driver, client=fake_redis, namespace="demo", ttl_seconds=90)

    assert isinstance(store, RedisAgentSessionStore)
    assert store.namespace == "demo"
    assert store.ttl_seconds == 90


@pytest.mark.parametrize("driver", ["relational", "supabase"])
def test_relational_aliases(driver, fake_supabase):
    store = create_agent_session_store(driver, client=fake_supabase)

    assert isinstance(store, SupabaseAgentSessionStore)
    assert store.table == "agent_sessions"


def test_cache_driver_from_url():
    store = create_agent_session_store("cache", url="redis://localhost:6379/0")

    assert isinstance(store.client, redis.Redis)
    assert not store.client.connection_pool.connection_kwargs.get('decode_responses')


def test_relational_driver_from_url_and_key(monkeypatch, fake_supabase):
    created = {}

    def fake_create_client(url, key):
        created['args'] = (url, key)
        return fake_supabase

    monkeypatch.setattr("supabase.create_client", fake_create_client)

    store = create_agent_session_store("relational", url="https://example.supabase.co", key="service-key")

    assert store.client is fake_supabase
    assert created['args'] == ("https://example.supabase.co", "service-key")


def test_create_from_config(fake_redis):
    config = SessionStoreConfig(driver="cache", namespace="cfg", ttl_seconds=30)

    store = create_store_from_config(config, client=fake_redis)

    assert isinstance(store, RedisAgentSessionStore)
    assert store.key("abc") == "cfg:abc"
