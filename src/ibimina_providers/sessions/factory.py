"""Session store construction from a driver name."""

import logging
from typing import Any, Optional

from .base import AgentSessionStore, Clock
from ..models.core import SessionStoreConfig
from ..utils.error_handler import ConfigurationError


logger = logging.getLogger(__name__)

RELATIONAL_DRIVERS = ('relational', 'supabase')
CACHE_DRIVERS = ('cache', 'redis')


def create_agent_session_store(driver: str,
                               client: Any = None,
                               url: Optional[str] = None,
                               key: Optional[str] = None,
                               table: Optional[str] = None,
                               namespace: Optional[str] = None,
                               ttl_seconds: Optional[int] = None,
                               clock: Optional[Clock] = None) -> AgentSessionStore:
    """Create the session store for a driver

    Args:
        driver: "relational" (alias "supabase") or "cache" (alias "redis")
        client: Ready-made Supabase or Redis client
        url: Supabase project URL or Redis connection URL, used without a client
        key: Supabase API key, required with a Supabase URL
        table: Relational table name
        namespace: Cache key namespace
        ttl_seconds: Session lifetime enforced by the store
        clock: Callable returning the current UTC time

    Raises:
        ConfigurationError: Unknown driver or no way to reach the backend
    """
    driver_name = (driver or '').strip().lower()

    if driver_name in RELATIONAL_DRIVERS:
        from .supabase_store import SupabaseAgentSessionStore

        if client is None:
            if not url or not key:
                raise ConfigurationError(
                    "Supabase client (or project URL and key) is required for agent session store"
                )
            from supabase import create_client
            client = create_client(url, key)

        logger.debug(f"Using relational agent session store (table: {table or 'default'})")
        return SupabaseAgentSessionStore(client, table=table, ttl_seconds=ttl_seconds, clock=clock)

    if driver_name in CACHE_DRIVERS:
        from .redis_store import RedisAgentSessionStore

        if client is None:
            if not url:
                raise ConfigurationError(
                    "Redis agent session store requires either a client instance or connection URL"
                )
            import redis
            client = redis.Redis.from_url(url)

        logger.debug(f"Using cache agent session store (namespace: {namespace or 'default'})")
        return RedisAgentSessionStore(client, namespace=namespace, ttl_seconds=ttl_seconds, clock=clock)

    raise ConfigurationError(f"Unsupported agent session store driver: {driver}")


def create_store_from_config(config: SessionStoreConfig, client: Any = None,
                             clock: Optional[Clock] = None) -> AgentSessionStore:
    """Create the session store described by a SessionStoreConfig"""
    return create_agent_session_store(
        driver=config.driver,
        client=client,
        url=config.url,
        key=config.key,
        table=config.table,
        namespace=config.namespace,
        ttl_seconds=config.ttl_seconds,
        clock=clock,
    )
