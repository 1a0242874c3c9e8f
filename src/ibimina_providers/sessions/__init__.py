"""Agent session storage drivers"""

from .base import AgentSessionStore, deserialize_session, serialize_session
from .factory import create_agent_session_store, create_store_from_config
from .redis_store import RedisAgentSessionStore
from .supabase_store import SupabaseAgentSessionStore

__all__ = [
    'AgentSessionStore',
    'RedisAgentSessionStore',
    'SupabaseAgentSessionStore',
    'create_agent_session_store',
    'create_store_from_config',
    'deserialize_session',
    'serialize_session',
]
