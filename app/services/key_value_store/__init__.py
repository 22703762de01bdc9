"""Key-value store port with Redis and in-memory backends."""

from app.services.key_value_store.base import KeyValueStore
from app.services.key_value_store.exceptions import InvalidStoreBackendError
from app.services.key_value_store.glob import escape_glob
from app.services.key_value_store.in_memory_store import InMemoryStore
from app.services.key_value_store.redis_store import RedisStore
from app.services.key_value_store.store_factory import create_store

__all__ = [
    "KeyValueStore",
    "InMemoryStore",
    "RedisStore",
    "create_store",
    "InvalidStoreBackendError",
    "escape_glob",
]
