"""Factory for creating key-value store instances."""

from typing import Optional
import structlog

from app.services.key_value_store.base import KeyValueStore
from app.services.key_value_store.exceptions import InvalidStoreBackendError
from app.services.key_value_store.in_memory_store import InMemoryStore
from app.services.key_value_store.redis_store import RedisStore

logger = structlog.get_logger()

REDIS_BACKEND = "redis"
MEMORY_BACKEND = "memory"


def create_store(
    backend: str,
    redis_url: Optional[str] = None,
    socket_timeout: Optional[float] = None
) -> KeyValueStore:
    """
    Create a key-value store for the given backend.
    
    Args:
        backend: Backend name, "redis" or "memory" (case-insensitive)
        redis_url: Connection URL, required for the redis backend
        socket_timeout: Optional socket timeout in seconds for the redis backend
        
    Returns:
        A store implementing the KeyValueStore interface
        
    Raises:
        InvalidStoreBackendError: If the backend is not supported
        ValueError: If the redis backend is requested without a URL
    """
    normalized = (backend or "").strip().lower()
    
    if normalized == REDIS_BACKEND:
        if not redis_url:
            raise ValueError("redis_url is required for the redis backend")
        logger.info("Creating Redis key-value store", socket_timeout=socket_timeout)
        return RedisStore.from_url(redis_url, socket_timeout=socket_timeout)
    elif normalized == MEMORY_BACKEND:
        logger.info("Creating in-memory key-value store")
        return InMemoryStore()
    else:
        raise InvalidStoreBackendError(backend)
