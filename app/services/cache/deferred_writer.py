"""Deferred persistence behind the write-back strategy."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Set, Union
import structlog

from app.exceptions import StoreError
from app.services.key_value_store.base import KeyValueStore

logger = structlog.get_logger()

PersistFn = Callable[[Any], Union[Any, Awaitable[Any]]]


async def resolve(result: Any) -> Any:
    """Await result if the callable that produced it was async."""
    if inspect.isawaitable(result):
        return await result
    return result


class DeferredWriter:
    """
    Runs write-back persistence after a fixed delay.
    
    A key is added to the dirty set when its value is written to the cache
    and removed once the deferred persist succeeds. A failed persist leaves
    the marker in place and is not retried; the dirty set is the only trace
    left for reconciliation. Scheduled writes are not cancellable and are
    lost if the process exits before they run.
    """
    
    def __init__(self, store: KeyValueStore, dirty_set_key: str = "dirty_keys", delay_seconds: float = 1.0):
        """
        Initialize the writer.
        
        Args:
            store: Store holding the dirty set
            dirty_set_key: Key of the set of not-yet-persisted cache keys
            delay_seconds: Delay between the cache write and the persist call
        """
        self._store = store
        self._dirty_set_key = dirty_set_key
        self._delay_seconds = delay_seconds
        self._pending: Set[asyncio.Task] = set()
    
    @property
    def dirty_set_key(self) -> str:
        return self._dirty_set_key
    
    @property
    def pending_count(self) -> int:
        """Number of deferred writes that have not finished yet."""
        return len(self._pending)
    
    async def mark_dirty(self, key: str) -> None:
        await self._store.sadd(self._dirty_set_key, key)
    
    async def is_dirty(self, key: str) -> bool:
        return await self._store.sismember(self._dirty_set_key, key)
    
    async def dirty_keys(self) -> Set[str]:
        return await self._store.smembers(self._dirty_set_key)
    
    def schedule(self, key: str, value: Any, persist_fn: PersistFn) -> asyncio.Task:
        """
        Schedule persist_fn(value) on the running event loop.
        
        Args:
            key: Cache key the value was written under
            value: Value to persist
            persist_fn: Sync or async callable writing to the authoritative store
            
        Returns:
            The task running the deferred write; it resolves to True on success
        """
        task = asyncio.create_task(self._persist_later(key, value, persist_fn))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task
    
    async def _persist_later(self, key: str, value: Any, persist_fn: PersistFn) -> bool:
        await asyncio.sleep(self._delay_seconds)
        
        try:
            await resolve(persist_fn(value))
        except Exception as e:
            logger.error(
                "Deferred write-back failed, key left dirty",
                key=key,
                error=str(e),
                error_type=type(e).__name__
            )
            return False
        
        try:
            await self._store.srem(self._dirty_set_key, key)
        except StoreError as e:
            logger.warning("Could not clear dirty marker", key=key, error=str(e))
            return False
        
        logger.debug("Deferred write-back persisted", key=key)
        return True
    
    async def drain(self, timeout: Optional[float] = None) -> None:
        """
        Wait for every pending deferred write to finish.
        
        Args:
            timeout: Optional upper bound in seconds; writes still pending
                     afterwards keep running in the background
        """
        if not self._pending:
            return
        
        pending = list(self._pending)
        logger.info("Draining deferred write-backs", pending=len(pending))
        done, not_done = await asyncio.wait(pending, timeout=timeout)
        if not_done:
            logger.warning("Deferred write-backs still pending after drain", pending=len(not_done))
