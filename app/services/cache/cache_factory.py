"""Factory wiring the cache engine from application settings."""

from typing import Optional
import structlog

from app.config import Settings
from app.services.cache.cache_config import CacheConfig
from app.services.cache.cache_engine import CacheEngine
from app.services.cache.stats import InMemoryStatsCollector, StatsCollector
from app.services.key_value_store.base import KeyValueStore

logger = structlog.get_logger()


def create_cache_engine(
    settings: Settings,
    store: KeyValueStore,
    stats: Optional[StatsCollector] = None
) -> CacheEngine:
    """
    Create a cache engine for the given store.
    
    Called once at process start; the engine is then handed to its consumers
    instead of being looked up as a module-level singleton.
    
    Args:
        settings: Application settings
        store: Backing key-value store
        stats: Optional hit/miss collector, e.g. a fresh one per test
        
    Returns:
        A configured CacheEngine
    """
    config = CacheConfig.from_settings(settings)
    
    if stats is None:
        stats = InMemoryStatsCollector(export_metrics=config.export_metrics)
    
    logger.info(
        "Creating cache engine",
        default_ttl_seconds=config.default_ttl_seconds,
        default_max_size=config.default_max_size,
        write_back_delay_seconds=config.write_back_delay_seconds
    )
    return CacheEngine(store, config=config, stats=stats)
