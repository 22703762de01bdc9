"""Explicit configuration for the cache engine."""

from dataclasses import dataclass

from app.config import Settings


@dataclass(frozen=True)
class CacheConfig:
    """Cache engine settings, built once at startup and passed to the engine."""
    default_ttl_seconds: int = 3600
    default_max_size: int = 100
    lru_index_key: str = "lru_access"
    lfu_index_key: str = "lfu_frequency"
    dirty_set_key: str = "dirty_keys"
    write_back_delay_seconds: float = 1.0
    export_metrics: bool = False
    
    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheConfig":
        """Build the cache configuration from application settings."""
        return cls(
            default_ttl_seconds=settings.cache_default_ttl_seconds,
            default_max_size=settings.cache_max_size,
            lru_index_key=settings.lru_index_key,
            lfu_index_key=settings.lfu_index_key,
            dirty_set_key=settings.dirty_set_key,
            write_back_delay_seconds=settings.write_back_delay_seconds,
            export_metrics=settings.enable_metrics
        )
