"""Configuration management for the FastAPI application."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra fields from environment variables
    )
    
    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    
    # Key-Value Store Configuration
    kv_store_backend: str = Field(default="redis", description="Key-value store backend (redis or memory)")
    redis_host: str = Field(default="localhost", description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_db: int = Field(default=0, description="Redis database index")
    redis_password: str = Field(default="", description="Redis password")
    redis_socket_timeout_seconds: float = Field(default=5.0, description="Redis socket timeout in seconds")
    
    # Cache Configuration
    cache_default_ttl_seconds: int = Field(default=3600, description="Default cache entry TTL in seconds")
    cache_max_size: int = Field(default=100, description="Default maximum population of the LRU/LFU indexes")
    lru_index_key: str = Field(default="lru_access", description="Sorted set holding LRU access timestamps")
    lfu_index_key: str = Field(default="lfu_frequency", description="Sorted set holding LFU access counts")
    dirty_set_key: str = Field(default="dirty_keys", description="Set holding keys not yet persisted by write-back")
    write_back_delay_seconds: float = Field(default=1.0, description="Delay before a write-back persist runs")
    write_back_drain_timeout_seconds: float = Field(default=5.0, description="How long shutdown waits for pending write-backs")
    
    # Chat Configuration
    chat_message_limit: int = Field(default=100, description="Maximum messages kept per room")
    chat_cache_ttl_seconds: int = Field(default=300, description="TTL for cached room lookups in seconds")
    
    # Monitoring
    enable_metrics: bool = Field(default=True, description="Enable Prometheus metrics")
    
    @property
    def redis_url(self) -> str:
        """Construct the Redis connection URL from individual fields."""
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        else:
            return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"


# Global settings instance
settings = Settings()
