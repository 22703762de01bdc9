"""Hit/miss accounting for the cache read strategies."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import threading

from prometheus_client import Counter

CACHE_HITS = Counter('cache_hits_total', 'Total cache hits', ['strategy'])
CACHE_MISSES = Counter('cache_misses_total', 'Total cache misses', ['strategy'])


@dataclass
class CacheStats:
    """Snapshot of cache counters and eviction index populations."""
    hits: int
    misses: int
    lru_size: int
    lfu_size: int
    
    @property
    def hit_ratio(self) -> float:
        """Fraction of counted reads served from cache (0.0 when nothing was read)."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total


class StatsCollector(ABC):
    """Interface for collecting hit/miss counters from read strategies."""
    
    @abstractmethod
    def record_hit(self, strategy: str) -> None:
        pass
    
    @abstractmethod
    def record_miss(self, strategy: str) -> None:
        pass
    
    @property
    @abstractmethod
    def hits(self) -> int:
        pass
    
    @property
    @abstractmethod
    def misses(self) -> int:
        pass
    
    @abstractmethod
    def reset(self) -> None:
        pass


class InMemoryStatsCollector(StatsCollector):
    """
    Process-local counters guarded by a lock.
    
    Optionally mirrors every increment into the Prometheus counters so hit
    rates show up next to the HTTP request metrics.
    """
    
    def __init__(self, export_metrics: bool = False):
        self._export_metrics = export_metrics
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()
    
    def record_hit(self, strategy: str) -> None:
        with self._lock:
            self._hits += 1
        if self._export_metrics:
            CACHE_HITS.labels(strategy=strategy).inc()
    
    def record_miss(self, strategy: str) -> None:
        with self._lock:
            self._misses += 1
        if self._export_metrics:
            CACHE_MISSES.labels(strategy=strategy).inc()
    
    @property
    def hits(self) -> int:
        with self._lock:
            return self._hits
    
    @property
    def misses(self) -> int:
        with self._lock:
            return self._misses
    
    def reset(self) -> None:
        with self._lock:
            self._hits = 0
            self._misses = 0
