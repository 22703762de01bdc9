"""API routes demonstrating the cache strategies and eviction policies."""

import time
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query
import structlog

from app.dependencies import get_cache_engine, get_user_repository
from app.models import (
    BenchmarkResponse,
    CacheStatsResponse,
    EvictionGetResponse,
    EvictionSetRequest,
    EvictionSetResponse,
    InvalidateResponse,
    StrategiesResponse,
    StrategyInfo,
    StrategyResponse,
    UserPayload
)
from app.services.cache.cache_engine import CacheEngine
from app.services.user_repository import UserRepository

logger = structlog.get_logger()

router = APIRouter(prefix="/api/cache", tags=["Cache"])

# TTL used by the demo endpoints (5 minutes)
DEMO_TTL_SECONDS = 300
DEMO_MAX_SIZE = 10

BENCHMARK_STRATEGIES = ("cache-aside", "read-through", "lru", "lfu")


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 3)


def _require_user(user, user_id: str) -> None:
    if user is None:
        raise HTTPException(
            status_code=404,
            detail={
                "error_code": "USER_NOT_FOUND",
                "error_message": f"User {user_id} not found"
            }
        )


# ======= READ STRATEGIES =======

@router.get(
    "/cache-aside/{user_id}",
    response_model=StrategyResponse,
    summary="Cache-aside read",
    description="Check the cache, load the user from the repository on a miss and fill the cache"
)
async def cache_aside_endpoint(
    user_id: str = Path(..., min_length=1, max_length=100),
    cache: CacheEngine = Depends(get_cache_engine),
    repository: UserRepository = Depends(get_user_repository)
):
    start_time = time.time()
    user = await cache.cache_aside(
        f"user:{user_id}",
        lambda: repository.find_user(user_id),
        DEMO_TTL_SECONDS
    )
    _require_user(user, user_id)
    return StrategyResponse(strategy="Cache-Aside", data=user, response_time_ms=_elapsed_ms(start_time))


@router.get(
    "/read-through/{user_id}",
    response_model=StrategyResponse,
    summary="Read-through read",
    description="Read the user via the cache tier, which loads from the repository on a miss"
)
async def read_through_endpoint(
    user_id: str = Path(..., min_length=1, max_length=100),
    cache: CacheEngine = Depends(get_cache_engine),
    repository: UserRepository = Depends(get_user_repository)
):
    start_time = time.time()
    user = await cache.read_through(
        f"rt_user:{user_id}",
        lambda: repository.find_user(user_id),
        DEMO_TTL_SECONDS
    )
    _require_user(user, user_id)
    return StrategyResponse(strategy="Read-Through", data=user, response_time_ms=_elapsed_ms(start_time))


# ======= WRITE STRATEGIES =======

@router.post(
    "/write-through",
    response_model=StrategyResponse,
    summary="Write-through write",
    description="Persist the user, then cache the persisted record"
)
async def write_through_endpoint(
    payload: UserPayload,
    cache: CacheEngine = Depends(get_cache_engine),
    repository: UserRepository = Depends(get_user_repository)
):
    start_time = time.time()
    user = await cache.write_through(
        f"wt_user:{payload.id}",
        payload.model_dump(exclude_none=True),
        repository.save_user,
        DEMO_TTL_SECONDS
    )
    return StrategyResponse(strategy="Write-Through", data=user, response_time_ms=_elapsed_ms(start_time))


@router.post(
    "/write-around",
    response_model=StrategyResponse,
    summary="Write-around write",
    description="Persist the user and invalidate its cache entry"
)
async def write_around_endpoint(
    payload: UserPayload,
    cache: CacheEngine = Depends(get_cache_engine),
    repository: UserRepository = Depends(get_user_repository)
):
    start_time = time.time()
    user = await cache.write_around(
        f"wa_user:{payload.id}",
        payload.model_dump(exclude_none=True),
        repository.save_user
    )
    return StrategyResponse(strategy="Write-Around", data=user, response_time_ms=_elapsed_ms(start_time))


@router.post(
    "/write-back",
    response_model=StrategyResponse,
    summary="Write-back write",
    description="Cache the user immediately and persist it to the repository after a short delay"
)
async def write_back_endpoint(
    payload: UserPayload,
    cache: CacheEngine = Depends(get_cache_engine),
    repository: UserRepository = Depends(get_user_repository)
):
    start_time = time.time()
    user = await cache.write_back(
        f"wb_user:{payload.id}",
        payload.model_dump(exclude_none=True),
        repository.save_user,
        DEMO_TTL_SECONDS
    )
    return StrategyResponse(strategy="Write-Back", data=user, response_time_ms=_elapsed_ms(start_time))


# ======= EVICTION POLICIES =======

@router.post(
    "/lru/{key}",
    response_model=EvictionSetResponse,
    summary="LRU set",
    description="Cache a value, evicting the least recently used key when the index is full"
)
async def lru_set_endpoint(
    request: EvictionSetRequest,
    key: str = Path(..., min_length=1, max_length=200),
    max_size: int = Query(default=DEMO_MAX_SIZE, ge=1, le=10000, description="Maximum LRU population"),
    cache: CacheEngine = Depends(get_cache_engine)
):
    success = await cache.lru_set(key, request.data, request.ttl or DEMO_TTL_SECONDS, max_size)
    return EvictionSetResponse(success=success, strategy="LRU", key=key, cached=request.data)


@router.get(
    "/lru/{key}",
    response_model=EvictionGetResponse,
    summary="LRU get",
    description="Read a value and mark it most recently used"
)
async def lru_get_endpoint(
    key: str = Path(..., min_length=1, max_length=200),
    max_size: int = Query(default=DEMO_MAX_SIZE, ge=1, le=10000, description="Maximum LRU population"),
    cache: CacheEngine = Depends(get_cache_engine)
):
    value = await cache.lru_get(key, max_size)
    return EvictionGetResponse(strategy="LRU", key=key, value=value)


@router.post(
    "/lfu/{key}",
    response_model=EvictionSetResponse,
    summary="LFU set",
    description="Cache a value, evicting the least frequently used key when the index is full"
)
async def lfu_set_endpoint(
    request: EvictionSetRequest,
    key: str = Path(..., min_length=1, max_length=200),
    max_size: int = Query(default=DEMO_MAX_SIZE, ge=1, le=10000, description="Maximum LFU population"),
    cache: CacheEngine = Depends(get_cache_engine)
):
    success = await cache.lfu_set(key, request.data, request.ttl or DEMO_TTL_SECONDS, max_size)
    return EvictionSetResponse(success=success, strategy="LFU", key=key, cached=request.data)


@router.get(
    "/lfu/{key}",
    response_model=EvictionGetResponse,
    summary="LFU get",
    description="Read a value and bump its access count"
)
async def lfu_get_endpoint(
    key: str = Path(..., min_length=1, max_length=200),
    cache: CacheEngine = Depends(get_cache_engine)
):
    value = await cache.lfu_get(key)
    return EvictionGetResponse(strategy="LFU", key=key, value=value)


# ======= INVALIDATION & STATISTICS =======

@router.delete(
    "/invalidate/{pattern:path}",
    response_model=InvalidateResponse,
    summary="Invalidate by pattern",
    description="Delete every key matching a glob pattern, e.g. cache:room:42:*"
)
async def invalidate_endpoint(
    pattern: str,
    cache: CacheEngine = Depends(get_cache_engine)
):
    deleted = await cache.invalidate(pattern)
    return InvalidateResponse(pattern=pattern, deleted_keys=deleted)


@router.get(
    "/stats",
    response_model=CacheStatsResponse,
    summary="Cache statistics",
    description="Hit/miss counters, LRU/LFU index populations and pending write-backs"
)
async def stats_endpoint(cache: CacheEngine = Depends(get_cache_engine)):
    stats = await cache.stats()
    dirty_keys = await cache.deferred_writer.dirty_keys()
    return CacheStatsResponse(
        hits=stats.hits,
        misses=stats.misses,
        lru_size=stats.lru_size,
        lfu_size=stats.lfu_size,
        hit_ratio=stats.hit_ratio,
        dirty_keys=len(dirty_keys)
    )


@router.get(
    "/strategies",
    response_model=StrategiesResponse,
    summary="Strategy overview",
    description="Describe the supported cache strategies and eviction policies"
)
async def strategies_endpoint():
    cache_strategies: List[StrategyInfo] = [
        StrategyInfo(
            name="Cache-Aside",
            description="The application checks the cache and loads from the source on a miss",
            flow="check cache -> miss -> load from source -> store in cache",
            use_case="General purpose, read-mostly data"
        ),
        StrategyInfo(
            name="Read-Through",
            description="The cache tier loads from the source on a miss",
            flow="app -> cache -> (miss) source -> cache -> app",
            use_case="Frequently read data"
        ),
        StrategyInfo(
            name="Write-Through",
            description="Writes go to the source first, then to the cache",
            flow="app -> source -> cache -> app",
            use_case="Critical data that is read right after being written"
        ),
        StrategyInfo(
            name="Write-Around",
            description="Writes go to the source only and the cache entry is invalidated",
            flow="app -> source (cache invalidated)",
            use_case="Rarely read data, large payloads"
        ),
        StrategyInfo(
            name="Write-Back",
            description="Writes go to the cache immediately and to the source after a delay",
            flow="app -> cache -> (deferred) source",
            use_case="High-frequency writes such as scores and counters"
        ),
    ]
    eviction_policies: List[StrategyInfo] = [
        StrategyInfo(
            name="LRU",
            description="Evicts the least recently used key",
            flow="sorted set scored by last access time",
            use_case="Web applications, general purpose"
        ),
        StrategyInfo(
            name="LFU",
            description="Evicts the least frequently used key",
            flow="sorted set scored by access count",
            use_case="Stable popularity, static assets"
        ),
    ]
    return StrategiesResponse(cache_strategies=cache_strategies, eviction_policies=eviction_policies)


@router.get(
    "/benchmark/{strategy}",
    response_model=BenchmarkResponse,
    summary="Benchmark a strategy",
    description="Time repeated calls of one strategy against a constant payload"
)
async def benchmark_endpoint(
    strategy: str,
    iterations: int = Query(default=100, ge=1, le=10000, description="Number of calls"),
    cache: CacheEngine = Depends(get_cache_engine)
):
    if strategy not in BENCHMARK_STRATEGIES:
        raise HTTPException(
            status_code=400,
            detail={
                "error_code": "UNKNOWN_STRATEGY",
                "error_message": f"Unknown strategy: {strategy}. Supported: {', '.join(BENCHMARK_STRATEGIES)}"
            }
        )

    test_data = {"id": "test", "data": "benchmark data"}

    async def load_test_data():
        return test_data

    times: List[float] = []
    errors = 0
    start_total = time.time()

    for i in range(iterations):
        key = f"bench:{i}"
        start = time.time()
        try:
            if strategy == "cache-aside":
                await cache.cache_aside(key, load_test_data)
            elif strategy == "read-through":
                await cache.read_through(key, load_test_data)
            elif strategy == "lru":
                await cache.lru_set(key, test_data)
            else:
                await cache.lfu_set(key, test_data)
        except Exception as e:
            errors += 1
            logger.warning("Benchmark call failed", strategy=strategy, iteration=i, error=str(e))
            continue
        times.append((time.time() - start) * 1000)

    total_time_ms = (time.time() - start_total) * 1000
    logger.info("Benchmark completed", strategy=strategy, iterations=iterations, errors=errors)

    return BenchmarkResponse(
        strategy=strategy,
        iterations=iterations,
        errors=errors,
        total_time_ms=round(total_time_ms, 3),
        avg_time_ms=round(sum(times) / len(times), 3) if times else 0.0,
        min_time_ms=round(min(times), 3) if times else 0.0,
        max_time_ms=round(max(times), 3) if times else 0.0,
        throughput_ops_per_sec=round(len(times) / (total_time_ms / 1000), 3) if total_time_ms > 0 else 0.0
    )
