"""FastAPI main application."""

import logging
import structlog
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import RedirectResponse, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
import time

from app.config import settings
from app.exceptions import (
    ChatCacheException,
    chat_cache_exception_handler,
    general_exception_handler,
    http_exception_handler
)
from app.routes import cache_api, chat_api, health
from app.services.cache.cache_factory import create_cache_engine
from app.services.chat_service import ChatService
from app.services.key_value_store.store_factory import create_store
from app.services.user_repository import UserRepository

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: build the store, cache engine and chat service once."""
    logger.info("Starting chat cache API server", version="1.0.0", store_backend=settings.kv_store_backend)

    store = create_store(
        settings.kv_store_backend,
        redis_url=settings.redis_url,
        socket_timeout=settings.redis_socket_timeout_seconds
    )
    cache_engine = create_cache_engine(settings, store)

    app.state.store = store
    app.state.cache_engine = cache_engine
    app.state.chat_service = ChatService(
        store,
        cache_engine,
        message_limit=settings.chat_message_limit,
        cache_ttl_seconds=settings.chat_cache_ttl_seconds
    )
    app.state.user_repository = UserRepository()

    if not await store.ping():
        logger.warning("Key-value store not reachable at startup", store_backend=settings.kv_store_backend)

    yield

    logger.info("Shutting down chat cache API server")
    await cache_engine.deferred_writer.drain(timeout=settings.write_back_drain_timeout_seconds)
    await store.close()


# Create FastAPI application
app = FastAPI(
    title="Chat Cache API",
    description="Chat backend demonstrating cache strategies and LRU/LFU eviction on a key-value store",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Logging and metrics middleware."""
    start_time = time.time()

    logger.info(
        "HTTP request started",
        method=request.method,
        path=request.url.path,
        client_ip=request.client.host if request.client else None
    )

    response = await call_next(request)

    duration = time.time() - start_time

    if settings.enable_metrics:
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code
        ).inc()

        REQUEST_DURATION.labels(
            method=request.method,
            endpoint=request.url.path
        ).observe(duration)

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration=f"{duration:.3f}s"
    )

    return response


# Add exception handlers
app.add_exception_handler(ChatCacheException, chat_cache_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Include routers
app.include_router(health.router)
app.include_router(cache_api.router)
app.include_router(chat_api.router)


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    if not settings.enable_metrics:
        return Response("Metrics disabled", status_code=404)

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint that redirects to docs."""
    return RedirectResponse(url="/docs")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
