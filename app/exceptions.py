"""Custom exceptions and exception handlers for the application."""

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
import structlog

logger = structlog.get_logger()


class ChatCacheException(Exception):
    """Base exception for application errors that map onto an HTTP response."""
    
    def __init__(self, error_code: str, error_message: str, status_code: int = 500):
        self.error_code = error_code
        self.error_message = error_message
        self.status_code = status_code
        super().__init__(error_message)


class StoreError(ChatCacheException):
    """Raised when the key-value store rejects an operation."""
    
    def __init__(self, error_message: str, error_code: str = "STORE_ERROR", status_code: int = 500):
        super().__init__(error_code, error_message, status_code)


class StoreUnavailableError(StoreError):
    """Raised when the key-value store cannot be reached."""
    
    def __init__(self, error_message: str = "Key-value store is unavailable"):
        super().__init__(error_message, error_code="STORE_UNAVAILABLE", status_code=503)


class CacheSerializationError(ChatCacheException):
    """Raised when a cache payload cannot be encoded or decoded."""
    
    def __init__(self, key: str, reason: str):
        self.key = key
        super().__init__(
            "CACHE_SERIALIZATION_ERROR",
            f"Cannot serialize cache entry for key '{key}': {reason}",
            status_code=422
        )


async def chat_cache_exception_handler(request: Request, exc: ChatCacheException) -> JSONResponse:
    """Render application exceptions as the standard error payload."""
    logger.warning(
        "Application error",
        error_code=exc.error_code,
        error_message=exc.error_message,
        path=request.url.path
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "error_message": exc.error_message
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTPException details, keeping structured details as-is."""
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error_code": f"HTTP_{exc.status_code}", "error_message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "error_code": "INTERNAL_ERROR",
            "error_message": "An unexpected error occurred"
        }
    )
