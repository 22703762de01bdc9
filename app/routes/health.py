"""Health check routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.dependencies import get_store
from app.services.key_value_store.base import KeyValueStore

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    summary="Health check",
    description="Report service health and whether the key-value store answers a ping"
)
async def health_check(store: KeyValueStore = Depends(get_store)):
    """Return 200 when the store is reachable, 503 otherwise."""
    store_ok = await store.ping()
    return JSONResponse(
        status_code=200 if store_ok else 503,
        content={
            "status": "healthy" if store_ok else "degraded",
            "store": "up" if store_ok else "down"
        }
    )
