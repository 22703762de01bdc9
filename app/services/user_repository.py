"""Demo user repository acting as the authoritative store behind the cache endpoints."""

import asyncio
import copy
from typing import Any, Dict, Optional
import structlog

logger = structlog.get_logger()

SEED_USERS = {
    "1": {"id": "1", "name": "Jan Kowalski", "email": "jan@example.com"},
    "2": {"id": "2", "name": "Anna Nowak", "email": "anna@example.com"},
}


class UserRepository:
    """
    In-process user table with simulated database latency.
    
    Stands in for a real database so the cache strategies have a slow
    authoritative source to read from and persist to.
    """
    
    def __init__(self, read_latency_seconds: float = 0.1, write_latency_seconds: float = 0.05):
        self._users: Dict[str, Dict[str, Any]] = copy.deepcopy(SEED_USERS)
        self._read_latency_seconds = read_latency_seconds
        self._write_latency_seconds = write_latency_seconds
    
    async def find_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        await asyncio.sleep(self._read_latency_seconds)
        user = self._users.get(user_id)
        logger.debug("User repository read", user_id=user_id, found=user is not None)
        return copy.deepcopy(user) if user else None
    
    async def save_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        await asyncio.sleep(self._write_latency_seconds)
        self._users[user["id"]] = copy.deepcopy(user)
        logger.debug("User repository write", user_id=user["id"])
        return copy.deepcopy(user)
