"""FastAPI dependencies resolving the services built in the application lifespan."""

from fastapi import Request

from app.services.cache.cache_engine import CacheEngine
from app.services.chat_service import ChatService
from app.services.key_value_store.base import KeyValueStore
from app.services.user_repository import UserRepository


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_cache_engine(request: Request) -> CacheEngine:
    return request.app.state.cache_engine


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_user_repository(request: Request) -> UserRepository:
    return request.app.state.user_repository
