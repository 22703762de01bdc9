"""Pydantic models for request/response validation."""

from typing import Any, List, Optional
from pydantic import BaseModel, Field, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error_code: str = Field(..., description="Error code identifier")
    error_message: str = Field(..., description="Human-readable error message")


class SuccessResponse(BaseModel):
    """Generic acknowledgement."""

    success: bool = Field(..., description="Whether the operation changed anything")


# ======= CACHE DEMO =======

class UserPayload(BaseModel):
    """User record written through the cache write strategies."""

    id: str = Field(..., min_length=1, max_length=100, description="User ID")
    name: Optional[str] = Field(default=None, max_length=200, description="Display name")
    email: Optional[str] = Field(default=None, max_length=200, description="Email address")

    model_config = ConfigDict(extra="allow")


class StrategyResponse(BaseModel):
    """Result of a single cache strategy call."""

    success: bool = Field(default=True, description="Whether the call succeeded")
    strategy: str = Field(..., description="Strategy name")
    data: Any = Field(default=None, description="Value returned by the strategy")
    response_time_ms: float = Field(..., ge=0, description="Wall-clock duration of the call in milliseconds")


class EvictionSetRequest(BaseModel):
    """Request model for LRU/LFU writes."""

    data: Any = Field(..., description="JSON value to cache")
    ttl: Optional[int] = Field(default=None, gt=0, description="Expiry in seconds; the cache default when omitted")


class EvictionSetResponse(BaseModel):
    """Response model for LRU/LFU writes."""

    success: bool = Field(..., description="Whether the value was cached")
    strategy: str = Field(..., description="Eviction policy")
    key: str = Field(..., description="Cache key")
    cached: Any = Field(default=None, description="Value that was cached")


class EvictionGetResponse(BaseModel):
    """Response model for LRU/LFU reads."""

    strategy: str = Field(..., description="Eviction policy")
    key: str = Field(..., description="Cache key")
    value: Any = Field(default=None, description="Cached value, null when absent")


class InvalidateResponse(BaseModel):
    """Response model for pattern invalidation."""

    pattern: str = Field(..., description="Glob pattern that was invalidated")
    deleted_keys: int = Field(..., ge=0, description="Number of keys removed")


class CacheStatsResponse(BaseModel):
    """Response model for cache statistics."""

    hits: int = Field(..., ge=0, description="Cache hits counted by the read strategies")
    misses: int = Field(..., ge=0, description="Cache misses counted by the read strategies")
    lru_size: int = Field(..., ge=0, description="Keys recorded in the LRU index")
    lfu_size: int = Field(..., ge=0, description="Keys recorded in the LFU index")
    hit_ratio: float = Field(..., ge=0, le=1, description="hits / (hits + misses)")
    dirty_keys: int = Field(..., ge=0, description="Write-back keys not yet persisted")


class StrategyInfo(BaseModel):
    """Description of one cache strategy or eviction policy."""

    name: str = Field(..., description="Strategy name")
    description: str = Field(..., description="What the strategy does")
    flow: str = Field(..., description="Request flow through cache and source")
    use_case: str = Field(..., description="Typical workload")


class StrategiesResponse(BaseModel):
    """Overview of the supported strategies and eviction policies."""

    cache_strategies: List[StrategyInfo] = Field(..., description="Read/write strategies")
    eviction_policies: List[StrategyInfo] = Field(..., description="Eviction policies")


class BenchmarkResponse(BaseModel):
    """Timing summary of repeated strategy calls."""

    strategy: str = Field(..., description="Benchmarked strategy")
    iterations: int = Field(..., ge=1, description="Number of calls made")
    errors: int = Field(..., ge=0, description="Number of failed calls")
    total_time_ms: float = Field(..., ge=0, description="Total duration in milliseconds")
    avg_time_ms: float = Field(..., ge=0, description="Mean call duration in milliseconds")
    min_time_ms: float = Field(..., ge=0, description="Fastest call in milliseconds")
    max_time_ms: float = Field(..., ge=0, description="Slowest call in milliseconds")
    throughput_ops_per_sec: float = Field(..., ge=0, description="Successful calls per second")


# ======= CHAT =======

class CreateRoomRequest(BaseModel):
    """Request model for creating a chat room."""

    room_id: str = Field(..., min_length=1, max_length=100, description="Room ID")
    name: str = Field(..., min_length=1, max_length=200, description="Room display name")
    created_by: str = Field(..., min_length=1, max_length=100, description="ID of the creating user")


class RoomResponse(BaseModel):
    """Room metadata."""

    id: str = Field(..., description="Room ID")
    name: str = Field(..., description="Room display name")
    created_by: str = Field(..., description="ID of the creating user")
    created_at: int = Field(..., description="Creation time in epoch milliseconds")


class RoomInfoResponse(RoomResponse):
    """Room metadata with live membership and message count."""

    users: List[str] = Field(default_factory=list, description="IDs of users in the room")
    user_count: int = Field(..., ge=0, description="Number of users in the room")
    message_count: int = Field(..., ge=0, description="Number of stored messages")


class ListRoomsResponse(BaseModel):
    """Response model for listing rooms."""

    rooms: List[str] = Field(..., description="IDs of all rooms")


class JoinRoomRequest(BaseModel):
    """Request model for joining a room."""

    user_id: str = Field(..., min_length=1, max_length=100, description="User ID")
    username: str = Field(..., min_length=1, max_length=100, description="Display name")


class LeaveRoomRequest(BaseModel):
    """Request model for leaving a room."""

    user_id: str = Field(..., min_length=1, max_length=100, description="User ID")


class SendMessageRequest(BaseModel):
    """Request model for sending a chat message."""

    user_id: str = Field(..., min_length=1, max_length=100, description="Sender ID")
    username: str = Field(..., min_length=1, max_length=100, description="Sender display name")
    message: str = Field(..., min_length=1, max_length=2000, description="Message text")


class MessageResponse(BaseModel):
    """A stored chat message."""

    id: str = Field(..., description="Message ID")
    user_id: str = Field(..., description="Sender ID")
    username: str = Field(..., description="Sender display name")
    message: str = Field(..., description="Message text")
    timestamp: int = Field(..., description="Send time in epoch milliseconds")
    room_id: str = Field(..., description="Room ID")


class GetMessagesResponse(BaseModel):
    """Response model for recent room messages."""

    room_id: str = Field(..., description="Room ID")
    messages: List[MessageResponse] = Field(..., description="Messages, oldest first")


class UserStatsResponse(BaseModel):
    """Per-user activity counters."""

    user_id: str = Field(..., description="User ID")
    messages_sent: int = Field(..., ge=0, description="Messages sent")
    rooms_joined: int = Field(..., ge=0, description="Distinct rooms joined")
    last_active: int = Field(..., ge=0, description="Last message time in epoch milliseconds")


class OnlineUsersResponse(BaseModel):
    """Response model for online presence."""

    users: List[str] = Field(..., description="IDs of online users")


class TopUser(BaseModel):
    """Activity ranking entry."""

    user_id: str = Field(..., description="User ID")
    score: float = Field(..., description="Messages sent")


class TopUsersResponse(BaseModel):
    """Response model for the activity ranking."""

    users: List[TopUser] = Field(..., description="Most active users, highest first")


class UpdateScoreRequest(BaseModel):
    """Request model for setting a leaderboard score."""

    user_id: str = Field(..., min_length=1, max_length=100, description="User ID")
    score: float = Field(..., description="New score")


class LeaderboardEntry(BaseModel):
    """Leaderboard entry."""

    rank: int = Field(..., ge=1, description="1-based rank")
    user_id: str = Field(..., description="User ID")
    score: float = Field(..., description="Score")


class LeaderboardResponse(BaseModel):
    """Response model for the leaderboard."""

    entries: List[LeaderboardEntry] = Field(..., description="Top entries, highest score first")


class UserRankResponse(BaseModel):
    """Response model for a user's leaderboard rank."""

    user_id: str = Field(..., description="User ID")
    rank: Optional[int] = Field(default=None, ge=1, description="1-based rank, null when the user has no score")
