"""API routes for chat rooms, messages, presence and leaderboard."""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
import structlog

from app.dependencies import get_chat_service
from app.models import (
    CreateRoomRequest,
    GetMessagesResponse,
    JoinRoomRequest,
    LeaderboardResponse,
    LeaveRoomRequest,
    ListRoomsResponse,
    MessageResponse,
    OnlineUsersResponse,
    RoomInfoResponse,
    RoomResponse,
    SendMessageRequest,
    SuccessResponse,
    TopUsersResponse,
    UpdateScoreRequest,
    UserRankResponse,
    UserStatsResponse
)
from app.services.chat_service import ChatService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/chat", tags=["Chat"])


# ======= ROOMS =======

@router.get(
    "/rooms",
    response_model=ListRoomsResponse,
    summary="List rooms",
    description="Get the IDs of all rooms"
)
async def list_rooms(chat: ChatService = Depends(get_chat_service)):
    return ListRoomsResponse(rooms=await chat.list_rooms())


@router.post(
    "/rooms",
    response_model=RoomResponse,
    status_code=201,
    summary="Create room",
    description="Create a room or overwrite the metadata of an existing one"
)
async def create_room(
    request: CreateRoomRequest,
    chat: ChatService = Depends(get_chat_service)
):
    room = await chat.create_room(request.room_id, request.name, request.created_by)
    return RoomResponse(**room)


@router.get(
    "/rooms/{room_id}",
    response_model=RoomInfoResponse,
    summary="Get room info",
    description="Get room metadata with its users and message count (served via cache-aside)"
)
async def get_room_info(
    room_id: str = Path(..., min_length=1, max_length=100),
    chat: ChatService = Depends(get_chat_service)
):
    room = await chat.get_room_info(room_id)
    if room is None:
        raise HTTPException(
            status_code=404,
            detail={
                "error_code": "ROOM_NOT_FOUND",
                "error_message": f"Room {room_id} not found"
            }
        )
    return RoomInfoResponse(**room)


@router.post(
    "/rooms/{room_id}/join",
    response_model=SuccessResponse,
    summary="Join room",
    description="Add a user to a room"
)
async def join_room(
    request: JoinRoomRequest,
    room_id: str = Path(..., min_length=1, max_length=100),
    chat: ChatService = Depends(get_chat_service)
):
    joined = await chat.join_room(request.user_id, room_id, request.username)
    return SuccessResponse(success=joined)


@router.post(
    "/rooms/{room_id}/leave",
    response_model=SuccessResponse,
    summary="Leave room",
    description="Remove a user from a room"
)
async def leave_room(
    request: LeaveRoomRequest,
    room_id: str = Path(..., min_length=1, max_length=100),
    chat: ChatService = Depends(get_chat_service)
):
    left = await chat.leave_room(request.user_id, room_id)
    return SuccessResponse(success=left)


# ======= MESSAGES =======

@router.get(
    "/rooms/{room_id}/messages",
    response_model=GetMessagesResponse,
    summary="Get messages",
    description="Get the most recent messages of a room, oldest first (served via cache-aside)"
)
async def get_messages(
    room_id: str = Path(..., min_length=1, max_length=100),
    limit: int = Query(default=50, ge=1, le=100, description="Number of messages"),
    chat: ChatService = Depends(get_chat_service)
):
    messages = await chat.get_messages(room_id, limit)
    return GetMessagesResponse(
        room_id=room_id,
        messages=[MessageResponse(**message) for message in messages]
    )


@router.post(
    "/rooms/{room_id}/messages",
    response_model=MessageResponse,
    status_code=201,
    summary="Send message",
    description="Store a message in a room and invalidate the room's cached lookups"
)
async def send_message(
    request: SendMessageRequest,
    room_id: str = Path(..., min_length=1, max_length=100),
    chat: ChatService = Depends(get_chat_service)
):
    message = await chat.send_message(room_id, request.user_id, request.username, request.message)
    return MessageResponse(**message)


# ======= USERS & PRESENCE =======

@router.get(
    "/users/online",
    response_model=OnlineUsersResponse,
    summary="Online users",
    description="Get the IDs of users currently online"
)
async def get_online_users(chat: ChatService = Depends(get_chat_service)):
    return OnlineUsersResponse(users=await chat.get_online_users())


@router.post(
    "/users/{user_id}/online",
    response_model=SuccessResponse,
    summary="Set user online"
)
async def set_user_online(
    user_id: str = Path(..., min_length=1, max_length=100),
    chat: ChatService = Depends(get_chat_service)
):
    return SuccessResponse(success=await chat.set_user_online(user_id))


@router.post(
    "/users/{user_id}/offline",
    response_model=SuccessResponse,
    summary="Set user offline"
)
async def set_user_offline(
    user_id: str = Path(..., min_length=1, max_length=100),
    chat: ChatService = Depends(get_chat_service)
):
    return SuccessResponse(success=await chat.set_user_offline(user_id))


@router.get(
    "/users/{user_id}/stats",
    response_model=UserStatsResponse,
    summary="User statistics",
    description="Get a user's message and room counters"
)
async def get_user_stats(
    user_id: str = Path(..., min_length=1, max_length=100),
    chat: ChatService = Depends(get_chat_service)
):
    stats = await chat.get_user_stats(user_id)
    return UserStatsResponse(user_id=user_id, **stats)


@router.get(
    "/stats/top-users",
    response_model=TopUsersResponse,
    summary="Most active users",
    description="Get users ranked by messages sent"
)
async def get_top_users(
    limit: int = Query(default=10, ge=1, le=100, description="Number of users"),
    chat: ChatService = Depends(get_chat_service)
):
    return TopUsersResponse(users=await chat.get_top_users(limit))


# ======= LEADERBOARD =======

@router.get(
    "/leaderboard",
    response_model=LeaderboardResponse,
    summary="Leaderboard",
    description="Get the highest scores"
)
async def get_leaderboard(
    limit: int = Query(default=10, ge=1, le=100, description="Number of entries"),
    chat: ChatService = Depends(get_chat_service)
):
    return LeaderboardResponse(entries=await chat.get_leaderboard(limit))


@router.post(
    "/leaderboard",
    response_model=UserRankResponse,
    summary="Record score",
    description="Set a user's leaderboard score and return the resulting rank"
)
async def update_score(
    request: UpdateScoreRequest,
    chat: ChatService = Depends(get_chat_service)
):
    await chat.update_user_score(request.user_id, request.score)
    rank = await chat.get_user_rank(request.user_id)
    return UserRankResponse(user_id=request.user_id, rank=rank)


@router.get(
    "/leaderboard/{user_id}/rank",
    response_model=UserRankResponse,
    summary="User rank"
)
async def get_user_rank(
    user_id: str = Path(..., min_length=1, max_length=100),
    chat: ChatService = Depends(get_chat_service)
):
    return UserRankResponse(user_id=user_id, rank=await chat.get_user_rank(user_id))


@router.delete(
    "/leaderboard/{user_id}",
    response_model=SuccessResponse,
    summary="Remove from leaderboard"
)
async def remove_from_leaderboard(
    user_id: str = Path(..., min_length=1, max_length=100),
    chat: ChatService = Depends(get_chat_service)
):
    return SuccessResponse(success=await chat.remove_from_leaderboard(user_id))
