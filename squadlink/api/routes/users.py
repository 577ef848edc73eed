from fastapi import APIRouter, Query

from squadlink.api.deps import CurrentUserId, StoreDep
from squadlink.schemas.user import UsernameAvailability, UserPublic, UserWithFriendStatus
from squadlink.services import users as users_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=list[UserWithFriendStatus])
async def search_users(
    *,
    store: StoreDep,
    current_user_id: CurrentUserId,
    query: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=50),
) -> list[UserWithFriendStatus]:
    return await users_service.search_users(
        store=store,
        query=query,
        current_user_id=current_user_id,
        limit=limit,
    )


@router.get("/username-available/{username}", response_model=UsernameAvailability)
async def check_username(store: StoreDep, username: str) -> UsernameAvailability:
    return await users_service.is_username_available(store=store, username=username)


@router.get("/{user_id}", response_model=UserPublic)
async def get_user(
    store: StoreDep, current_user_id: CurrentUserId, user_id: str
) -> UserPublic:
    return await users_service.get_user(store=store, user_id=user_id)
