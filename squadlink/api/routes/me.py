from fastapi import APIRouter
from sqlmodel import SQLModel

from squadlink.api.deps import CurrentUser, CurrentUserId, StoreDep
from squadlink.converters import user as user_converters
from squadlink.models.user import UserUpdate
from squadlink.schemas.user import UserPublic
from squadlink.services import users as users_service

router = APIRouter(prefix="/me", tags=["me"])


class UsernameIn(SQLModel):
    username: str


@router.get("/", response_model=UserPublic)
async def get_current_user(current_user: CurrentUser) -> UserPublic:
    return user_converters.to_public(current_user)


@router.patch("/", response_model=UserPublic)
async def update_user_me(
    *, store: StoreDep, user_in: UserUpdate, current_user_id: CurrentUserId
) -> UserPublic:
    return await users_service.update_profile(
        store=store, user_id=current_user_id, user_in=user_in
    )


@router.put("/username", response_model=UserPublic)
async def set_username(
    *, store: StoreDep, body: UsernameIn, current_user_id: CurrentUserId
) -> UserPublic:
    return await users_service.reserve_username(
        store=store, user_id=current_user_id, username=body.username
    )
