from fastapi import APIRouter, Query

from squadlink.api.deps import CurrentUserId, StoreDep
from squadlink.core.enums import RequestDirection
from squadlink.models.message import Message
from squadlink.schemas.friendship import (
    ContactSuggestionsIn,
    FriendRequestPublic,
    SuggestionCandidate,
)
from squadlink.schemas.user import UserPublic, UserWithFriendStatus
from squadlink.services import friends as friends_service
from squadlink.services import suggestions as suggestions_service

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("/", response_model=list[UserPublic])
async def get_friends(store: StoreDep, current_user_id: CurrentUserId) -> list[UserPublic]:
    return await friends_service.get_friends(store=store, user_id=current_user_id)


@router.get("/count", response_model=int)
async def get_friend_count(store: StoreDep, current_user_id: CurrentUserId) -> int:
    return await friends_service.get_friend_count(store=store, user_id=current_user_id)


@router.get("/requests", response_model=list[FriendRequestPublic])
async def get_friend_requests(
    *,
    store: StoreDep,
    current_user_id: CurrentUserId,
    direction: RequestDirection = Query(RequestDirection.INCOMING),
) -> list[FriendRequestPublic]:
    return await friends_service.get_friend_requests(
        store=store, user_id=current_user_id, direction=direction
    )


@router.get("/suggestions", response_model=list[SuggestionCandidate])
async def get_friend_suggestions(
    *,
    store: StoreDep,
    current_user_id: CurrentUserId,
    limit: int = Query(20, ge=1, le=50),
    exclude: list[str] = Query([]),
) -> list[SuggestionCandidate]:
    return await suggestions_service.get_friend_suggestions(
        store=store,
        user_id=current_user_id,
        exclude_ids=exclude,
        limit=limit,
    )


@router.post("/suggestions/contacts", response_model=list[SuggestionCandidate])
async def get_contact_friend_suggestions(
    *, store: StoreDep, current_user_id: CurrentUserId, body: ContactSuggestionsIn
) -> list[SuggestionCandidate]:
    return await suggestions_service.get_friend_suggestions(
        store=store,
        user_id=current_user_id,
        exclude_ids=body.exclude,
        limit=body.limit,
        contact_phone_numbers=body.phone_numbers,
    )


@router.get("/status/{user_id}", response_model=UserWithFriendStatus)
async def get_friendship_status(
    store: StoreDep, current_user_id: CurrentUserId, user_id: str
) -> UserWithFriendStatus:
    return await friends_service.get_friendship_overview(
        store=store, viewer_id=current_user_id, target_id=user_id
    )


@router.get("/mutual/{user_id}", response_model=int)
async def get_mutual_friends_count(
    store: StoreDep, current_user_id: CurrentUserId, user_id: str
) -> int:
    return await friends_service.get_mutual_friends_count(
        store=store, user_id=current_user_id, other_user_id=user_id
    )


@router.post("/request/{receiver_id}", response_model=FriendRequestPublic)
async def send_friend_request(
    *, store: StoreDep, current_user_id: CurrentUserId, receiver_id: str
) -> FriendRequestPublic:
    return await friends_service.send_friend_request(
        store=store,
        sender_id=current_user_id,
        receiver_id=receiver_id,
    )


@router.post("/requests/{request_id}/accept", response_model=Message)
async def accept_friend_request(
    *, store: StoreDep, current_user_id: CurrentUserId, request_id: str
) -> Message:
    return await friends_service.accept_friend_request(
        store=store,
        request_id=request_id,
        accepting_user_id=current_user_id,
    )


@router.post("/requests/{request_id}/decline", response_model=Message)
async def decline_friend_request(
    *, store: StoreDep, current_user_id: CurrentUserId, request_id: str
) -> Message:
    return await friends_service.decline_friend_request(
        store=store,
        request_id=request_id,
        declining_user_id=current_user_id,
    )


@router.delete("/requests/{request_id}", response_model=Message)
async def cancel_friend_request(
    *, store: StoreDep, current_user_id: CurrentUserId, request_id: str
) -> Message:
    return await friends_service.cancel_friend_request(
        store=store,
        request_id=request_id,
        cancelling_user_id=current_user_id,
    )


@router.delete("/{friend_id}", response_model=Message)
async def remove_friend(
    *, store: StoreDep, current_user_id: CurrentUserId, friend_id: str
) -> Message:
    return await friends_service.remove_friend(
        store=store,
        user_id=current_user_id,
        friend_id=friend_id,
    )
