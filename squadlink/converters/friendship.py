from typing import Any

from squadlink.core.enums import FriendRequestStatus, RequestDirection
from squadlink.models.friendship import FriendEdge, FriendRequest
from squadlink.schemas.friendship import FriendRequestPublic
from squadlink.schemas.user import UserPublic


def request_from_document(request_id: str, data: dict[str, Any]) -> FriendRequest:
    # Requests written before the status field existed are pending
    return FriendRequest(
        id=request_id,
        from_user_id=data["fromUserId"],
        to_user_id=data["toUserId"],
        status=FriendRequestStatus(data.get("status") or FriendRequestStatus.PENDING),
        created_at=data.get("createdAt"),
        updated_at=data.get("updatedAt"),
    )


def request_to_document(request: FriendRequest) -> dict[str, Any]:
    return {
        "fromUserId": request.from_user_id,
        "toUserId": request.to_user_id,
        "status": request.status.value,
        "createdAt": request.created_at,
        "updatedAt": request.updated_at,
    }


def edge_to_document(edge: FriendEdge) -> dict[str, Any]:
    return {
        "userId": edge.user_id,
        "friendId": edge.friend_id,
        "createdAt": edge.created_at,
    }


def to_request_public(
    request: FriendRequest,
    *,
    viewer_id: str,
    user: UserPublic | None,
) -> FriendRequestPublic:
    direction = (
        RequestDirection.OUTGOING
        if request.from_user_id == viewer_id
        else RequestDirection.INCOMING
    )
    return FriendRequestPublic(
        id=request.id,
        from_user_id=request.from_user_id,
        to_user_id=request.to_user_id,
        status=request.status,
        direction=direction,
        created_at=request.created_at,
        user=user,
    )
