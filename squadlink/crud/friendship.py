from datetime import datetime

from squadlink.converters import friendship as friendship_converters
from squadlink.core.enums import FriendRequestStatus, RequestDirection
from squadlink.models.friendship import FriendEdge, FriendRequest
from squadlink.store import (
    FRIEND_REQUESTS,
    DocumentStore,
    FieldFilter,
    friend_path,
    friend_request_path,
    friends_collection,
)


async def get_friend_ids(*, store: DocumentStore, user_id: str) -> set[str]:
    """
    Get the ids of everyone listed in a user's friends subcollection.

    Parameters:
        store (DocumentStore): The document store.
        user_id (str): The ID of the user whose friends are listed.
    Returns:
        set[str]: Friend ids; empty if the user has no friends.
    """
    return set(await store.list_ids(friends_collection(user_id)))


async def has_friend_edge(
    *,
    store: DocumentStore,
    user_id: str,
    friend_id: str,
) -> bool:
    """
    Check whether friend_id is listed in user_id's friends subcollection.
    Only this one side is inspected.
    """
    return await store.exists(friend_path(user_id, friend_id))


async def create_friend_edge(
    *,
    store: DocumentStore,
    user_id: str,
    friend_id: str,
    created_at: datetime,
) -> FriendEdge:
    """
    Write one side of a friendship. The document id is the friend's id, so
    writing the same edge twice leaves a single document.

    Parameters:
        store (DocumentStore): The document store.
        user_id (str): Owner of the friends subcollection written to.
        friend_id (str): The user being listed as a friend.
        created_at (datetime): Join timestamp.
    Returns:
        FriendEdge: The edge that was written.
    """
    edge = FriendEdge(user_id=user_id, friend_id=friend_id, created_at=created_at)
    await store.set(
        friend_path(user_id, friend_id),
        friendship_converters.edge_to_document(edge),
    )
    return edge


async def delete_friend_edge(
    *,
    store: DocumentStore,
    user_id: str,
    friend_id: str,
) -> None:
    await store.delete(friend_path(user_id, friend_id))


async def get_friend_request(
    *,
    store: DocumentStore,
    request_id: str,
) -> FriendRequest | None:
    data = await store.get(friend_request_path(request_id))
    if data is None:
        return None
    return friendship_converters.request_from_document(request_id, data)


async def find_pending_request(
    *,
    store: DocumentStore,
    sender_id: str,
    receiver_id: str,
) -> FriendRequest | None:
    """
    Find an active request from sender to receiver.

    Parameters:
        store (DocumentStore): The document store.
        sender_id (str): The ID of the user who sent the request.
        receiver_id (str): The ID of the user who received the request.
    Returns:
        FriendRequest | None: The first pending request found, if any.
    """
    snapshots = await store.query(
        FRIEND_REQUESTS,
        filters=[
            FieldFilter("fromUserId", "==", sender_id),
            FieldFilter("toUserId", "==", receiver_id),
            FieldFilter("status", "==", FriendRequestStatus.PENDING.value),
        ],
        limit=1,
    )
    if not snapshots:
        return None
    return friendship_converters.request_from_document(
        snapshots[0].id, snapshots[0].data
    )


async def create_friend_request(
    *,
    store: DocumentStore,
    sender_id: str,
    receiver_id: str,
    created_at: datetime,
) -> FriendRequest:
    """
    Create a pending friend request with a store-generated id.

    Parameters:
        store (DocumentStore): The document store.
        sender_id (str): The ID of the user sending the request.
        receiver_id (str): The ID of the user receiving the request.
        created_at (datetime): Creation timestamp.
    Returns:
        FriendRequest: The created request.
    """
    request = FriendRequest(
        id="",
        from_user_id=sender_id,
        to_user_id=receiver_id,
        status=FriendRequestStatus.PENDING,
        created_at=created_at,
        updated_at=created_at,
    )
    request_id = await store.add(
        FRIEND_REQUESTS, friendship_converters.request_to_document(request)
    )
    request.id = request_id
    return request


async def set_friend_request_status(
    *,
    store: DocumentStore,
    request_id: str,
    status: FriendRequestStatus,
    updated_at: datetime,
) -> None:
    """
    Raises:
        DocumentNotFoundError: If the request document does not exist.
    """
    await store.update(
        friend_request_path(request_id),
        {"status": status.value, "updatedAt": updated_at},
    )


async def get_pending_requests(
    *,
    store: DocumentStore,
    user_id: str,
    direction: RequestDirection,
) -> list[FriendRequest]:
    """
    Get pending requests sent to (incoming) or by (outgoing) a user, newest first.
    """
    field = "toUserId" if direction == RequestDirection.INCOMING else "fromUserId"
    snapshots = await store.query(
        FRIEND_REQUESTS,
        filters=[
            FieldFilter(field, "==", user_id),
            FieldFilter("status", "==", FriendRequestStatus.PENDING.value),
        ],
        order_by="createdAt",
        descending=True,
    )
    return [
        friendship_converters.request_from_document(snapshot.id, snapshot.data)
        for snapshot in snapshots
    ]
