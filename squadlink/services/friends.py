import asyncio
from datetime import datetime
from logging import getLogger

from squadlink.converters import friendship as friendship_converters
from squadlink.converters import user as user_converters
from squadlink.core.enums import FriendRequestStatus, FriendshipStatus, RequestDirection
from squadlink.crud import friendship as friendship_crud
from squadlink.crud import user as users_crud
from squadlink.exceptions.base import AppError
from squadlink.exceptions.friends_exceptions import (
    DuplicateRequestError,
    FriendRequestNotFoundError,
    FriendshipAlreadyExistsError,
    FriendshipNotFoundError,
    InvalidTransitionError,
    NotRequestParticipantError,
    PartialWriteError,
    SelfRequestError,
)
from squadlink.exceptions.user_exceptions import UserNotFound
from squadlink.models.friendship import FriendRequest
from squadlink.models.message import Message
from squadlink.schemas.friendship import FriendRequestPublic
from squadlink.schemas.user import UserPublic, UserWithFriendStatus
from squadlink.services.friendship_state import FriendAction, next_status
from squadlink.store import DocumentStore, friend_path
from squadlink.utils import utc_now

logger = getLogger(__name__)


def _viewer_status_for(request: FriendRequest) -> FriendshipStatus:
    if request.status == FriendRequestStatus.ACCEPTED:
        return FriendshipStatus.FRIENDS
    return FriendshipStatus.NONE


async def get_friend_ids(*, store: DocumentStore, user_id: str) -> set[str]:
    """
    Get the ids of a user's friends.

    Raises:
        NetworkError: If the store could not be reached (retryable).
        StorePermissionError: If the store rejected the read.
    """
    try:
        return await friendship_crud.get_friend_ids(store=store, user_id=user_id)
    except AppError:
        raise
    except Exception as e:
        raise AppError from e


async def check_friendship_status(
    *,
    store: DocumentStore,
    viewer_id: str,
    target_id: str,
) -> FriendshipStatus:
    """
    Derive the relationship between viewer and target as seen by the viewer.
    Checks run in priority order and stop at the first match: identity,
    friend edge, outgoing pending request, incoming pending request.

    Parameters:
        store (DocumentStore): The document store.
        viewer_id (str): The user looking at the relationship.
        target_id (str): The other user.
    Returns:
        FriendshipStatus: The derived status.
    """
    if viewer_id == target_id:
        return FriendshipStatus.SELF

    try:
        if await friendship_crud.has_friend_edge(
            store=store, user_id=viewer_id, friend_id=target_id
        ):
            return FriendshipStatus.FRIENDS
        if await friendship_crud.find_pending_request(
            store=store, sender_id=viewer_id, receiver_id=target_id
        ):
            return FriendshipStatus.PENDING_SENT
        if await friendship_crud.find_pending_request(
            store=store, sender_id=target_id, receiver_id=viewer_id
        ):
            return FriendshipStatus.PENDING_RECEIVED
    except AppError:
        raise
    except Exception as e:
        raise AppError from e
    return FriendshipStatus.NONE


async def get_mutual_friends_count(
    *,
    store: DocumentStore,
    user_id: str,
    other_user_id: str,
) -> int:
    try:
        user_friends, other_friends = await asyncio.gather(
            friendship_crud.get_friend_ids(store=store, user_id=user_id),
            friendship_crud.get_friend_ids(store=store, user_id=other_user_id),
        )
    except AppError:
        raise
    except Exception as e:
        raise AppError from e
    return len(user_friends & other_friends)


async def get_batch_mutual_friends_count(
    *,
    store: DocumentStore,
    user_id: str,
    other_user_ids: list[str],
    degrade_on_error: bool = False,
) -> dict[str, int]:
    """
    Mutual-friend counts between one user and many others. The anchor user's
    friend set is fetched once; the others are fetched concurrently.

    Parameters:
        store (DocumentStore): The document store.
        user_id (str): The anchor user.
        other_user_ids (list[str]): Users to compare against.
        degrade_on_error (bool): Report 0 for a user whose friend list could
            not be read instead of failing the whole batch.
    Returns:
        dict[str, int]: Mutual-friend count per other user id.
    """
    other_ids = list(dict.fromkeys(other_user_ids))
    if not other_ids:
        return {}

    try:
        anchor = await friendship_crud.get_friend_ids(store=store, user_id=user_id)
        results = await asyncio.gather(
            *(
                friendship_crud.get_friend_ids(store=store, user_id=other_id)
                for other_id in other_ids
            ),
            return_exceptions=degrade_on_error,
        )
    except AppError:
        raise
    except Exception as e:
        raise AppError from e

    counts: dict[str, int] = {}
    for other_id, result in zip(other_ids, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning(
                "Could not read friends of %s for mutual count: %s", other_id, result
            )
            counts[other_id] = 0
            continue
        counts[other_id] = len(anchor & result)
    return counts


async def send_friend_request(
    *,
    store: DocumentStore,
    sender_id: str,
    receiver_id: str,
) -> FriendRequestPublic:
    """
    Send a friend request from sender to receiver.
    All preconditions are checked before anything is written; they are
    advisory, two clients racing can still both create a request.

    Raises:
        SelfRequestError: If sender and receiver are the same user.
        FriendshipAlreadyExistsError: If the users are already friends.
        DuplicateRequestError: If sender already has a pending request to receiver.
        InvalidTransitionError: If receiver already sent a pending request to sender.
        UserNotFound: If the receiver does not exist.
        AppError: For any other (unexpected) errors.
    """
    if sender_id == receiver_id:
        raise SelfRequestError(sender_id)

    current = await check_friendship_status(
        store=store, viewer_id=sender_id, target_id=receiver_id
    )
    if current == FriendshipStatus.FRIENDS:
        raise FriendshipAlreadyExistsError(sender_id, receiver_id)
    if current == FriendshipStatus.PENDING_SENT:
        raise DuplicateRequestError(sender_id, receiver_id)
    next_status(current, FriendAction.SEND_REQUEST)

    try:
        receiver = await users_crud.get_user_by_id(store=store, user_id=receiver_id)
        if receiver is None:
            raise UserNotFound(receiver_id)

        request = await friendship_crud.create_friend_request(
            store=store,
            sender_id=sender_id,
            receiver_id=receiver_id,
            created_at=utc_now(),
        )
    except AppError:
        raise
    except Exception as e:
        raise AppError from e
    logger.info("Friend request %s sent: %s -> %s", request.id, sender_id, receiver_id)
    return friendship_converters.to_request_public(
        request, viewer_id=sender_id, user=user_converters.to_public(receiver)
    )


async def _ensure_friend_edges(
    *,
    store: DocumentStore,
    user_id: str,
    friend_id: str,
    created_at: datetime,
    operation: str,
    repair_only: bool = False,
) -> list[str]:
    """
    Make sure both sides of a friendship exist, writing only the sides that
    are missing. Returns the paths that were written by this call.
    With repair_only, nothing is written unless one side already exists.

    Raises:
        InvalidTransitionError: If repair_only is set and neither side exists.
        PartialWriteError: If one side exists (or was just written) and the
            other could not be written.
    """
    sides = [(user_id, friend_id), (friend_id, user_id)]
    present = await asyncio.gather(
        *(
            friendship_crud.has_friend_edge(store=store, user_id=owner, friend_id=other)
            for owner, other in sides
        )
    )
    completed = [
        friend_path(owner, other) for (owner, other), has in zip(sides, present) if has
    ]
    if repair_only and not completed:
        raise InvalidTransitionError(
            FriendshipStatus.NONE, FriendAction.ACCEPT_REQUEST.value
        )
    written: list[str] = []

    for (owner, other), has in zip(sides, present):
        if has:
            continue
        path = friend_path(owner, other)
        try:
            await friendship_crud.create_friend_edge(
                store=store, user_id=owner, friend_id=other, created_at=created_at
            )
        except AppError as e:
            if not completed:
                raise
            missing = [
                friend_path(o, f)
                for (o, f), h in zip(sides, present)
                if not h and friend_path(o, f) not in completed
            ]
            logger.error(
                "%s left an asymmetric friendship between %s and %s: %s",
                operation,
                user_id,
                friend_id,
                e,
            )
            raise PartialWriteError(operation, completed, missing) from e
        completed.append(path)
        written.append(path)
    return written


async def accept_friend_request(
    *,
    store: DocumentStore,
    request_id: str,
    accepting_user_id: str,
) -> Message:
    """
    Accept a friend request addressed to accepting_user_id.
    Writes the friendship on both sides, then marks the request accepted.
    Safe to retry: sides that already exist are not written again. An
    accepted request only repairs a half-written friendship; once both sides
    are gone it cannot bring the friendship back.

    Raises:
        FriendRequestNotFoundError: If the friend request does not exist.
        NotRequestParticipantError: If accepting_user_id is not the receiver.
        InvalidTransitionError: If the request was declined or cancelled, or
            was accepted and the friendship has since been removed.
        PartialWriteError: If only one side of the friendship could be written.
        AppError: For any other (unexpected) errors.
    """
    try:
        request = await friendship_crud.get_friend_request(
            store=store, request_id=request_id
        )
        if request is None:
            raise FriendRequestNotFoundError(request_id)
        if request.to_user_id != accepting_user_id:
            raise NotRequestParticipantError(request_id, accepting_user_id, "accept")

        if request.status == FriendRequestStatus.PENDING:
            next_status(FriendshipStatus.PENDING_RECEIVED, FriendAction.ACCEPT_REQUEST)
        elif request.status != FriendRequestStatus.ACCEPTED:
            raise InvalidTransitionError(
                _viewer_status_for(request), FriendAction.ACCEPT_REQUEST.value
            )

        now = utc_now()
        written = await _ensure_friend_edges(
            store=store,
            user_id=request.to_user_id,
            friend_id=request.from_user_id,
            created_at=now,
            operation="Accepting friend request",
            repair_only=request.status == FriendRequestStatus.ACCEPTED,
        )
        if request.status == FriendRequestStatus.PENDING:
            await friendship_crud.set_friend_request_status(
                store=store,
                request_id=request_id,
                status=FriendRequestStatus.ACCEPTED,
                updated_at=now,
            )
    except AppError:
        raise
    except Exception as e:
        raise AppError from e

    logger.info(
        "Friend request %s accepted by %s (%d edge(s) written)",
        request_id,
        accepting_user_id,
        len(written),
    )
    return Message(message="Friend request accepted successfully.")


async def _close_request(
    *,
    store: DocumentStore,
    request_id: str,
    user_id: str,
    action: FriendAction,
) -> None:
    request = await friendship_crud.get_friend_request(
        store=store, request_id=request_id
    )
    if request is None:
        raise FriendRequestNotFoundError(request_id)

    if action == FriendAction.CANCEL_REQUEST:
        participant, viewer_status = request.from_user_id, FriendshipStatus.PENDING_SENT
        new_status, verb = FriendRequestStatus.CANCELLED, "cancel"
    else:
        participant, viewer_status = request.to_user_id, FriendshipStatus.PENDING_RECEIVED
        new_status, verb = FriendRequestStatus.DECLINED, "decline"

    if participant != user_id:
        raise NotRequestParticipantError(request_id, user_id, verb)
    if not request.is_active:
        raise InvalidTransitionError(_viewer_status_for(request), action.value)
    next_status(viewer_status, action)

    await friendship_crud.set_friend_request_status(
        store=store, request_id=request_id, status=new_status, updated_at=utc_now()
    )


async def decline_friend_request(
    *,
    store: DocumentStore,
    request_id: str,
    declining_user_id: str,
) -> Message:
    """
    Decline a pending friend request addressed to declining_user_id.

    Raises:
        FriendRequestNotFoundError: If the friend request does not exist.
        NotRequestParticipantError: If declining_user_id is not the receiver.
        InvalidTransitionError: If the request is no longer pending.
        AppError: For any other (unexpected) errors.
    """
    try:
        await _close_request(
            store=store,
            request_id=request_id,
            user_id=declining_user_id,
            action=FriendAction.DECLINE_REQUEST,
        )
    except AppError:
        raise
    except Exception as e:
        raise AppError from e
    logger.info("Friend request %s declined by %s", request_id, declining_user_id)
    return Message(message="Friend request declined successfully.")


async def cancel_friend_request(
    *,
    store: DocumentStore,
    request_id: str,
    cancelling_user_id: str,
) -> Message:
    """
    Cancel a pending friend request sent by cancelling_user_id.

    Raises:
        FriendRequestNotFoundError: If the friend request does not exist.
        NotRequestParticipantError: If cancelling_user_id is not the sender.
        InvalidTransitionError: If the request is no longer pending.
        AppError: For any other (unexpected) errors.
    """
    try:
        await _close_request(
            store=store,
            request_id=request_id,
            user_id=cancelling_user_id,
            action=FriendAction.CANCEL_REQUEST,
        )
    except AppError:
        raise
    except Exception as e:
        raise AppError from e
    logger.info("Friend request %s cancelled by %s", request_id, cancelling_user_id)
    return Message(message="Friend request cancelled successfully.")


async def remove_friend(
    *,
    store: DocumentStore,
    user_id: str,
    friend_id: str,
) -> Message:
    """
    Remove a friendship on both sides. A one-sided (asymmetric) friendship is
    cleaned up as well. Safe to retry after a partial failure.

    Raises:
        InvalidTransitionError: If user_id and friend_id are the same user.
        FriendshipNotFoundError: If neither side lists the other.
        PartialWriteError: If one side was removed and the other could not be.
        AppError: For any other (unexpected) errors.
    """
    if user_id == friend_id:
        raise InvalidTransitionError(
            FriendshipStatus.SELF, FriendAction.REMOVE_FRIEND.value
        )

    sides = [(user_id, friend_id), (friend_id, user_id)]
    try:
        present = await asyncio.gather(
            *(
                friendship_crud.has_friend_edge(
                    store=store, user_id=owner, friend_id=other
                )
                for owner, other in sides
            )
        )
        if not any(present):
            raise FriendshipNotFoundError(user_id, friend_id)
        next_status(FriendshipStatus.FRIENDS, FriendAction.REMOVE_FRIEND)

        removed: list[str] = []
        for (owner, other), has in zip(sides, present):
            if not has:
                continue
            try:
                await friendship_crud.delete_friend_edge(
                    store=store, user_id=owner, friend_id=other
                )
            except AppError as e:
                if not removed:
                    raise
                logger.error(
                    "Removing friendship between %s and %s left one side: %s",
                    user_id,
                    friend_id,
                    e,
                )
                raise PartialWriteError(
                    "Removing friend", removed, [friend_path(owner, other)]
                ) from e
            removed.append(friend_path(owner, other))
    except AppError:
        raise
    except Exception as e:
        raise AppError from e

    logger.info("Friendship removed: %s <-> %s", user_id, friend_id)
    return Message(message="Friend removed successfully.")


async def get_friends(*, store: DocumentStore, user_id: str) -> list[UserPublic]:
    """
    Get the profiles of a user's friends. Friends whose profile document is
    missing are skipped.
    """
    try:
        friend_ids = await friendship_crud.get_friend_ids(store=store, user_id=user_id)
        friends = await users_crud.get_users_by_ids(
            store=store, user_ids=sorted(friend_ids)
        )
    except AppError:
        raise
    except Exception as e:
        raise AppError from e
    return [user_converters.to_public(friend) for friend in friends]


async def get_friend_count(*, store: DocumentStore, user_id: str) -> int:
    return len(await get_friend_ids(store=store, user_id=user_id))


async def get_friend_requests(
    *,
    store: DocumentStore,
    user_id: str,
    direction: RequestDirection,
) -> list[FriendRequestPublic]:
    """
    Get a user's pending incoming or outgoing friend requests, newest first,
    each with the other party's profile.
    """
    try:
        requests = await friendship_crud.get_pending_requests(
            store=store, user_id=user_id, direction=direction
        )
        other_ids = [
            request.from_user_id
            if direction == RequestDirection.INCOMING
            else request.to_user_id
            for request in requests
        ]
        users = await users_crud.get_users_by_ids(
            store=store, user_ids=list(dict.fromkeys(other_ids))
        )
    except AppError:
        raise
    except Exception as e:
        raise AppError from e

    users_by_id = {user.id: user_converters.to_public(user) for user in users}
    return [
        friendship_converters.to_request_public(
            request, viewer_id=user_id, user=users_by_id.get(other_id)
        )
        for request, other_id in zip(requests, other_ids)
    ]


async def get_friendship_overview(
    *,
    store: DocumentStore,
    viewer_id: str,
    target_id: str,
) -> UserWithFriendStatus:
    """
    Raises:
        UserNotFound: If the target user does not exist.
    """
    try:
        target = await users_crud.get_user_by_id(store=store, user_id=target_id)
        if target is None:
            raise UserNotFound(target_id)
        status, mutual = await asyncio.gather(
            check_friendship_status(
                store=store, viewer_id=viewer_id, target_id=target_id
            ),
            get_mutual_friends_count(
                store=store, user_id=viewer_id, other_user_id=target_id
            ),
        )
    except AppError:
        raise
    except Exception as e:
        raise AppError from e
    if status == FriendshipStatus.SELF:
        mutual = 0
    return user_converters.to_with_friend_status(
        target, status=status, mutual_friends_count=mutual
    )
