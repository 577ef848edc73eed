from fastapi import status

from squadlink.core.enums import FriendshipStatus

from .base import AppError


class FriendRequestNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, request_id: str):
        detail = f"Friend request not found. No friend request with id {request_id} exists."
        super().__init__(detail)


class FriendshipNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, user_id: str, friend_id: str):
        detail = f"Friendship not found. User with id {user_id} is not friends with user with id {friend_id}."
        super().__init__(detail)


class NotRequestParticipantError(AppError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, request_id: str, user_id: str, action: str):
        detail = f"User with id {user_id} is not allowed to {action} friend request {request_id}."
        super().__init__(detail)


class InvalidTransitionError(AppError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current: FriendshipStatus, action: str, detail: str | None = None):
        self.current = current
        self.action = action
        if detail is None:
            detail = f"Cannot {action} while the friendship status is '{current.value}'."
        super().__init__(detail)


class SelfRequestError(InvalidTransitionError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, user_id: str):
        detail = f"User with id {user_id} cannot send a friend request to themselves."
        super().__init__(FriendshipStatus.SELF, "send_request", detail)


class DuplicateRequestError(InvalidTransitionError):
    def __init__(self, sender_id: str, receiver_id: str):
        detail = f"Friend request already exists. User with id {sender_id} has already requested friendship with user {receiver_id}."
        super().__init__(FriendshipStatus.PENDING_SENT, "send_request", detail)


class FriendshipAlreadyExistsError(InvalidTransitionError):
    def __init__(self, user_id: str, friend_id: str):
        detail = f"Friendship already exists. User with id {user_id} is already friends with user with id {friend_id}."
        super().__init__(FriendshipStatus.FRIENDS, "send_request", detail)


class PartialWriteError(AppError):
    """
    One side of a two-sided friendship write succeeded and the other did not.
    The succeeded side is left in place; retrying the whole operation only
    touches the missing side.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True

    def __init__(self, operation: str, completed: list[str], missing: list[str]):
        self.operation = operation
        self.completed = completed
        self.missing = missing
        detail = (
            f"{operation} only partially completed. "
            f"Written: {', '.join(completed) or '-'}; pending: {', '.join(missing)}. "
            "Retry to finish the operation."
        )
        super().__init__(detail)
