"""
Viewer-relative friendship state machine.

The state is never stored: it is derived from the friend edges and pending
requests between two users. Every write in ``squadlink.services.friends``
checks its transition here before touching the store.
"""

from enum import Enum, unique

from squadlink.core.enums import FriendshipStatus
from squadlink.exceptions.friends_exceptions import InvalidTransitionError


@unique
class FriendAction(str, Enum):
    SEND_REQUEST = "send_request"
    CANCEL_REQUEST = "cancel_request"
    ACCEPT_REQUEST = "accept_request"
    DECLINE_REQUEST = "decline_request"
    REMOVE_FRIEND = "remove_friend"


TRANSITIONS: dict[tuple[FriendshipStatus, FriendAction], FriendshipStatus] = {
    (FriendshipStatus.NONE, FriendAction.SEND_REQUEST): FriendshipStatus.PENDING_SENT,
    (FriendshipStatus.PENDING_SENT, FriendAction.CANCEL_REQUEST): FriendshipStatus.NONE,
    (FriendshipStatus.PENDING_RECEIVED, FriendAction.ACCEPT_REQUEST): FriendshipStatus.FRIENDS,
    (FriendshipStatus.PENDING_RECEIVED, FriendAction.DECLINE_REQUEST): FriendshipStatus.NONE,
    (FriendshipStatus.FRIENDS, FriendAction.REMOVE_FRIEND): FriendshipStatus.NONE,
}


def can_transition(current: FriendshipStatus, action: FriendAction) -> bool:
    return (current, action) in TRANSITIONS


def next_status(current: FriendshipStatus, action: FriendAction) -> FriendshipStatus:
    """
    Raises:
        InvalidTransitionError: If the action is not legal from ``current``.
    """
    try:
        return TRANSITIONS[(current, action)]
    except KeyError:
        raise InvalidTransitionError(current, action.value) from None
