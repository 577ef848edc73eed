import itertools

import pytest

from squadlink.core.enums import FriendshipStatus
from squadlink.exceptions.friends_exceptions import InvalidTransitionError
from squadlink.services.friendship_state import (
    TRANSITIONS,
    FriendAction,
    can_transition,
    next_status,
)


@pytest.mark.parametrize(
    "current, action, expected",
    [
        (FriendshipStatus.NONE, FriendAction.SEND_REQUEST, FriendshipStatus.PENDING_SENT),
        (FriendshipStatus.PENDING_SENT, FriendAction.CANCEL_REQUEST, FriendshipStatus.NONE),
        (
            FriendshipStatus.PENDING_RECEIVED,
            FriendAction.ACCEPT_REQUEST,
            FriendshipStatus.FRIENDS,
        ),
        (
            FriendshipStatus.PENDING_RECEIVED,
            FriendAction.DECLINE_REQUEST,
            FriendshipStatus.NONE,
        ),
        (FriendshipStatus.FRIENDS, FriendAction.REMOVE_FRIEND, FriendshipStatus.NONE),
    ],
)
def test_legal_transitions(current, action, expected):
    assert can_transition(current, action)
    assert next_status(current, action) == expected


def test_only_listed_transitions_are_legal():
    for current, action in itertools.product(FriendshipStatus, FriendAction):
        if (current, action) in TRANSITIONS:
            continue
        assert not can_transition(current, action)
        with pytest.raises(InvalidTransitionError) as exc_info:
            next_status(current, action)
        assert exc_info.value.current == current
        assert exc_info.value.action == action.value


@pytest.mark.parametrize("action", list(FriendAction))
def test_self_is_a_fixed_point(action):
    with pytest.raises(InvalidTransitionError):
        next_status(FriendshipStatus.SELF, action)


@pytest.mark.parametrize(
    "current", [FriendshipStatus.FRIENDS, FriendshipStatus.PENDING_SENT]
)
def test_send_request_rejected_when_friends_or_already_sent(current):
    with pytest.raises(InvalidTransitionError):
        next_status(current, FriendAction.SEND_REQUEST)
