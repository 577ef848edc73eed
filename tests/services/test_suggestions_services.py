from datetime import datetime, timezone

import pytest

from squadlink.core.config import settings
from squadlink.core.enums import SuggestionReason
from squadlink.exceptions.store_exceptions import NetworkError
from squadlink.exceptions.user_exceptions import UserNotFound
from squadlink.services import suggestions as suggestions_services
from squadlink.store import friends_collection


@pytest.fixture
def community(add_user, add_friendship, add_friend_request):
    add_user(id="alice", gaming_interests=["fps", "action"])
    add_user(id="bob", gaming_interests=["fps", "action"])
    add_user(id="carol", gaming_interests=["fps", "racing"])
    add_user(id="dave", gaming_interests=["fps"])
    add_user(id="erin", gaming_interests=["fps"])
    add_user(id="frank", gaming_interests=["action"])
    add_user(id="gina", gaming_interests=[])
    add_user(id="hank", gaming_interests=["puzzle"])

    add_friendship("alice", "dave")
    add_friendship("dave", "gina")
    add_friend_request("alice", "erin")
    add_friend_request("frank", "alice")


def _ids(suggestions) -> list[str]:
    return [s.user.id for s in suggestions]


@pytest.mark.asyncio
async def test_get_friend_suggestions_ranking_and_exclusions(store, community):
    suggestions = await suggestions_services.get_friend_suggestions(
        store=store, user_id="alice"
    )

    assert _ids(suggestions) == ["bob", "carol", "gina"]
    bob, carol, gina = suggestions
    assert bob.similarity_score == 1.0
    assert bob.shared_interests == ["action", "fps"]
    assert bob.reason == SuggestionReason.GAMING
    assert carol.similarity_score == pytest.approx(1 / 3)
    assert gina.similarity_score == 0.0
    assert gina.mutual_friends_count == 1
    assert gina.reason == SuggestionReason.MUTUAL


@pytest.mark.asyncio
async def test_suggestions_never_include_self_friends_or_sent_requests(
    store, community
):
    ids = _ids(
        await suggestions_services.get_friend_suggestions(store=store, user_id="alice")
    )

    assert "alice" not in ids
    assert "dave" not in ids
    assert "erin" not in ids


@pytest.mark.asyncio
async def test_suggestions_keep_incoming_requests_when_configured(
    store, community, monkeypatch
):
    monkeypatch.setattr(settings, "SUGGESTIONS_EXCLUDE_INCOMING", False)

    suggestions = await suggestions_services.get_friend_suggestions(
        store=store, user_id="alice"
    )

    assert _ids(suggestions) == ["bob", "frank", "carol", "gina"]


@pytest.mark.asyncio
async def test_suggestions_respect_exclude_ids_and_limit(store, community):
    suggestions = await suggestions_services.get_friend_suggestions(
        store=store, user_id="alice", exclude_ids=["bob"], limit=1
    )

    assert _ids(suggestions) == ["carol"]


@pytest.mark.asyncio
async def test_suggestions_degrade_failed_mutual_count(store, community):
    store.fail_on("query", NetworkError(), path=friends_collection("gina"))

    suggestions = await suggestions_services.get_friend_suggestions(
        store=store, user_id="alice"
    )

    gina = next(s for s in suggestions if s.user.id == "gina")
    assert gina.mutual_friends_count == 0
    assert gina.reason == SuggestionReason.CONTACT


@pytest.mark.asyncio
async def test_suggestions_without_interests_use_recent_users(store, add_user):
    add_user(id="alice")
    add_user(id="bob", gaming_interests=["rpg"])
    add_user(id="carol")

    suggestions = await suggestions_services.get_friend_suggestions(
        store=store, user_id="alice"
    )

    assert _ids(suggestions) == ["bob", "carol"]
    assert {s.reason for s in suggestions} == {SuggestionReason.CONTACT}


@pytest.mark.asyncio
async def test_suggestions_look_past_known_users_sharing_an_interest(
    store, add_user, add_friendship, monkeypatch
):
    monkeypatch.setattr(settings, "SUGGESTION_POOL_SIZE", 5)
    add_user(id="a000", gaming_interests=["fps"])
    for n in range(1, 8):
        add_user(id=f"f{n:03d}", gaming_interests=["fps"])
        add_friendship("a000", f"f{n:03d}")
    add_user(id="zz_stranger", gaming_interests=["fps"])

    suggestions = await suggestions_services.get_friend_suggestions(
        store=store, user_id="a000"
    )

    assert _ids(suggestions) == ["zz_stranger"]
    assert suggestions[0].reason == SuggestionReason.GAMING


@pytest.mark.asyncio
async def test_recent_users_look_past_known_users(
    store, add_user, add_friendship, monkeypatch
):
    monkeypatch.setattr(settings, "SUGGESTION_POOL_SIZE", 2)
    add_user(id="alice", created_at=datetime(2025, 1, 1, tzinfo=timezone.utc))
    for day in range(1, 5):
        joined = datetime(2025, 6, day, tzinfo=timezone.utc)
        add_user(id=f"friend{day}", created_at=joined)
        add_friendship("alice", f"friend{day}")
    add_user(id="old_timer", created_at=datetime(2020, 1, 1, tzinfo=timezone.utc))

    suggestions = await suggestions_services.get_friend_suggestions(
        store=store, user_id="alice"
    )

    assert _ids(suggestions) == ["old_timer"]


@pytest.mark.asyncio
async def test_suggestions_from_contacts(store, add_user, add_friendship):
    add_user(id="alice", gaming_interests=["rpg"])
    add_user(id="bob", phone_number="+31600000001", gaming_interests=["rpg"])
    add_user(id="carol", phone_number="+31600000002")
    add_user(id="dave", phone_number="+31600000003")
    add_user(id="erin", phone_number="+31600000004")
    add_friendship("alice", "dave")

    suggestions = await suggestions_services.get_friend_suggestions(
        store=store,
        user_id="alice",
        contact_phone_numbers=["+31600000001", "+31600000002", "+31600000003"],
    )

    assert _ids(suggestions) == ["bob", "carol"]
    assert [s.reason for s in suggestions] == [
        SuggestionReason.GAMING,
        SuggestionReason.CONTACT,
    ]


@pytest.mark.asyncio
async def test_suggestions_unknown_user(store):
    with pytest.raises(UserNotFound):
        await suggestions_services.get_friend_suggestions(store=store, user_id="ghost")


@pytest.mark.asyncio
async def test_suggestions_propagate_store_errors(store, community):
    store.fail_on("query", NetworkError(), path="users")

    with pytest.raises(NetworkError):
        await suggestions_services.get_friend_suggestions(store=store, user_id="alice")


# --------------------------------------
# rank_candidates
# --------------------------------------


def test_rank_candidates_orders_by_score_then_mutual_then_id(user_factory):
    viewer = user_factory.build(id="viewer", gaming_interests=["rpg", "strategy"])
    candidates = [
        user_factory.build(id="c", gaming_interests=[]),
        user_factory.build(id="b", gaming_interests=[]),
        user_factory.build(id="a", gaming_interests=["rpg"]),
        user_factory.build(id="d", gaming_interests=[]),
        user_factory.build(id="a", gaming_interests=["rpg"]),
    ]

    ranked = suggestions_services.rank_candidates(
        viewer, candidates, {"b": 3, "d": 3, "c": 1}
    )

    assert _ids(ranked) == ["a", "b", "d", "c"]
    assert [s.reason for s in ranked] == [
        SuggestionReason.GAMING,
        SuggestionReason.MUTUAL,
        SuggestionReason.MUTUAL,
        SuggestionReason.MUTUAL,
    ]


def test_rank_candidates_drops_viewer_and_excluded(user_factory):
    viewer = user_factory.build(id="viewer")
    candidates = [
        user_factory.build(id="viewer"),
        user_factory.build(id="friend"),
        user_factory.build(id="stranger"),
    ]

    ranked = suggestions_services.rank_candidates(
        viewer, candidates, {}, exclude_ids={"friend"}
    )

    assert _ids(ranked) == ["stranger"]
    assert ranked[0].reason == SuggestionReason.CONTACT


@pytest.mark.parametrize(
    "score, mutual, expected",
    [
        (0.5, 0, SuggestionReason.GAMING),
        (0.5, 4, SuggestionReason.GAMING),
        (0.0, 2, SuggestionReason.MUTUAL),
        (0.0, 0, SuggestionReason.CONTACT),
    ],
)
def test_suggestion_reason(score, mutual, expected):
    assert suggestions_services.suggestion_reason(score, mutual) == expected
