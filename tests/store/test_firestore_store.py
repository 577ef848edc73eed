import pytest
from google.api_core import exceptions as google_exceptions
from pytest_mock import MockerFixture

from squadlink.exceptions.store_exceptions import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    NetworkError,
    StoreError,
    StorePermissionError,
)
from squadlink.store import DocumentSnapshot, FieldFilter
from squadlink.store import firestore as firestore_store
from squadlink.store.firestore import FirestoreDocumentStore

pytestmark = pytest.mark.asyncio


def _snapshot(mocker: MockerFixture, path: str, data: dict | None):
    snapshot = mocker.MagicMock()
    snapshot.exists = data is not None
    snapshot.id = path.rsplit("/", 1)[-1]
    snapshot.reference.path = path
    snapshot.to_dict.return_value = data
    return snapshot


async def _aiter(items):
    for item in items:
        yield item


@pytest.fixture
def client(mocker: MockerFixture):
    return mocker.MagicMock()


@pytest.fixture
def document(client, mocker: MockerFixture):
    ref = mocker.MagicMock()
    for method in ("get", "set", "create", "update", "delete"):
        setattr(ref, method, mocker.AsyncMock())
    client.document.return_value = ref
    return ref


async def test_get_existing_and_missing(client, document, mocker: MockerFixture):
    store = FirestoreDocumentStore(client)
    document.get.side_effect = [
        _snapshot(mocker, "users/alice", {"username": "alice"}),
        _snapshot(mocker, "users/ghost", None),
    ]

    assert await store.get("users/alice") == {"username": "alice"}
    assert await store.get("users/ghost") is None
    client.document.assert_any_call("users/alice")


async def test_get_many_keeps_request_order(client, mocker: MockerFixture):
    store = FirestoreDocumentStore(client)
    client.get_all = lambda refs: _aiter(
        [
            _snapshot(mocker, "users/b", {"n": 2}),
            _snapshot(mocker, "users/missing", None),
            _snapshot(mocker, "users/a", {"n": 1}),
        ]
    )

    result = await store.get_many(["users/a", "users/missing", "users/b"])

    assert result == [{"n": 1}, None, {"n": 2}]


@pytest.mark.parametrize(
    "error, expected",
    [
        (google_exceptions.ServiceUnavailable("unavailable"), NetworkError),
        (google_exceptions.DeadlineExceeded("deadline"), NetworkError),
        (google_exceptions.Aborted("contention"), NetworkError),
        (google_exceptions.PermissionDenied("rules"), StorePermissionError),
        (google_exceptions.Unauthenticated("no token"), StorePermissionError),
        (google_exceptions.InvalidArgument("bad"), StoreError),
    ],
)
async def test_errors_are_translated(client, document, error, expected):
    store = FirestoreDocumentStore(client)
    document.get.side_effect = error

    with pytest.raises(expected) as exc_info:
        await store.get("users/alice")

    assert exc_info.value.__cause__ is error


async def test_network_errors_are_retryable_and_permission_errors_are_not(
    client, document
):
    store = FirestoreDocumentStore(client)
    document.set.side_effect = google_exceptions.ServiceUnavailable("down")
    document.delete.side_effect = google_exceptions.PermissionDenied("rules")

    with pytest.raises(NetworkError) as network:
        await store.set("users/alice/friends/bob", {"friendId": "bob"})
    with pytest.raises(StorePermissionError) as permission:
        await store.delete("users/bob/friends/alice")

    assert network.value.retryable is True
    assert permission.value.retryable is False


async def test_create_existing_document(client, document):
    store = FirestoreDocumentStore(client)
    document.create.side_effect = google_exceptions.AlreadyExists("exists")

    with pytest.raises(DocumentAlreadyExistsError) as exc_info:
        await store.create("usernames/ace", {"uid": "alice"})

    assert exc_info.value.path == "usernames/ace"


async def test_update_missing_document(client, document):
    store = FirestoreDocumentStore(client)
    document.update.side_effect = google_exceptions.NotFound("missing")

    with pytest.raises(DocumentNotFoundError):
        await store.update("friendRequests/r1", {"status": "accepted"})


async def test_add_returns_generated_id(client, mocker: MockerFixture):
    store = FirestoreDocumentStore(client)
    ref = mocker.MagicMock()
    ref.id = "generated"
    client.collection.return_value.add = mocker.AsyncMock(return_value=(None, ref))

    assert await store.add("friendRequests", {"status": "pending"}) == "generated"


async def test_query_builds_filters_order_and_limit(client, mocker: MockerFixture):
    store = FirestoreDocumentStore(client)
    query = mocker.MagicMock()
    client.collection.return_value = query
    query.where.return_value = query
    query.order_by.return_value = query
    query.limit.return_value = query
    query.stream = lambda: _aiter([_snapshot(mocker, "friendRequests/r1", {"a": 1})])

    result = await store.query(
        "friendRequests",
        filters=[
            FieldFilter("toUserId", "==", "alice"),
            FieldFilter("status", "==", "pending"),
        ],
        order_by="createdAt",
        descending=True,
        limit=5,
    )

    assert [(s.id, s.path, s.data) for s in result] == [
        ("r1", "friendRequests/r1", {"a": 1})
    ]
    assert query.where.call_count == 2
    query.order_by.assert_called_once_with(
        "createdAt", direction=firestore_store.AsyncQuery.DESCENDING
    )
    query.limit.assert_called_once_with(5)
    query.start_after.assert_not_called()


async def test_query_start_after_uses_order_field_and_document_id(
    client, mocker: MockerFixture
):
    store = FirestoreDocumentStore(client)
    query = mocker.MagicMock()
    client.collection.return_value = query
    query.order_by.return_value = query
    query.start_after.return_value = query
    query.limit.return_value = query
    query.stream = lambda: _aiter([])
    last = DocumentSnapshot(id="u7", path="users/u7", data={"createdAt": 42})

    await store.query(
        "users", order_by="createdAt", descending=True, limit=10, start_after=last
    )

    assert query.order_by.call_args_list == [
        mocker.call("createdAt", direction=firestore_store.AsyncQuery.DESCENDING),
        mocker.call("__name__", direction=firestore_store.AsyncQuery.DESCENDING),
    ]
    query.document.assert_called_once_with("u7")
    query.start_after.assert_called_once_with(
        {"__name__": query.document.return_value, "createdAt": 42}
    )
    query.limit.assert_called_once_with(10)


async def test_query_translates_stream_errors(client, mocker: MockerFixture):
    store = FirestoreDocumentStore(client)

    async def failing_stream():
        raise google_exceptions.ServiceUnavailable("down")
        yield  # pragma: no cover

    client.collection.return_value.stream = failing_stream

    with pytest.raises(NetworkError):
        await store.query("users/alice/friends")
