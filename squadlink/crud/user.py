import asyncio
from collections.abc import Collection, Sequence
from typing import Any

from squadlink.converters import user as user_converters
from squadlink.core.config import settings
from squadlink.models.user import User
from squadlink.store import USERS, DocumentStore, FieldFilter, user_path, username_path

# Upper bound of a prefix range query
_PREFIX_END = "\uf8ff"


def _chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


async def get_user_by_id(*, store: DocumentStore, user_id: str) -> User | None:
    """
    Get a user by their ID.

    Parameters:
        store (DocumentStore): The document store.
        user_id (str): The ID of the user to retrieve.
    Returns:
        User | None: The user if the document exists, otherwise None.
    """
    data = await store.get(user_path(user_id))
    if data is None:
        return None
    return user_converters.from_document(user_id, data)


async def get_users_by_ids(*, store: DocumentStore, user_ids: list[str]) -> list[User]:
    """
    Get several users, fetched in chunks. Users whose document is missing are
    skipped; the order of user_ids is kept for the rest.
    """
    chunks = _chunks(user_ids, settings.IN_QUERY_CHUNK_SIZE)
    results = await asyncio.gather(
        *(store.get_many([user_path(uid) for uid in chunk]) for chunk in chunks)
    )
    users: list[User] = []
    for chunk, documents in zip(chunks, results):
        for user_id, data in zip(chunk, documents):
            if data is not None:
                users.append(user_converters.from_document(user_id, data))
    return users


async def search_users_by_prefix(
    *,
    store: DocumentStore,
    field: str,
    prefix: str,
    limit: int,
) -> list[User]:
    """
    Prefix match on a lowercased field (usernameLower / displayNameLower).

    Parameters:
        store (DocumentStore): The document store.
        field (str): The document key to match on.
        prefix (str): Lowercased prefix.
        limit (int): Maximum number of users to return.
    Returns:
        list[User]: Matching users ordered by the matched field.
    """
    snapshots = await store.query(
        USERS,
        filters=[
            FieldFilter(field, ">=", prefix),
            FieldFilter(field, "<=", prefix + _PREFIX_END),
        ],
        order_by=field,
        limit=limit,
    )
    return [
        user_converters.from_document(snapshot.id, snapshot.data)
        for snapshot in snapshots
    ]


async def _query_users(
    *,
    store: DocumentStore,
    limit: int,
    exclude_ids: Collection[str] = (),
    filters: Sequence[FieldFilter] = (),
    order_by: str | None = None,
    descending: bool = False,
    page_size: int | None = None,
) -> list[User]:
    """
    Page through a users query until limit users outside exclude_ids were
    found or the query runs out.
    """
    page_size = page_size or limit
    users: list[User] = []
    cursor = None
    while len(users) < limit:
        snapshots = await store.query(
            USERS,
            filters=filters,
            order_by=order_by,
            descending=descending,
            limit=page_size,
            start_after=cursor,
        )
        users.extend(
            user_converters.from_document(snapshot.id, snapshot.data)
            for snapshot in snapshots
            if snapshot.id not in exclude_ids
        )
        if len(snapshots) < page_size:
            break
        cursor = snapshots[-1]
    return users[:limit]


async def get_users_by_interests(
    *,
    store: DocumentStore,
    interests: list[str],
    limit: int,
    exclude_ids: Collection[str] = (),
) -> list[User]:
    """
    Get users that declared at least one of the given interests.

    Parameters:
        store (DocumentStore): The document store.
        interests (list[str]): Interests to match, queried in chunks.
        limit (int): Maximum number of users to return.
        exclude_ids (Collection[str]): Users to skip. Skipped users do not
            count towards limit.
    Returns:
        list[User]: Matching users, each at most once.
    """
    skip = set(exclude_ids)
    users: list[User] = []
    for chunk in _chunks(sorted(interests), settings.IN_QUERY_CHUNK_SIZE):
        if len(users) >= limit:
            break
        found = await _query_users(
            store=store,
            limit=limit - len(users),
            exclude_ids=skip,
            filters=[FieldFilter("gamingInterests", "array_contains_any", chunk)],
            page_size=limit,
        )
        skip.update(user.id for user in found)
        users.extend(found)
    return users


async def get_recent_users(
    *,
    store: DocumentStore,
    limit: int,
    exclude_ids: Collection[str] = (),
) -> list[User]:
    return await _query_users(
        store=store,
        limit=limit,
        exclude_ids=exclude_ids,
        order_by="createdAt",
        descending=True,
    )


async def get_users_by_phone_numbers(
    *,
    store: DocumentStore,
    phone_numbers: list[str],
    exclude_ids: Collection[str] = (),
) -> list[User]:
    """
    Get users registered with one of the given phone numbers, queried in
    chunks. Users in exclude_ids are skipped.
    """
    numbers = list(dict.fromkeys(number for number in phone_numbers if number))
    chunks = _chunks(numbers, settings.IN_QUERY_CHUNK_SIZE)
    results = await asyncio.gather(
        *(
            store.query(USERS, filters=[FieldFilter("phoneNumber", "in", chunk)])
            for chunk in chunks
        )
    )
    seen = set(exclude_ids)
    users: list[User] = []
    for snapshots in results:
        for snapshot in snapshots:
            if snapshot.id in seen:
                continue
            seen.add(snapshot.id)
            users.append(user_converters.from_document(snapshot.id, snapshot.data))
    return users


async def update_user(
    *,
    store: DocumentStore,
    user_id: str,
    values: dict[str, Any],
) -> None:
    """
    Partially update a user document.

    Parameters:
        store (DocumentStore): The document store.
        user_id (str): The ID of the user to update.
        values (dict[str, Any]): Model field names mapped to their new values.
    Raises:
        DocumentNotFoundError: If the user document does not exist.
    """
    document = user_converters.to_document(values)
    if not document:
        return
    await store.update(user_path(user_id), document)


async def get_username_owner(*, store: DocumentStore, username: str) -> str | None:
    data = await store.get(username_path(username))
    if data is None:
        return None
    return data.get("uid")


async def reserve_username(
    *,
    store: DocumentStore,
    username: str,
    user_id: str,
) -> None:
    """
    Claim usernames/{username} for a user. The write only succeeds if nobody
    holds the name yet.

    Raises:
        DocumentAlreadyExistsError: If the username is already reserved.
    """
    await store.create(username_path(username), {"uid": user_id})


async def release_username(*, store: DocumentStore, username: str) -> None:
    await store.delete(username_path(username))
