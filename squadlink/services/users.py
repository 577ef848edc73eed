import asyncio
import re
from logging import getLogger

from squadlink.converters import user as user_converters
from squadlink.core.config import settings
from squadlink.crud import user as users_crud
from squadlink.exceptions.base import AppError
from squadlink.exceptions.store_exceptions import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
)
from squadlink.exceptions.user_exceptions import (
    InvalidUsernameError,
    UsernameTakenError,
    UserNotFound,
)
from squadlink.models.user import UserUpdate
from squadlink.schemas.user import UsernameAvailability, UserPublic, UserWithFriendStatus
from squadlink.services import friends as friends_service
from squadlink.store import DocumentStore
from squadlink.utils import utc_now

logger = getLogger(__name__)

_USERNAME_PATTERN = re.compile(r"^[a-z0-9_.]{3,20}$")


def normalize_username(username: str) -> str:
    return username.strip().lower()


def is_valid_username(username: str) -> bool:
    return bool(_USERNAME_PATTERN.fullmatch(normalize_username(username)))


async def get_user(*, store: DocumentStore, user_id: str) -> UserPublic:
    """
    Get a user by their ID.

    Parameters:
        store (DocumentStore): The document store.
        user_id (str): ID of the user to retrieve.
    Returns:
        UserPublic: The public representation of the user.
    Raises:
        UserNotFound: If the user with the given ID does not exist.
    """
    user = await users_crud.get_user_by_id(store=store, user_id=user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user_converters.to_public(user)


async def search_users(
    *,
    store: DocumentStore,
    query: str,
    current_user_id: str,
    limit: int | None = None,
) -> list[UserWithFriendStatus]:
    """
    Search users by username or display name prefix, case-insensitively.
    Username matches come first. The searching user is never included.

    Parameters:
        store (DocumentStore): The document store.
        query (str): Search text.
        current_user_id (str): ID of the user searching.
        limit (int | None): Maximum number of users; defaults to SEARCH_LIMIT.
    Returns:
        list[UserWithFriendStatus]: Matching users with their friend status
            and mutual-friend count relative to the searching user.
    """
    if limit is None:
        limit = settings.SEARCH_LIMIT
    prefix = query.strip().lower()
    if not prefix or limit <= 0:
        return []

    try:
        # One extra so dropping the searching user still fills the page
        by_username, by_display_name = await asyncio.gather(
            users_crud.search_users_by_prefix(
                store=store, field="usernameLower", prefix=prefix, limit=limit + 1
            ),
            users_crud.search_users_by_prefix(
                store=store, field="displayNameLower", prefix=prefix, limit=limit + 1
            ),
        )
        users = {}
        for user in [*by_username, *by_display_name]:
            if user.id != current_user_id and user.id not in users:
                users[user.id] = user
        matches = list(users.values())[:limit]

        statuses = await asyncio.gather(
            *(
                friends_service.check_friendship_status(
                    store=store, viewer_id=current_user_id, target_id=user.id
                )
                for user in matches
            )
        )
        mutual_counts = await friends_service.get_batch_mutual_friends_count(
            store=store,
            user_id=current_user_id,
            other_user_ids=[user.id for user in matches],
            degrade_on_error=True,
        )
    except AppError:
        raise
    except Exception as e:
        raise AppError from e

    return [
        user_converters.to_with_friend_status(
            user, status=status, mutual_friends_count=mutual_counts.get(user.id, 0)
        )
        for user, status in zip(matches, statuses)
    ]


async def is_username_available(
    *,
    store: DocumentStore,
    username: str,
) -> UsernameAvailability:
    normalized = normalize_username(username)
    if not is_valid_username(normalized):
        return UsernameAvailability(
            username=normalized, available=False, reason="invalid"
        )
    owner = await users_crud.get_username_owner(store=store, username=normalized)
    if owner is not None:
        return UsernameAvailability(username=normalized, available=False, reason="taken")
    return UsernameAvailability(username=normalized, available=True)


async def reserve_username(
    *,
    store: DocumentStore,
    user_id: str,
    username: str,
) -> UserPublic:
    """
    Claim a username for a user and set it on their profile.

    The reservation document is created only if it does not exist yet, so
    of two users racing for the same name exactly one wins. Reserving the
    name the user already holds changes nothing. The user's previous name is
    released afterwards.

    Parameters:
        store (DocumentStore): The document store.
        user_id (str): ID of the user claiming the name.
        username (str): The requested username.
    Returns:
        UserPublic: The updated user.
    Raises:
        InvalidUsernameError: If the username does not match the allowed format.
        UserNotFound: If the user does not exist.
        UsernameTakenError: If another user holds the username.
        AppError: For any other (unexpected) errors.
    """
    normalized = normalize_username(username)
    if not is_valid_username(normalized):
        raise InvalidUsernameError(username)

    try:
        user = await users_crud.get_user_by_id(store=store, user_id=user_id)
        if user is None:
            raise UserNotFound(user_id)
        previous = normalize_username(user.username) if user.username else None

        owner = await users_crud.get_username_owner(store=store, username=normalized)
        if owner == user_id and previous == normalized:
            return user_converters.to_public(user)
        if owner is not None and owner != user_id:
            raise UsernameTakenError(normalized)

        if owner is None:
            try:
                await users_crud.reserve_username(
                    store=store, username=normalized, user_id=user_id
                )
            except DocumentAlreadyExistsError as e:
                raise UsernameTakenError(normalized) from e

        try:
            await users_crud.update_user(
                store=store, user_id=user_id, values={"username": normalized}
            )
        except AppError:
            await users_crud.release_username(store=store, username=normalized)
            raise

        if previous and previous != normalized:
            previous_owner = await users_crud.get_username_owner(
                store=store, username=previous
            )
            if previous_owner == user_id:
                await users_crud.release_username(store=store, username=previous)
    except AppError:
        raise
    except Exception as e:
        raise AppError from e

    logger.info("User %s reserved username %s", user_id, normalized)
    user.username = normalized
    return user_converters.to_public(user)


async def update_profile(
    *,
    store: DocumentStore,
    user_id: str,
    user_in: UserUpdate,
) -> UserPublic:
    """
    Apply a partial profile update. Only fields set on user_in are written.

    Parameters:
        store (DocumentStore): The document store.
        user_id (str): ID of the user to update.
        user_in (UserUpdate): The validated changes.
    Returns:
        UserPublic: The user as stored after the update.
    Raises:
        UserNotFound: If the user does not exist.
        AppError: For any other (unexpected) errors.
    """
    values = user_in.model_dump(exclude_unset=True)
    try:
        if values:
            values["last_active"] = utc_now()
            await users_crud.update_user(store=store, user_id=user_id, values=values)
        user = await users_crud.get_user_by_id(store=store, user_id=user_id)
    except DocumentNotFoundError as e:
        raise UserNotFound(user_id) from e
    except AppError:
        raise
    except Exception as e:
        raise AppError from e

    if user is None:
        raise UserNotFound(user_id)
    return user_converters.to_public(user)
