from typing import Any

from squadlink.core.enums import FriendshipStatus
from squadlink.models.user import User
from squadlink.schemas.user import UserPublic, UserWithFriendStatus

# camelCase document key -> model field
_USER_FIELDS = {
    "username": "username",
    "displayName": "display_name",
    "bio": "bio",
    "statusMessage": "status_message",
    "gamingInterests": "gaming_interests",
    "avatar": "avatar",
    "banner": "banner",
    "stats": "stats",
    "createdAt": "created_at",
    "lastActive": "last_active",
    "phoneNumber": "phone_number",
}
_USER_KEYS = {field: key for key, field in _USER_FIELDS.items()}
_PRIVATE_FIELDS = {"created_at", "phone_number"}


def from_document(user_id: str, data: dict[str, Any]) -> User:
    """
    Build a User from a users/{id} document. Unknown keys are ignored and
    missing ones fall back to model defaults.
    """
    values = {
        field: data[key]
        for key, field in _USER_FIELDS.items()
        if data.get(key) is not None
    }
    return User.model_validate({"id": user_id, **values})


def to_document(values: dict[str, Any]) -> dict[str, Any]:
    """
    Map model field names to document keys. Lowercased copies of username and
    display name are added for case-insensitive prefix queries.
    """
    document: dict[str, Any] = {}
    for field, value in values.items():
        key = _USER_KEYS.get(field)
        if key is None:
            continue
        if hasattr(value, "model_dump"):
            value = value.model_dump()
        document[key] = value

    if values.get("username") is not None:
        document["usernameLower"] = values["username"].lower()
    if values.get("display_name") is not None:
        document["displayNameLower"] = values["display_name"].lower()
    return document


def to_public(user: User) -> UserPublic:
    User.model_validate(user)
    return UserPublic(**user.model_dump(exclude=_PRIVATE_FIELDS))


def to_with_friend_status(
    user: User,
    *,
    status: FriendshipStatus,
    mutual_friends_count: int = 0,
) -> UserWithFriendStatus:
    User.model_validate(user)
    return UserWithFriendStatus(
        **user.model_dump(exclude=_PRIVATE_FIELDS),
        friendship_status=status,
        mutual_friends_count=mutual_friends_count,
    )
