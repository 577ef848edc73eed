USERS = "users"
FRIENDS = "friends"
FRIEND_REQUESTS = "friendRequests"
USERNAMES = "usernames"

__all__ = [
    "USERS",
    "FRIENDS",
    "FRIEND_REQUESTS",
    "USERNAMES",
    "user_path",
    "friends_collection",
    "friend_path",
    "friend_request_path",
    "username_path",
]


def user_path(user_id: str) -> str:
    return f"{USERS}/{user_id}"


def friends_collection(user_id: str) -> str:
    return f"{USERS}/{user_id}/{FRIENDS}"


def friend_path(user_id: str, friend_id: str) -> str:
    return f"{friends_collection(user_id)}/{friend_id}"


def friend_request_path(request_id: str) -> str:
    return f"{FRIEND_REQUESTS}/{request_id}"


def username_path(username: str) -> str:
    return f"{USERNAMES}/{username.lower()}"
