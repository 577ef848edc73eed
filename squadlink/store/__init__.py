from .base import DocumentSnapshot, DocumentStore, FieldFilter
from .paths import *

__all__ = [
    "DocumentSnapshot",
    "DocumentStore",
    "FieldFilter",
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
