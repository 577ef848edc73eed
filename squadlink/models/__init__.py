from .user import *
from .friendship import *
from .message import *

__all__ = [
    "MediaRef",
    "UserStats",
    "UserBase",
    "UserUpdate",
    "User",
    "FriendEdge",
    "FriendRequest",
    "Message",
]
