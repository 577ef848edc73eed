from datetime import datetime

from sqlmodel import Field, SQLModel

from squadlink.core.enums import FriendshipStatus
from squadlink.models.user import UserBase, UserStats

__all__ = [
    "UserPublic",
    "UserWithFriendStatus",
    "UsernameAvailability",
]


class UserPublic(UserBase):
    id: str
    stats: UserStats
    last_active: datetime | None


class UserWithFriendStatus(UserPublic):
    friendship_status: FriendshipStatus
    mutual_friends_count: int = 0


class UsernameAvailability(SQLModel):
    username: str
    available: bool
    reason: str | None = Field(default=None)
