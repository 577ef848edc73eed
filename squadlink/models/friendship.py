from datetime import datetime

from sqlmodel import Field, SQLModel

from squadlink.core.enums import FriendRequestStatus

__all__ = [
    "FriendEdge",
    "FriendRequest",
]


# One side of a friendship, document at users/{user_id}/friends/{friend_id}
class FriendEdge(SQLModel):
    user_id: str
    friend_id: str
    created_at: datetime | None = None


# Document at friendRequests/{id}
class FriendRequest(SQLModel):
    id: str
    from_user_id: str
    to_user_id: str
    status: FriendRequestStatus = Field(default=FriendRequestStatus.PENDING)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == FriendRequestStatus.PENDING
