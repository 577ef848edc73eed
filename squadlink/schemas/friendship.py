from datetime import datetime

from sqlmodel import Field, SQLModel

from squadlink.core.enums import FriendRequestStatus, RequestDirection, SuggestionReason

from .user import UserPublic

__all__ = [
    "FriendRequestPublic",
    "ContactSuggestionsIn",
    "GenreSimilarity",
    "SuggestionCandidate",
]


class FriendRequestPublic(SQLModel):
    id: str
    from_user_id: str
    to_user_id: str
    status: FriendRequestStatus
    direction: RequestDirection
    created_at: datetime | None
    user: UserPublic | None = None


class GenreSimilarity(SQLModel):
    shared: list[str] = Field(default_factory=list)
    score: float = 0.0


class SuggestionCandidate(SQLModel):
    user: UserPublic
    mutual_friends_count: int = 0
    similarity_score: float = Field(default=0.0, ge=0.0, le=1.0)
    shared_interests: list[str] = Field(default_factory=list)
    reason: SuggestionReason


class ContactSuggestionsIn(SQLModel):
    phone_numbers: list[str] = Field(default_factory=list, max_length=500)
    exclude: list[str] = Field(default_factory=list)
    limit: int = Field(default=20, ge=1, le=50)
