from datetime import datetime

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from squadlink.core.config import settings
from squadlink.core.genres import normalize_gaming_genres

__all__ = [
    "MediaRef",
    "UserStats",
    "UserBase",
    "UserUpdate",
    "User",
]


class MediaRef(SQLModel):
    """Reference into object storage (avatars/{uid}/..., banners/{uid}/...)."""

    url: str
    sizes: dict[str, str] = Field(default_factory=dict)


class UserStats(SQLModel):
    victories: int = 0
    highlights: int = 0
    achievements: int = 0


# Shared properties
class UserBase(SQLModel):
    username: str | None = Field(default=None, max_length=20)
    display_name: str | None = Field(
        default=None, max_length=settings.DISPLAY_NAME_MAX_LENGTH
    )
    bio: str | None = Field(default=None, max_length=settings.BIO_MAX_LENGTH)
    status_message: str | None = Field(default=None, max_length=100)
    gaming_interests: list[str] = Field(default_factory=list)
    avatar: MediaRef | None = None
    banner: MediaRef | None = None


# Properties to receive via API on update, all are optional
class UserUpdate(SQLModel):
    display_name: str | None = Field(
        default=None, min_length=1, max_length=settings.DISPLAY_NAME_MAX_LENGTH
    )
    bio: str | None = Field(default=None, max_length=settings.BIO_MAX_LENGTH)
    status_message: str | None = Field(default=None, max_length=100)
    gaming_interests: list[str] | None = None
    avatar: MediaRef | None = None
    banner: MediaRef | None = None

    @field_validator("display_name", "bio", "status_message", mode="before")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("gaming_interests")
    @classmethod
    def check_gaming_interests(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return normalize_gaming_genres(
            value, max_selections=settings.MAX_GAMING_GENRES
        )


# Stored profile, document at users/{id}
class User(UserBase):
    id: str
    # Private, used to match address-book contacts
    phone_number: str | None = None
    stats: UserStats = Field(default_factory=UserStats)
    created_at: datetime | None = None
    last_active: datetime | None = None
