from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "squadlink"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = False

    LOG_DIR: str = "logs"
    LOG_TIMEZONE: str = "Europe/Amsterdam"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Firebase / Firestore
    FIREBASE_PROJECT_ID: str | None = None
    FIREBASE_CREDENTIALS_PATH: str | None = None
    FIRESTORE_DATABASE: str = "(default)"

    # Firestore caps the size of "in" / "array-contains-any" value lists
    IN_QUERY_CHUNK_SIZE: int = 10

    # Friends and suggestions
    SEARCH_LIMIT: int = 20
    SUGGESTIONS_PAGE_SIZE: int = 20
    SUGGESTION_POOL_SIZE: int = 50
    MUTUAL_FRIEND_FANOUT: int = 10
    SUGGESTIONS_EXCLUDE_INCOMING: bool = True

    # Profile
    MAX_GAMING_GENRES: int = 8
    DISPLAY_NAME_MAX_LENGTH: int = 50
    BIO_MAX_LENGTH: int = 150


settings = Settings()  # type: ignore
