from collections.abc import AsyncIterator
from logging import getLogger
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from firebase_admin import auth as firebase_auth

from squadlink.crud import user as users_crud
from squadlink.exceptions.user_exceptions import UserNotFound
from squadlink.models.user import User
from squadlink.store import DocumentStore
from squadlink.store.firestore import FirestoreDocumentStore, get_firebase_app

logger = getLogger(__name__)

_store: DocumentStore | None = None


async def get_store() -> AsyncIterator[DocumentStore]:
    global _store
    if _store is None:
        _store = FirestoreDocumentStore()
    yield _store


StoreDep = Annotated[DocumentStore, Depends(get_store)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user_id(authorization: Annotated[str | None, Header()] = None) -> str:
    """
    Resolve the calling user from an "Authorization: Bearer <Firebase ID token>"
    header.
    """
    if not authorization:
        raise _unauthorized("Authorization header required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Invalid authorization format. Use: Bearer <token>")

    try:
        claims = firebase_auth.verify_id_token(token, app=get_firebase_app())
    except (
        firebase_auth.InvalidIdTokenError,
        firebase_auth.ExpiredIdTokenError,
        firebase_auth.RevokedIdTokenError,
    ) as e:
        logger.info("Rejected ID token: %s", e)
        raise _unauthorized("Invalid or expired token") from e
    return claims["uid"]


CurrentUserId = Annotated[str, Depends(get_current_user_id)]


async def get_current_user(store: StoreDep, user_id: CurrentUserId) -> User:
    user = await users_crud.get_user_by_id(store=store, user_id=user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
