import asyncio
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from logging import getLogger
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore import AsyncClient, AsyncQuery
from google.cloud.firestore_v1.field_path import FieldPath
from google.cloud.firestore_v1.base_query import FieldFilter as FirestoreFieldFilter

from squadlink.core.config import settings
from squadlink.exceptions.store_exceptions import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    NetworkError,
    StoreError,
    StorePermissionError,
)

from .base import DocumentSnapshot, DocumentStore, FieldFilter

__all__ = [
    "FirestoreDocumentStore",
    "get_firebase_app",
]

logger = getLogger(__name__)

_TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.Aborted,
    google_exceptions.TooManyRequests,
    google_exceptions.RetryError,
    asyncio.TimeoutError,
)

_PERMISSION_ERRORS = (
    google_exceptions.PermissionDenied,
    google_exceptions.Unauthenticated,
    google_exceptions.Forbidden,
)


def get_firebase_app() -> firebase_admin.App:
    """
    Return the default Firebase app, initialising it on first use.
    Without a credentials path the SDK falls back to application default
    credentials (or the emulator when FIRESTORE_EMULATOR_HOST is set).
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    cred = None
    if settings.FIREBASE_CREDENTIALS_PATH:
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
    options = {}
    if settings.FIREBASE_PROJECT_ID:
        options["projectId"] = settings.FIREBASE_PROJECT_ID
    logger.info("Initialising Firebase app (project=%s)", settings.FIREBASE_PROJECT_ID)
    return firebase_admin.initialize_app(cred, options or None)


@contextmanager
def _translate_errors(path: str) -> Iterator[None]:
    try:
        yield
    except _TRANSIENT_ERRORS as e:
        logger.warning("Transient store failure on %s: %s", path, e)
        raise NetworkError from e
    except _PERMISSION_ERRORS as e:
        raise StorePermissionError(path) from e
    except google_exceptions.GoogleAPIError as e:
        raise StoreError(f"Document store error on '{path}': {e}") from e


class FirestoreDocumentStore(DocumentStore):
    def __init__(self, client: AsyncClient | None = None):
        if client is None:
            client = firestore_async.client(
                app=get_firebase_app(), database_id=settings.FIRESTORE_DATABASE
            )
        self._client = client

    async def get(self, path: str) -> dict[str, Any] | None:
        with _translate_errors(path):
            snapshot = await self._client.document(path).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    async def get_many(self, paths: Sequence[str]) -> list[dict[str, Any] | None]:
        if not paths:
            return []
        refs = [self._client.document(path) for path in paths]
        found: dict[str, dict[str, Any]] = {}
        with _translate_errors(paths[0]):
            # get_all does not preserve request order
            async for snapshot in self._client.get_all(refs):
                if snapshot.exists:
                    found[snapshot.reference.path] = snapshot.to_dict() or {}
        return [found.get(path) for path in paths]

    async def set(
        self, path: str, data: dict[str, Any], *, merge: bool = False
    ) -> None:
        with _translate_errors(path):
            await self._client.document(path).set(data, merge=merge)

    async def create(self, path: str, data: dict[str, Any]) -> None:
        with _translate_errors(path):
            try:
                await self._client.document(path).create(data)
            except google_exceptions.AlreadyExists as e:
                raise DocumentAlreadyExistsError(path) from e

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        with _translate_errors(collection):
            _, ref = await self._client.collection(collection).add(data)
        return ref.id

    async def update(self, path: str, data: dict[str, Any]) -> None:
        with _translate_errors(path):
            try:
                await self._client.document(path).update(data)
            except google_exceptions.NotFound as e:
                raise DocumentNotFoundError(path) from e

    async def delete(self, path: str) -> None:
        with _translate_errors(path):
            await self._client.document(path).delete()

    async def query(
        self,
        collection: str,
        *,
        filters: Sequence[FieldFilter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        start_after: DocumentSnapshot | None = None,
    ) -> list[DocumentSnapshot]:
        query = self._client.collection(collection)
        for f in filters:
            query = query.where(filter=FirestoreFieldFilter(f.field, f.op, f.value))
        direction = AsyncQuery.DESCENDING if descending else AsyncQuery.ASCENDING
        if order_by:
            query = query.order_by(order_by, direction=direction)
        if start_after is not None:
            # Cursor on (order_by, document id) so ties on order_by are not skipped
            document_id = FieldPath.document_id()
            query = query.order_by(document_id, direction=direction)
            ref = self._client.collection(collection).document(start_after.id)
            cursor: dict[str, Any] = {document_id: ref}
            if order_by:
                cursor[order_by] = start_after.data.get(order_by)
            query = query.start_after(cursor)
        if limit is not None:
            query = query.limit(limit)

        results: list[DocumentSnapshot] = []
        with _translate_errors(collection):
            async for snapshot in query.stream():
                results.append(
                    DocumentSnapshot(
                        id=snapshot.id,
                        path=snapshot.reference.path,
                        data=snapshot.to_dict() or {},
                    )
                )
        return results
