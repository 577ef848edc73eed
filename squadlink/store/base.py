from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

__all__ = [
    "FilterOp",
    "FieldFilter",
    "DocumentSnapshot",
    "DocumentStore",
]

FilterOp = Literal["==", ">=", "<=", "in", "array_contains_any"]


@dataclass(frozen=True)
class FieldFilter:
    field: str
    op: FilterOp
    value: Any


@dataclass(frozen=True)
class DocumentSnapshot:
    id: str
    path: str
    data: dict[str, Any] = field(default_factory=dict)


class DocumentStore(ABC):
    """
    Request/response contract of the remote document store.

    Every method is a suspension point. Writes to different documents are
    independent: there is no atomicity across two calls, and a call that
    raises may or may not have been applied remotely.

    Implementations raise the errors from ``squadlink.exceptions.store_exceptions``:
    ``NetworkError`` for transient failures, ``StorePermissionError`` when the
    store's access rules reject the request.
    """

    @abstractmethod
    async def get(self, path: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def get_many(self, paths: Sequence[str]) -> list[dict[str, Any] | None]: ...

    @abstractmethod
    async def set(
        self, path: str, data: dict[str, Any], *, merge: bool = False
    ) -> None: ...

    @abstractmethod
    async def create(self, path: str, data: dict[str, Any]) -> None:
        """Insert if absent. Raises DocumentAlreadyExistsError otherwise."""

    @abstractmethod
    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Insert with a store-generated id and return that id."""

    @abstractmethod
    async def update(self, path: str, data: dict[str, Any]) -> None:
        """Partial update. Raises DocumentNotFoundError if the document is missing."""

    @abstractmethod
    async def delete(self, path: str) -> None: ...

    @abstractmethod
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
        """
        Documents of a collection (not of its subcollections) matching every
        filter. Results are ordered by order_by and then by document id, so
        passing the last snapshot of a page as start_after yields the next page.
        """

    async def exists(self, path: str) -> bool:
        return await self.get(path) is not None

    async def list_ids(self, collection: str) -> list[str]:
        return [snapshot.id for snapshot in await self.query(collection)]
