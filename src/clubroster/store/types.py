"""Collaborator interface of the remote document store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence, Tuple


PLAYERS = "players"
FINES = "fines"
STAFF = "staff"
TEAMS = "teams"
USERS = "users"
ALIGNMENTS = "alignments"
MATCHES = "matches"


@dataclass(frozen=True)
class Document:
    """One stored document: its id inside the collection and its payload."""

    id: str
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CollectionQuery:
    """Equality-filtered, optionally ordered query over one collection."""

    collection: str
    filters: Tuple[Tuple[str, Any], ...] = ()
    order_by: Optional[str] = None
    descending: bool = False

    def where(self, field_name: str, value: Any) -> "CollectionQuery":
        return CollectionQuery(
            collection=self.collection,
            filters=self.filters + ((field_name, value),),
            order_by=self.order_by,
            descending=self.descending,
        )

    def ordered(self, field_name: str, *, descending: bool = False) -> "CollectionQuery":
        return CollectionQuery(
            collection=self.collection,
            filters=self.filters,
            order_by=field_name,
            descending=descending,
        )

    def matches(self, data: Mapping[str, Any]) -> bool:
        return all(data.get(name) == value for name, value in self.filters)


SnapshotCallback = Callable[[Sequence[Document]], None]
DocumentCallback = Callable[[Optional[Document]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


def document_path(collection: str, document_id: str) -> str:
    return f"{collection}/{document_id}"


def split_path(path: str) -> Tuple[str, str]:
    """Split ``"players/abc"`` into ``("players", "abc")``."""

    parts = path.strip("/").split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Document path must look like 'collection/id', got {path!r}")
    return parts[0], parts[1]


class DocumentStore(Protocol):
    """Narrow surface the core uses to talk to the remote store.

    Subscriptions push the full current result set on every change and
    report failures through ``on_error``. Writes raise ``WriteRejected``.
    """

    def subscribe_collection(
        self,
        query: CollectionQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe: ...

    def subscribe_document(
        self,
        path: str,
        on_snapshot: DocumentCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe: ...

    def write_document(self, path: str, data: Mapping[str, Any], *, merge: bool = False) -> None: ...

    def delete_document(self, path: str) -> None: ...

    def get_document(self, path: str) -> Optional[Document]: ...

    def get_documents(self, query: CollectionQuery) -> list[Document]: ...
