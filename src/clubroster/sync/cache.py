"""Entity caches: in-memory mirrors of one live query each."""

from __future__ import annotations

import logging
from typing import Callable, Generic, Hashable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel

from clubroster.models.documents import parse_document, parse_documents
from clubroster.store.types import CollectionQuery, Document, DocumentStore
from clubroster.sync.subscription import Subscription, subscribe_collection, subscribe_document


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
SnapshotT = TypeVar("SnapshotT")
Listener = Callable[["EntityCache"], None]


class EntityCache(Generic[SnapshotT]):
    """Owns exactly one subscription and the latest snapshot it delivered.

    Snapshots replace the previous one wholesale. Errors set ``error`` and
    keep the last good snapshot visible. Switching to another key opens the
    new subscription first and disposes the stale one right after, so two
    subscriptions never write into the same cache.
    """

    def __init__(self, store: DocumentStore, empty: SnapshotT, *, name: str):
        self._store = store
        self._empty = empty
        self.name = name
        self._snapshot: SnapshotT = empty
        self._loading = False
        self._error: Optional[Exception] = None
        self._key: Optional[Hashable] = None
        self._subscription: Optional[Subscription] = None
        self._generation = 0
        self._listeners: List[Listener] = []
        self.snapshot_count = 0

    @property
    def snapshot(self) -> SnapshotT:
        return self._snapshot

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    @property
    def has_error(self) -> bool:
        return self._error is not None

    @property
    def key(self) -> Optional[Hashable]:
        return self._key

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _activate(self, key: Hashable) -> None:
        if self.active and key == self._key:
            return
        previous = self._subscription
        if key != self._key:
            self._snapshot = self._empty
        self._generation += 1
        generation = self._generation
        self._key = key
        self._loading = True
        self._error = None
        logger.debug("Cache %s activating for %r", self.name, key)
        self._subscription = self._open(
            key,
            lambda payload: self._handle_snapshot(generation, payload),
            lambda exc: self._handle_error(generation, exc),
        )
        if previous is not None:
            previous.dispose()

    def deactivate(self) -> None:
        """Tear down the subscription; safe to call repeatedly."""

        subscription, self._subscription = self._subscription, None
        self._generation += 1
        self._loading = False
        if subscription is not None:
            subscription.dispose()
            logger.debug("Cache %s deactivated", self.name)

    def _open(
        self,
        key: Hashable,
        on_snapshot: Callable[[object], None],
        on_error: Callable[[Exception], None],
    ) -> Subscription:
        raise NotImplementedError

    def _convert(self, payload: object) -> SnapshotT:
        raise NotImplementedError

    def _handle_snapshot(self, generation: int, payload: object) -> None:
        if generation != self._generation:
            logger.debug("Cache %s dropped snapshot from a stale subscription", self.name)
            return
        self._snapshot = self._convert(payload)
        self._loading = False
        self._error = None
        self.snapshot_count += 1
        self._emit()

    def _handle_error(self, generation: int, exc: Exception) -> None:
        if generation != self._generation:
            return
        logger.warning("Cache %s lost its subscription: %s", self.name, exc)
        self._loading = False
        self._error = exc
        self._emit()

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self)


class CollectionCache(EntityCache[Tuple[ModelT, ...]]):
    """Cache of a filtered collection, validated into ``model`` instances."""

    def __init__(self, store: DocumentStore, model: Type[ModelT], *, name: str):
        super().__init__(store, (), name=name)
        self.model = model

    @property
    def items(self) -> List[ModelT]:
        return list(self._snapshot)

    def get(self, entity_id: str) -> Optional[ModelT]:
        for item in self._snapshot:
            if getattr(item, "id", None) == entity_id:
                return item
        return None

    def activate(self, query: CollectionQuery) -> None:
        self._activate(query)

    def _open(self, key, on_snapshot, on_error) -> Subscription:
        return subscribe_collection(self._store, key, on_snapshot, on_error)

    def _convert(self, payload: object) -> Tuple[ModelT, ...]:
        documents: Sequence[Document] = payload  # type: ignore[assignment]
        return tuple(parse_documents(self.model, documents))


class DocumentCache(EntityCache[Optional[ModelT]]):
    """Cache of a single document; ``None`` while missing."""

    def __init__(self, store: DocumentStore, model: Type[ModelT], *, name: str):
        super().__init__(store, None, name=name)
        self.model = model

    @property
    def value(self) -> Optional[ModelT]:
        return self._snapshot

    def activate(self, path: str) -> None:
        self._activate(path)

    def _open(self, key, on_snapshot, on_error) -> Subscription:
        return subscribe_document(self._store, key, on_snapshot, on_error)

    def _convert(self, payload: object) -> Optional[ModelT]:
        return parse_document(self.model, payload)  # type: ignore[arg-type]
