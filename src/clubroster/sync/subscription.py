"""Owned handle around one live-query subscription."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from clubroster.errors import SubscriptionFailed
from clubroster.store.types import CollectionQuery, Document, DocumentStore, Unsubscribe


logger = logging.getLogger(__name__)


class Subscription:
    """Single live query plus its teardown.

    ``dispose()`` may be called any number of times; the store's
    unsubscribe callable runs exactly once. Callbacks delivered after
    disposal are dropped, so a consumer that switched to another query
    never sees results of the old one.
    """

    def __init__(self, label: str):
        self.label = label
        self._unsubscribe: Optional[Unsubscribe] = None
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None and not self._disposed

    def bind(self, unsubscribe: Unsubscribe) -> None:
        if self._disposed:
            # Disposed while the store was still opening the query.
            unsubscribe()
            return
        self._unsubscribe = unsubscribe

    def guard(self, callback: Callable[[Any], None]) -> Callable[[Any], None]:
        """Wrap ``callback`` so it becomes a no-op once this handle is disposed."""

        def _guarded(payload: Any) -> None:
            if self._disposed:
                logger.debug("Discarding late callback for disposed subscription %s", self.label)
                return
            callback(payload)

        return _guarded

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
            logger.debug("Subscription %s disposed", self.label)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()


def subscribe_collection(
    store: DocumentStore,
    query: CollectionQuery,
    on_snapshot: Callable[[Sequence[Document]], None],
    on_error: Callable[[Exception], None],
) -> Subscription:
    """Open a collection query and return its owned handle.

    A store that raises while opening the query reports the failure through
    ``on_error``; the returned handle is then inert but still safe to dispose.
    """

    subscription = Subscription(label=f"{query.collection}{list(query.filters)}")
    try:
        unsubscribe = store.subscribe_collection(
            query,
            subscription.guard(on_snapshot),
            subscription.guard(on_error),
        )
    except Exception as exc:
        logger.warning("Subscribe to %s failed: %s", subscription.label, exc)
        on_error(exc if isinstance(exc, SubscriptionFailed) else SubscriptionFailed(str(exc)))
        return subscription
    subscription.bind(unsubscribe)
    return subscription


def subscribe_document(
    store: DocumentStore,
    path: str,
    on_snapshot: Callable[[Optional[Document]], None],
    on_error: Callable[[Exception], None],
) -> Subscription:
    subscription = Subscription(label=path)
    try:
        unsubscribe = store.subscribe_document(
            path,
            subscription.guard(on_snapshot),
            subscription.guard(on_error),
        )
    except Exception as exc:
        logger.warning("Subscribe to %s failed: %s", path, exc)
        on_error(exc if isinstance(exc, SubscriptionFailed) else SubscriptionFailed(str(exc)))
        return subscription
    subscription.bind(unsubscribe)
    return subscription
