"""SQLite-backed document store with in-process push of live snapshots."""

from __future__ import annotations

import itertools
import json
import logging
import os
import sqlite3
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from clubroster.errors import StoreError, SubscriptionFailed, WriteRejected
from clubroster.store.types import (
    CollectionQuery,
    Document,
    DocumentCallback,
    ErrorCallback,
    SnapshotCallback,
    Unsubscribe,
    split_path,
)


logger = logging.getLogger(__name__)

_DB_PATH_ENV = "CLUBROSTER_DB_PATH"


@dataclass
class _CollectionListener:
    query: CollectionQuery
    on_snapshot: SnapshotCallback
    on_error: ErrorCallback


@dataclass
class _DocumentListener:
    path: str
    on_snapshot: DocumentCallback
    on_error: ErrorCallback


def _sort_key(value: Any) -> tuple:
    # Missing values sort last; mixed types fall back to their string form.
    if value is None:
        return (1, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    return (0, str(value))


class SQLiteDocumentStore:
    """Document store kept in a single SQLite table of JSON payloads.

    Every successful write re-runs the live queries registered on the
    touched collection and pushes the full result set to their callbacks,
    which mirrors how the hosted document store notifies its listeners.
    """

    def __init__(self, db_path: Union[Path, str, None] = None, *, read_only: bool = False):
        self._use_uri = False
        self.read_only = read_only
        env_db = os.getenv(_DB_PATH_ENV)
        if db_path is not None:
            self.db_path: Union[Path, str] = Path(db_path)
        elif env_db:
            if env_db.startswith("file:"):
                self.db_path = env_db
                self._use_uri = True
            else:
                self.db_path = Path(env_db)
        elif os.getenv("PYTEST_CURRENT_TEST"):
            test_dir = Path(tempfile.gettempdir()) / "clubroster-test"
            test_dir.mkdir(parents=True, exist_ok=True)
            self.db_path = test_dir / "clubroster.sqlite"
        else:
            self.db_path = Path.home() / ".clubroster" / "clubroster.sqlite"
        self._listener_ids = itertools.count(1)
        self._collection_listeners: Dict[int, _CollectionListener] = {}
        self._document_listeners: Dict[int, _DocumentListener] = {}
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        if isinstance(self.db_path, Path):
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self.db_path)
            except (OSError, sqlite3.OperationalError):
                fallback_dir = Path(tempfile.gettempdir()) / "clubroster-runtime"
                fallback_dir.mkdir(parents=True, exist_ok=True)
                fallback = fallback_dir / "clubroster.sqlite"
                logger.warning("Cannot open %s; falling back to %s", self.db_path, fallback)
                conn = sqlite3.connect(fallback)
                self.db_path = fallback
                self._create_schema(conn)
        else:
            conn = sqlite3.connect(self.db_path, uri=self._use_uri)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                collection TEXT NOT NULL,
                id TEXT NOT NULL,
                data_json TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (collection, id)
            )
            """
        )
        conn.commit()

    # Reads

    def get_document(self, path: str) -> Optional[Document]:
        collection, document_id = split_path(path)
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, data_json FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_document(row)

    def get_documents(self, query: CollectionQuery) -> List[Document]:
        sql = "SELECT id, data_json FROM documents WHERE collection = ?"
        params: List[Any] = [query.collection]
        for field_name, value in query.filters:
            sql += " AND json_extract(data_json, ?) = ?"
            params.extend([f"$.{field_name}", value])
        sql += " ORDER BY id"
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        documents = [self._row_to_document(row) for row in rows]
        if query.order_by:
            field_name = query.order_by
            documents.sort(key=lambda doc: _sort_key(doc.data.get(field_name)), reverse=query.descending)
        return documents

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Document:
        return Document(id=row["id"], data=json.loads(row["data_json"]))

    # Writes

    def write_document(self, path: str, data: Mapping[str, Any], *, merge: bool = False) -> None:
        collection, document_id = split_path(path)
        if self.read_only:
            raise WriteRejected(path, "store is read-only")
        payload = dict(data)
        try:
            with self._connect() as conn:
                if merge:
                    row = conn.execute(
                        "SELECT data_json FROM documents WHERE collection = ? AND id = ?",
                        (collection, document_id),
                    ).fetchone()
                    if row is not None:
                        existing = json.loads(row["data_json"])
                        existing.update(payload)
                        payload = existing
                conn.execute(
                    """
                    INSERT INTO documents (collection, id, data_json, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(collection, id) DO UPDATE SET
                        data_json = excluded.data_json,
                        updated_at = excluded.updated_at
                    """,
                    (collection, document_id, json.dumps(payload), datetime.now(timezone.utc).isoformat()),
                )
                conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as exc:
            raise WriteRejected(path, str(exc)) from exc
        self._notify(collection, path)

    def delete_document(self, path: str) -> None:
        collection, document_id = split_path(path)
        if self.read_only:
            raise WriteRejected(path, "store is read-only")
        try:
            with self._connect() as conn:
                conn.execute(
                    "DELETE FROM documents WHERE collection = ? AND id = ?",
                    (collection, document_id),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise WriteRejected(path, str(exc)) from exc
        self._notify(collection, path)

    # Live queries

    def subscribe_collection(
        self,
        query: CollectionQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        listener_id = next(self._listener_ids)
        listener = _CollectionListener(query=query, on_snapshot=on_snapshot, on_error=on_error)
        self._collection_listeners[listener_id] = listener
        logger.debug("Listener %s opened on %s", listener_id, query.collection)
        self._push_collection(listener, initial=True)
        return lambda: self._drop_listener(listener_id)

    def subscribe_document(
        self,
        path: str,
        on_snapshot: DocumentCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        split_path(path)
        listener_id = next(self._listener_ids)
        listener = _DocumentListener(path=path, on_snapshot=on_snapshot, on_error=on_error)
        self._document_listeners[listener_id] = listener
        logger.debug("Listener %s opened on %s", listener_id, path)
        self._push_document(listener, initial=True)
        return lambda: self._drop_listener(listener_id)

    def listener_count(self) -> int:
        return len(self._collection_listeners) + len(self._document_listeners)

    def _drop_listener(self, listener_id: int) -> None:
        removed = self._collection_listeners.pop(listener_id, None) or self._document_listeners.pop(listener_id, None)
        if removed is not None:
            logger.debug("Listener %s closed", listener_id)

    def _notify(self, collection: str, path: str) -> None:
        for listener in list(self._collection_listeners.values()):
            if listener.query.collection == collection:
                self._push_collection(listener)
        for doc_listener in list(self._document_listeners.values()):
            if doc_listener.path.strip("/") == path.strip("/"):
                self._push_document(doc_listener)

    def _push_collection(self, listener: _CollectionListener, *, initial: bool = False) -> None:
        try:
            documents = self.get_documents(listener.query)
        except sqlite3.Error as exc:
            error_cls = SubscriptionFailed if initial else StoreError
            listener.on_error(error_cls(f"Query on {listener.query.collection!r} failed: {exc}"))
            return
        listener.on_snapshot(documents)

    def _push_document(self, listener: _DocumentListener, *, initial: bool = False) -> None:
        try:
            document = self.get_document(listener.path)
        except sqlite3.Error as exc:
            error_cls = SubscriptionFailed if initial else StoreError
            listener.on_error(error_cls(f"Read of {listener.path!r} failed: {exc}"))
            return
        listener.on_snapshot(document)
