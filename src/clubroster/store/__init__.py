"""Document store collaborator interface and the SQLite implementation."""

from .sqlite import SQLiteDocumentStore
from .types import (
    ALIGNMENTS,
    FINES,
    MATCHES,
    PLAYERS,
    STAFF,
    TEAMS,
    USERS,
    CollectionQuery,
    Document,
    DocumentStore,
    document_path,
    split_path,
)

__all__ = [
    "ALIGNMENTS",
    "FINES",
    "MATCHES",
    "PLAYERS",
    "STAFF",
    "TEAMS",
    "USERS",
    "CollectionQuery",
    "Document",
    "DocumentStore",
    "SQLiteDocumentStore",
    "document_path",
    "split_path",
]
