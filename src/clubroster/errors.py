"""Exception types shared across the store, services and API layers."""

from __future__ import annotations


class ClubRosterError(Exception):
    """Base class for every error raised by clubroster."""


class StoreError(ClubRosterError):
    """Raised when the document store cannot complete an operation."""


class WriteRejected(StoreError):
    """Raised when the document store refuses or fails a write."""

    def __init__(self, path: str, message: str):
        super().__init__(f"Write to {path!r} rejected: {message}")
        self.path = path
        self.message = message


class SubscriptionFailed(StoreError):
    """Raised when a live query cannot be opened."""


class PermissionDenied(ClubRosterError):
    """Raised when the user context lacks the role required for a write."""


class EntityNotFound(ClubRosterError, KeyError):
    """Raised when a referenced document does not exist."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} {entity_id!r} not found")
        self.kind = kind
        self.entity_id = entity_id

    def __str__(self) -> str:
        return self.args[0]


class DuplicateNumber(ClubRosterError, ValueError):
    """Raised when a shirt number is already taken inside a team."""


class UploadFailed(ClubRosterError):
    """Raised when the image upload service does not return a durable URL."""
