"""Write-side services and external collaborators."""

from .matches import MatchService
from .roster import FineService, PlayerService, StaffService
from .uploads import HttpImageUploader, ImageUploader, is_remote_reference, resolve_image_field

__all__ = [
    "FineService",
    "HttpImageUploader",
    "ImageUploader",
    "MatchService",
    "PlayerService",
    "StaffService",
    "is_remote_reference",
    "resolve_image_field",
]
