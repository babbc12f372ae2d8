"""Object upload collaborator used to turn local images into durable URLs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from clubroster.errors import UploadFailed


logger = logging.getLogger(__name__)


class ImageUploader(Protocol):
    def upload(self, local_path: Path, folder: str) -> str: ...


class HttpImageUploader:
    """Unsigned multipart upload to an image hosting endpoint.

    The endpoint is expected to answer with JSON holding ``secure_url`` or
    ``url``.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        upload_preset: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.endpoint = endpoint
        self.upload_preset = upload_preset
        self._client = client or httpx.Client(timeout=timeout)

    def upload(self, local_path: Path, folder: str) -> str:
        path = Path(local_path)
        if not path.is_file():
            raise UploadFailed(f"Image {path} does not exist")
        data: Dict[str, str] = {"folder": folder}
        if self.upload_preset:
            data["upload_preset"] = self.upload_preset
        try:
            with path.open("rb") as handle:
                resp = self._client.post(self.endpoint, data=data, files={"file": (path.name, handle)})
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UploadFailed(f"Upload of {path.name} failed: {exc}") from exc
        url = (body.get("secure_url") or body.get("url")) if isinstance(body, dict) else None
        if not url:
            raise UploadFailed(f"Upload of {path.name} returned no URL")
        logger.info("Uploaded %s to %s", path.name, folder)
        return str(url)

    def close(self) -> None:
        self._client.close()


def is_remote_reference(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def resolve_image_field(
    data: Mapping[str, Any],
    uploader: Optional[ImageUploader],
    folder: str,
    field: str = "image",
) -> Dict[str, Any]:
    """Return a copy of ``data`` whose image field holds a durable URL.

    Remote URLs and empty values pass through untouched. A local reference
    without an uploader configured is dropped with a warning.
    """

    resolved = dict(data)
    value = resolved.get(field)
    if not value or is_remote_reference(value):
        return resolved
    if uploader is None:
        logger.warning("No image uploader configured; dropping local %s %r", field, value)
        resolved.pop(field, None)
        return resolved
    resolved[field] = uploader.upload(Path(value), folder)
    return resolved
