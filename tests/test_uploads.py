from pathlib import Path

import httpx
import pytest

from clubroster.errors import UploadFailed
from clubroster.services import HttpImageUploader, is_remote_reference, resolve_image_field


def _uploader(handler, **kwargs) -> HttpImageUploader:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpImageUploader("https://upload.example/image", client=client, **kwargs)


@pytest.fixture
def image(tmp_path: Path) -> Path:
    path = tmp_path / "crest.png"
    path.write_bytes(b"\x89PNG fake")
    return path


def test_upload_posts_multipart_and_returns_secure_url(image: Path):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = request.read()
        return httpx.Response(200, json={"secure_url": "https://cdn.example/players/crest.png"})

    uploader = _uploader(handler, upload_preset="club-preset")
    url = uploader.upload(image, "players")

    assert url == "https://cdn.example/players/crest.png"
    assert seen["method"] == "POST"
    assert b'name="folder"' in seen["body"]
    assert b"club-preset" in seen["body"]
    assert b'filename="crest.png"' in seen["body"]


def test_upload_falls_back_to_plain_url(image: Path):
    uploader = _uploader(lambda request: httpx.Response(200, json={"url": "http://cdn.example/a.png"}))
    assert uploader.upload(image, "staff") == "http://cdn.example/a.png"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, json={"other": "field"}),
        httpx.Response(200, content=b"not json"),
    ],
)
def test_upload_failures_raise(image: Path, response: httpx.Response):
    uploader = _uploader(lambda request: response)
    with pytest.raises(UploadFailed):
        uploader.upload(image, "players")


def test_missing_file_raises(tmp_path: Path):
    uploader = _uploader(lambda request: httpx.Response(200, json={"url": "http://x"}))
    with pytest.raises(UploadFailed):
        uploader.upload(tmp_path / "nope.png", "players")


def test_resolve_image_field_passes_remote_values_through():
    data = {"name": "Ana", "image": "https://cdn.example/a.png"}
    assert resolve_image_field(data, None, "players") == data
    assert resolve_image_field({"name": "Ana"}, None, "players") == {"name": "Ana"}
    assert is_remote_reference("http://x")
    assert not is_remote_reference("/tmp/x.png")
