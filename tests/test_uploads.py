import asyncio
import io
import os

import httpx
import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from errors import (
    FileTooLargeError,
    NotAnImageError,
    ServerMisconfiguredError,
    TooManyFilesError,
    UploadError,
    UploadNetworkError,
)
from upload_client import ImageFile, ImageUploadClient, is_image_file, is_valid_file_size
from uploads import read_upload, validate_image

MB = 1024 * 1024
PNG = ImageFile("car.png", "image/png", b"\x89PNG\r\n\x1a\n" + b"0" * 64)


def test_validate_image():
    validate_image("car.png", "image/png", 5 * MB)
    with pytest.raises(NotAnImageError):
        validate_image("notes.txt", "text/plain", 10)
    with pytest.raises(FileTooLargeError, match="Maximum size is 5MB"):
        validate_image("huge.jpg", "image/jpeg", 6 * MB, max_size_mb=5)


def image_upload(data, filename="big.jpg", content_type="image/jpeg", size=None):
    return UploadFile(
        io.BytesIO(data),
        size=size,
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def test_read_upload_stops_past_the_size_ceiling():
    upload = image_upload(b"0" * (6 * MB))
    with pytest.raises(FileTooLargeError):
        asyncio.run(read_upload(upload, max_size_mb=5))
    assert upload.file.tell() == 5 * MB + 1


def test_read_upload_checks_declared_size_first():
    upload = image_upload(b"0" * 10, size=6 * MB)
    with pytest.raises(FileTooLargeError):
        asyncio.run(read_upload(upload, max_size_mb=5))
    assert upload.file.tell() == 0


def test_read_upload_returns_the_bytes():
    assert asyncio.run(read_upload(image_upload(PNG.data, "car.png", "image/png"))) == PNG.data


def test_upload_single_image(client, upload_storage):
    response = client.post("/api/upload/image", files={"image": ("car.png", PNG.data, "image/png")})
    assert response.status_code == 200
    body = response.json()
    assert body["url"] == f"/attached_assets/uploads/{body['filename']}"
    assert body["filename"].endswith(".png")
    with open(os.path.join(upload_storage.directory, body["filename"]), "rb") as fh:
        assert fh.read() == PNG.data


def test_upload_rejects_non_image(client):
    response = client.post("/api/upload/image", files={"image": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400
    assert "not an image" in response.json()["error"]


def test_upload_rejects_oversized_file(client):
    big = b"0" * (6 * MB)
    response = client.post("/api/upload/image", files={"image": ("big.jpg", big, "image/jpeg")})
    assert response.status_code == 400
    assert response.json()["error"].startswith("File too large")


def test_upload_requires_a_file(client):
    response = client.post("/api/upload/image", data={"other": "x"})
    assert response.status_code == 400
    assert response.json()["error"] == "No image file provided"


def test_upload_multiple_images(client):
    files = [("images", (f"car-{i}.jpg", b"jpeg-bytes", "image/jpeg")) for i in range(3)]
    response = client.post("/api/upload/images", files=files)
    assert response.status_code == 200
    urls = response.json()["urls"]
    assert len(urls) == 3
    assert len({u["filename"] for u in urls}) == 3


def test_upload_multiple_rejects_too_many(client):
    files = [("images", (f"car-{i}.jpg", b"jpeg-bytes", "image/jpeg")) for i in range(11)]
    response = client.post("/api/upload/images", files=files)
    assert response.status_code == 400
    assert response.json()["error"] == "Too many files. Maximum is 10 files"


def test_upload_route_check(client):
    assert client.get("/api/upload/test").json() == {"message": "Upload route is working"}


# Client side

def test_file_checks():
    assert is_image_file(PNG)
    assert not is_image_file(ImageFile("notes.txt", "text/plain", b"x"))
    assert is_valid_file_size(ImageFile("a.jpg", "image/jpeg", b"0" * (5 * MB)))
    assert not is_valid_file_size(ImageFile("a.jpg", "image/jpeg", b"0" * (6 * MB)))


def recording_client(handler):
    calls = []

    def record(request):
        calls.append(request)
        return handler(request)

    return httpx.Client(transport=httpx.MockTransport(record), base_url="http://test"), calls


def test_client_rejects_before_sending():
    http, calls = recording_client(lambda request: httpx.Response(200, json={"url": "/x"}))
    uploader = ImageUploadClient(client=http)
    with pytest.raises(FileTooLargeError):
        uploader.upload_image(ImageFile("big.jpg", "image/jpeg", b"0" * (6 * MB)))
    with pytest.raises(NotAnImageError):
        uploader.upload_image(ImageFile("notes.txt", "text/plain", b"hello"))
    with pytest.raises(TooManyFilesError):
        uploader.upload_images([PNG] * 11)
    assert calls == []


def test_client_html_response_is_misconfiguration():
    http, _ = recording_client(
        lambda request: httpx.Response(
            500, headers={"content-type": "text/html"}, text="<html>Internal Error</html>"
        )
    )
    with pytest.raises(ServerMisconfiguredError):
        ImageUploadClient(client=http).upload_image(PNG)


def test_client_network_failure():
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    http, _ = recording_client(unreachable)
    with pytest.raises(UploadNetworkError):
        ImageUploadClient(client=http).upload_image(PNG)


def test_client_surfaces_server_error_message():
    http, _ = recording_client(lambda request: httpx.Response(400, json={"error": "Bad image"}))
    with pytest.raises(UploadError, match="Bad image"):
        ImageUploadClient(client=http).upload_image(PNG)


def test_client_against_api(client):
    uploader = ImageUploadClient(client=client)
    url = uploader.upload_image(PNG)
    assert url.startswith("/attached_assets/uploads/image-")
    urls = uploader.upload_images([PNG, ImageFile("b.webp", "image/webp", b"webp")])
    assert len(urls) == 2
