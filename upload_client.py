"""
Client for the image upload endpoints, used by admin tooling and scripts.

Files are validated locally before anything is sent, and every failure is
raised as a distinct UploadError subclass so callers can show the right
message.
"""

import logging
from typing import List, NamedTuple, Optional

import httpx

from errors import (
    FileTooLargeError,
    NoFileProvidedError,
    NotAnImageError,
    ServerMisconfiguredError,
    TooManyFilesError,
    UploadError,
    UploadNetworkError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE_MB = 5
DEFAULT_MAX_FILES = 10


class ImageFile(NamedTuple):
    filename: str
    content_type: str
    data: bytes


def is_image_file(file: ImageFile) -> bool:
    return (file.content_type or "").startswith("image/")


def is_valid_file_size(file: ImageFile, max_size_mb: float = DEFAULT_MAX_SIZE_MB) -> bool:
    return len(file.data) <= max_size_mb * 1024 * 1024


class ImageUploadClient:
    def __init__(
        self,
        base_url: str = "",
        client: Optional[httpx.Client] = None,
        max_size_mb: float = DEFAULT_MAX_SIZE_MB,
        max_files: int = DEFAULT_MAX_FILES,
        timeout: float = 30.0,
    ):
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self.max_size_mb = max_size_mb
        self.max_files = max_files

    def check(self, file: ImageFile) -> None:
        if not is_image_file(file):
            raise NotAnImageError(file.filename)
        if not is_valid_file_size(file, self.max_size_mb):
            raise FileTooLargeError(self.max_size_mb)

    def upload_image(self, file: ImageFile) -> str:
        """Upload one image and return its public URL."""
        self.check(file)
        payload = self._post("/api/upload/image", [("image", file)])
        return payload["url"]

    def upload_images(self, files: List[ImageFile]) -> List[str]:
        if not files:
            raise NoFileProvidedError("No image files provided")
        if len(files) > self.max_files:
            raise TooManyFilesError(self.max_files)
        for file in files:
            self.check(file)
        payload = self._post("/api/upload/images", [("images", f) for f in files])
        return [item["url"] for item in payload["urls"]]

    def _post(self, path: str, fields) -> dict:
        files = [(name, (f.filename, f.data, f.content_type)) for name, f in fields]
        try:
            response = self.client.post(path, files=files)
        except httpx.TransportError as exc:
            logger.error(f"Upload to {path} failed: {exc}")
            raise UploadNetworkError(
                "Network error during upload. Please check your connection and try again."
            ) from exc
        return self._parse(response)

    @staticmethod
    def _parse(response: httpx.Response) -> dict:
        content_type = response.headers.get("content-type", "")
        if "text/html" in content_type:
            logger.error(f"Server returned HTML instead of JSON: {response.text[:200]}")
            raise ServerMisconfiguredError()
        try:
            payload = response.json()
        except ValueError:
            if response.is_success:
                raise ServerMisconfiguredError()
            raise UploadError(f"Upload failed: {response.reason_phrase}")
        if not response.is_success:
            raise UploadError(payload.get("error") or "Failed to upload image")
        return payload
