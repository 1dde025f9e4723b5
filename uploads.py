"""
Image uploads received by the API.

Files are checked for an ``image/`` content type and the size ceiling, then
written to the local upload directory, which is served statically.
"""

import logging
import os
import re
import time
import uuid
from typing import List

from fastapi import UploadFile

from config import Config
from errors import NoFileProvidedError, NotAnImageError, FileTooLargeError, TooManyFilesError
from schemas import UploadedImage

logger = logging.getLogger(__name__)

MB = 1024 * 1024

_EXTENSION = re.compile(r"^\.[a-z0-9]{1,8}$")


def validate_image(filename: str, content_type: str, size: int, max_size_mb: float = None) -> None:
    max_size_mb = Config.MAX_UPLOAD_MB if max_size_mb is None else max_size_mb
    if not (content_type or "").startswith("image/"):
        raise NotAnImageError(filename)
    if size > max_size_mb * MB:
        raise FileTooLargeError(max_size_mb)


async def read_upload(upload: UploadFile, max_size_mb: float = None) -> bytes:
    """
    Read an upload, holding at most one byte past the size ceiling in memory.
    The declared size is checked before anything is read.
    """
    max_size_mb = Config.MAX_UPLOAD_MB if max_size_mb is None else max_size_mb
    validate_image(upload.filename, upload.content_type, upload.size or 0, max_size_mb)
    data = await upload.read(int(max_size_mb * MB) + 1)
    validate_image(upload.filename, upload.content_type, len(data), max_size_mb)
    return data


class LocalImageStorage:
    def __init__(self, directory: str, url_prefix: str):
        self.directory = directory
        self.url_prefix = url_prefix.rstrip("/")

    def stored_name(self, original: str) -> str:
        ext = os.path.splitext(original or "")[1].lower()
        if not _EXTENSION.match(ext):
            ext = ""
        return f"image-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{ext}"

    def save(self, original: str, data: bytes) -> UploadedImage:
        os.makedirs(self.directory, exist_ok=True)
        filename = self.stored_name(original)
        with open(os.path.join(self.directory, filename), "wb") as fh:
            fh.write(data)
        logger.info(f"Stored upload {original!r} as {filename} ({len(data)} bytes)")
        return UploadedImage(url=f"{self.url_prefix}/{filename}", filename=filename)


def default_storage() -> LocalImageStorage:
    return LocalImageStorage(Config.UPLOAD_DIR, Config.UPLOAD_URL_PREFIX)


async def store_upload(upload: UploadFile, storage: LocalImageStorage, max_size_mb: float = None) -> UploadedImage:
    data = await read_upload(upload, max_size_mb)
    return storage.save(upload.filename, data)


async def store_uploads(
    uploads: List[UploadFile],
    storage: LocalImageStorage,
    max_files: int = None,
    max_size_mb: float = None,
) -> List[UploadedImage]:
    max_files = Config.MAX_UPLOAD_FILES if max_files is None else max_files
    if not uploads:
        raise NoFileProvidedError("No image files provided")
    if len(uploads) > max_files:
        raise TooManyFilesError(max_files)

    # Check every file before writing any of them
    contents = []
    for upload in uploads:
        data = await read_upload(upload, max_size_mb)
        contents.append((upload.filename, data))
    return [storage.save(name, data) for name, data in contents]
