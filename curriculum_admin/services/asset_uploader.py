"""Validation and upload of learning-material files and quiz images.

Every file is checked against the per-kind configuration table before any
network call is made; a rejected file never reaches object storage.

Usage::

    uploader = AssetUploader(storage)
    result = await uploader.upload_content_file(incoming, owner_id, "video")
    result.url, result.path, result.size
"""

from __future__ import annotations

import io
import logging
import time
from dataclasses import dataclass, field
from typing import BinaryIO
from urllib.parse import unquote, urlparse

from curriculum_admin.exceptions import FileValidationError, StorageError
from curriculum_admin.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

_BYTES_PER_MB = 1024 * 1024


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileTypeConfig:
    """Allowed extensions and size ceiling for one kind of file.

    Attributes:
        allowed_extensions: Lower-case extensions without the dot.
        max_size_mb: Inclusive size limit in megabytes.
    """

    allowed_extensions: tuple[str, ...]
    max_size_mb: int


FILE_TYPE_CONFIG: dict[str, FileTypeConfig] = {
    "video": FileTypeConfig(("mp4", "mov", "avi", "mkv", "webm"), 500),
    "pdf": FileTypeConfig(("pdf",), 50),
    "quiz": FileTypeConfig(("json", "txt", "pdf"), 20),
    "notes": FileTypeConfig(("pdf", "doc", "docx", "txt"), 50),
    "image": FileTypeConfig(("jpg", "jpeg", "png", "gif", "webp"), 5),
}

_DEFAULT_CONFIG = FileTypeConfig((), 50)


@dataclass
class IncomingFile:
    """A file received from the client, not yet stored.

    Attributes:
        filename: Original client-side filename.
        size: Size in bytes.
        stream: Readable binary stream positioned at the start.
        content_type: MIME type reported by the client.
    """

    filename: str
    size: int
    stream: BinaryIO
    content_type: str = "application/octet-stream"

    @classmethod
    def from_bytes(
        cls, filename: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> "IncomingFile":
        return cls(filename, len(data), io.BytesIO(data), content_type)

    @property
    def extension(self) -> str:
        return file_extension(self.filename)


@dataclass
class FileValidation:
    valid: bool
    error: str | None = None


@dataclass
class UploadResult:
    """Where an uploaded file ended up.

    Attributes:
        url: Public URL of the object.
        path: Object key inside its bucket.
        size: Stored size in bytes.
        bucket: Bucket the object was written to.
    """

    url: str
    path: str
    size: int
    bucket: str = ""
    extra: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def file_extension(filename: str) -> str:
    """Return the lower-cased extension of ``filename`` ('' when it has none)."""
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def get_file_type_config(kind: str) -> FileTypeConfig:
    """Return the upload rules for a content kind (or ``image``)."""
    return FILE_TYPE_CONFIG.get(kind, _DEFAULT_CONFIG)


def validate_file(
    filename: str,
    size: int,
    allowed_extensions: tuple[str, ...] | list[str],
    max_size_mb: int,
) -> FileValidation:
    """Check a file's size and extension.

    A file passes iff its size is at most ``max_size_mb`` megabytes and its
    lower-cased extension is in ``allowed_extensions`` (an empty allow-list
    accepts any extension).
    """
    if size > max_size_mb * _BYTES_PER_MB:
        return FileValidation(False, f"File size must be less than {max_size_mb}MB")

    allowed = [ext.lower().lstrip(".") for ext in allowed_extensions]
    if allowed and file_extension(filename) not in allowed:
        return FileValidation(False, f"File type must be one of: {', '.join(allowed)}")

    return FileValidation(True)


def validate_for_kind(file: IncomingFile, kind: str) -> FileValidation:
    config = get_file_type_config(kind)
    return validate_file(file.filename, file.size, config.allowed_extensions, config.max_size_mb)


def path_from_url(url: str) -> str | None:
    """Rebuild an object path (``folder/filename``) from its public URL.

    Returns None when the URL has fewer than two path segments.
    """
    parts = [p for p in urlparse(url).path.split("/") if p]
    if len(parts) < 2:
        return None
    return unquote("/".join(parts[-2:]))


# ---------------------------------------------------------------------------
# Uploader
# ---------------------------------------------------------------------------


class AssetUploader:
    """Validate files and transfer them to object storage.

    Uploads are never retried; a failed transfer raises
    :class:`~curriculum_admin.exceptions.StorageError` to the caller.

    Args:
        storage: The :class:`ObjectStorage` client to write through.
    """

    def __init__(self, storage: ObjectStorage) -> None:
        self.storage = storage

    @staticmethod
    def _timestamp_ms() -> int:
        return int(time.time() * 1000)

    def _check(self, file: IncomingFile, kind: str, field_name: str) -> None:
        result = validate_for_kind(file, kind)
        if not result.valid:
            logger.info("Rejected %s for %s: %s", file.filename, kind, result.error)
            raise FileValidationError(result.error or "Invalid file", field=field_name)

    async def upload_content_file(
        self, file: IncomingFile, owner_id: str, kind: str
    ) -> UploadResult:
        """Validate and upload a learning-material file.

        The object key is ``{kind}/{owner_id}-{timestamp_ms}.{ext}``.

        Raises:
            FileValidationError: Before any I/O, if the file is rejected.
            StorageError: If the transfer fails.
        """
        self._check(file, kind, "file")
        bucket = self.storage.bucket("content")
        path = f"{kind}/{owner_id}-{self._timestamp_ms()}.{file.extension}"
        await self.storage.upload(bucket, path, file.stream, file.content_type)
        return UploadResult(
            url=self.storage.public_url(bucket, path),
            path=path,
            size=file.size,
            bucket=bucket,
        )

    async def upload_quiz_image(
        self,
        file: IncomingFile,
        owner_id: str,
        question_index: int,
        answer_key: str | None = None,
    ) -> UploadResult:
        """Validate and upload an image for a quiz question or one of its answers."""
        self._check(file, "image", "image")
        bucket = self.storage.bucket("quiz_images")
        suffix = f"-{answer_key}" if answer_key else ""
        path = f"quiz-images/{owner_id}-q{question_index}{suffix}.{file.extension}"
        await self.storage.upload(bucket, path, file.stream, file.content_type)
        return UploadResult(
            url=self.storage.public_url(bucket, path),
            path=path,
            size=file.size,
            bucket=bucket,
        )

    async def delete_by_url(self, url: str, category: str = "content") -> None:
        """Delete the object behind a public URL.

        Raises:
            StorageError: If the path cannot be derived or the delete fails.
        """
        path = path_from_url(url)
        if path is None:
            raise StorageError(f"Cannot derive storage path from URL: {url}")
        await self.storage.delete(self.storage.bucket(category), path)

    async def discard(self, result: UploadResult) -> None:
        """Best-effort removal of an upload that is no longer referenced."""
        try:
            await self.storage.delete(result.bucket, result.path)
        except StorageError as exc:
            logger.warning("Could not remove orphaned upload %s: %s", result.path, exc)
