"""Unit tests for file validation and the AssetUploader.

Object storage is the ``mock_storage`` fixture; no network is used.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from curriculum_admin.exceptions import FileValidationError, StorageError
from curriculum_admin.services.asset_uploader import (
    AssetUploader,
    IncomingFile,
    UploadResult,
    get_file_type_config,
    path_from_url,
    validate_file,
)

MB = 1024 * 1024


# ---------------------------------------------------------------------------
# validate_file
# ---------------------------------------------------------------------------


def test_validate_file_accepts_file_at_size_limit():
    result = validate_file("diagram.png", 5 * MB, ("png", "jpg"), 5)

    assert result.valid
    assert result.error is None


def test_validate_file_rejects_oversized_file_before_checking_extension():
    result = validate_file("diagram.exe", 5 * MB + 1, ("png",), 5)

    assert not result.valid
    assert result.error == "File size must be less than 5MB"


def test_validate_file_compares_extensions_case_insensitively():
    assert validate_file("LESSON.MP4", 10, ("mp4",), 500).valid


def test_validate_file_lists_allowed_types_on_rejection():
    result = validate_file("notes.odt", 10, ("pdf", "doc", "docx", "txt"), 50)

    assert not result.valid
    assert result.error == "File type must be one of: pdf, doc, docx, txt"


def test_validate_file_with_empty_allow_list_accepts_any_extension():
    assert validate_file("anything.xyz", 10, (), 50).valid


def test_unknown_kind_falls_back_to_default_limits():
    config = get_file_type_config("hologram")

    assert config.allowed_extensions == ()
    assert config.max_size_mb == 50


def test_image_limits():
    config = get_file_type_config("image")

    assert "webp" in config.allowed_extensions
    assert config.max_size_mb == 5


# ---------------------------------------------------------------------------
# path_from_url
# ---------------------------------------------------------------------------


def test_path_from_url_keeps_last_two_segments():
    url = "http://storage.test/content-files/video/abc-1700000000000.mp4"

    assert path_from_url(url) == "video/abc-1700000000000.mp4"


def test_path_from_url_unquotes_segments():
    assert path_from_url("http://storage.test/content-files/pdf/my%20notes.pdf") == "pdf/my notes.pdf"


def test_path_from_url_returns_none_for_short_paths():
    assert path_from_url("http://storage.test/file.pdf") is None


# ---------------------------------------------------------------------------
# AssetUploader
# ---------------------------------------------------------------------------


async def test_upload_content_file_builds_kind_owner_timestamp_path(uploader, mock_storage):
    incoming = IncomingFile.from_bytes("Lesson One.MP4", b"\x00" * 64, "video/mp4")

    with patch.object(AssetUploader, "_timestamp_ms", return_value=1700000000000):
        result = await uploader.upload_content_file(incoming, "topic-1", "video")

    assert result.path == "video/topic-1-1700000000000.mp4"
    assert result.bucket == "content-files"
    assert result.size == 64
    assert result.url == "http://storage.test/content-files/video/topic-1-1700000000000.mp4"
    mock_storage.upload.assert_awaited_once()
    assert mock_storage.upload.await_args.args[:2] == ("content-files", result.path)


async def test_rejected_file_never_reaches_storage(uploader, mock_storage):
    incoming = IncomingFile.from_bytes("virus.exe", b"MZ", "application/octet-stream")

    with pytest.raises(FileValidationError) as exc_info:
        await uploader.upload_content_file(incoming, "topic-1", "pdf")

    assert exc_info.value.field == "file"
    mock_storage.upload.assert_not_awaited()


async def test_upload_quiz_image_names_question_and_answer(uploader, mock_storage):
    incoming = IncomingFile.from_bytes("leaf.png", b"\x89PNG", "image/png")

    result = await uploader.upload_quiz_image(incoming, "quiz-9", 2, "B")

    assert result.bucket == "quiz-images"
    assert result.path == "quiz-images/quiz-9-q2-B.png"


async def test_upload_quiz_image_rejects_large_images(uploader, mock_storage):
    incoming = IncomingFile("huge.png", 6 * MB, None, "image/png")

    with pytest.raises(FileValidationError):
        await uploader.upload_quiz_image(incoming, "quiz-9", 1)

    mock_storage.upload.assert_not_awaited()


async def test_upload_failure_propagates_storage_error(uploader, mock_storage):
    mock_storage.upload = AsyncMock(side_effect=StorageError("Failed to upload file: timeout"))
    incoming = IncomingFile.from_bytes("notes.pdf", b"%PDF", "application/pdf")

    with pytest.raises(StorageError):
        await uploader.upload_content_file(incoming, "topic-1", "pdf")


async def test_delete_by_url_derives_path(uploader, mock_storage):
    await uploader.delete_by_url("http://storage.test/content-files/pdf/topic-1-1.pdf")

    mock_storage.delete.assert_awaited_once_with("content-files", "pdf/topic-1-1.pdf")


async def test_delete_by_url_rejects_unparseable_url(uploader, mock_storage):
    with pytest.raises(StorageError):
        await uploader.delete_by_url("not-a-url")

    mock_storage.delete.assert_not_awaited()


async def test_discard_logs_and_swallows_storage_errors(uploader, mock_storage):
    mock_storage.delete = AsyncMock(side_effect=StorageError("Failed to delete file: gone"))
    result = UploadResult(url="http://storage.test/content-files/video/x.mp4", path="video/x.mp4",
                          size=1, bucket="content-files")

    await uploader.discard(result)

    mock_storage.delete.assert_awaited_once_with("content-files", "video/x.mp4")
