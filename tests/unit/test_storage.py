"""Unit tests for ObjectStorage with an injected mock boto3 client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from curriculum_admin.config import Settings
from curriculum_admin.exceptions import StorageError
from curriculum_admin.services.storage import ObjectStorage


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def storage(client) -> ObjectStorage:
    settings = Settings(
        jwt_secret="unit-test-secret-0123456789abcdef-xyz",
        storage_public_base_url="https://cdn.example.test/",
        signed_url_ttl_seconds=600,
    )
    return ObjectStorage(settings, client=client)


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def test_bucket_per_category(storage):
    assert storage.bucket("content") == "content-files"
    assert storage.bucket("quiz_images") == "quiz-images"
    assert storage.bucket("syllabus") == "syllabus-files"


def test_unknown_category_raises(storage):
    with pytest.raises(StorageError, match="Unknown storage category: posters"):
        storage.bucket("posters")


def test_public_url_quotes_the_path(storage):
    url = storage.public_url("content-files", "video/lesson one.mp4")

    assert url == "https://cdn.example.test/content-files/video/lesson%20one.mp4"


async def test_upload_never_overwrites(storage, client):
    path = await storage.upload("content-files", "pdf/a-1.pdf", b"%PDF", "application/pdf")

    assert path == "pdf/a-1.pdf"
    kwargs = client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "content-files"
    assert kwargs["Key"] == "pdf/a-1.pdf"
    assert kwargs["ContentType"] == "application/pdf"
    assert kwargs["IfNoneMatch"] == "*"


async def test_upload_failure_carries_bucket_and_path(storage, client):
    client.put_object.side_effect = _client_error("PreconditionFailed", "PutObject")

    with pytest.raises(StorageError) as exc_info:
        await storage.upload("content-files", "pdf/a-1.pdf", b"%PDF")

    assert exc_info.value.bucket == "content-files"
    assert exc_info.value.path == "pdf/a-1.pdf"
    assert str(exc_info.value).startswith("Failed to upload file")


async def test_signed_url_uses_configured_ttl(storage, client):
    client.generate_presigned_url.return_value = "https://signed"

    assert await storage.signed_url("past-papers", "2023/p1.pdf") == "https://signed"

    client.generate_presigned_url.assert_called_once_with(
        "get_object", Params={"Bucket": "past-papers", "Key": "2023/p1.pdf"}, ExpiresIn=600
    )


async def test_delete_failure_raises_storage_error(storage, client):
    client.delete_object.side_effect = _client_error("AccessDenied", "DeleteObject")

    with pytest.raises(StorageError, match="Failed to delete file"):
        await storage.delete("content-files", "video/x.mp4")
