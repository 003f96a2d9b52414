from io import BytesIO
from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image

from src.core.exceptions import InvalidFilenameError, InvalidUploadError, StorageError, UnauthorizedError
from src.services.blob_store import BlobStore
from src.services.upload import UploadPipeline


def _make_test_image(width: int = 100, height: int = 100) -> bytes:
    img = Image.new("RGB", (width, height), color="red")
    buffer = BytesIO()
    img.save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def pipeline(tmp_path: Path) -> UploadPipeline:
    return UploadPipeline(BlobStore(tmp_path), bearer_token="secret", max_upload_bytes=1_000_000)


class TestAuthorize:
    def test_accepts_matching_token(self, pipeline: UploadPipeline) -> None:
        pipeline.authorize("Bearer secret")

    @pytest.mark.parametrize("header", [None, "", "secret", "Bearer wrong", "bearer secret", "Bearer secret "])
    def test_rejects_everything_else(self, pipeline: UploadPipeline, header: str | None) -> None:
        with pytest.raises(UnauthorizedError):
            pipeline.authorize(header)


class TestCheckFilename:
    def test_valid(self, pipeline: UploadPipeline) -> None:
        assert pipeline.check_filename("holiday-2024") == "holiday-2024"

    @pytest.mark.parametrize("name", [None, "", "../x", "a.jpg"])
    def test_invalid(self, pipeline: UploadPipeline, name: str | None) -> None:
        with pytest.raises(InvalidFilenameError):
            pipeline.check_filename(name)


class TestSave:
    def test_writes_valid_jpeg(self, pipeline: UploadPipeline, tmp_path: Path) -> None:
        data = _make_test_image()
        size = pipeline.save("photo", BytesIO(data), client_ip="203.0.113.1")
        assert size == len(data)
        assert (tmp_path / "photo.jpg").read_bytes() == data

    def test_rejects_non_jpeg_without_writing(self, pipeline: UploadPipeline, tmp_path: Path) -> None:
        with pytest.raises(InvalidUploadError):
            pipeline.save("photo", BytesIO(b"definitely not a jpeg"))
        assert not (tmp_path / "photo.jpg").exists()

    def test_reads_at_most_limit(self, tmp_path: Path) -> None:
        data = _make_test_image()
        pipeline = UploadPipeline(BlobStore(tmp_path), bearer_token="secret", max_upload_bytes=len(data))
        pipeline.save("photo", BytesIO(data + b"\x00" * 5000))
        assert (tmp_path / "photo.jpg").read_bytes() == data

    def test_truncation_breaks_jpeg(self, tmp_path: Path) -> None:
        data = _make_test_image(300, 300)
        pipeline = UploadPipeline(BlobStore(tmp_path), bearer_token="secret", max_upload_bytes=len(data) // 2)
        with pytest.raises(InvalidUploadError):
            pipeline.save("photo", BytesIO(data))
        assert not (tmp_path / "photo.jpg").exists()

    def test_store_failure_propagates(self, pipeline: UploadPipeline) -> None:
        with (
            patch.object(pipeline.store, "write", side_effect=StorageError("Error saving the image")),
            pytest.raises(StorageError),
        ):
            pipeline.save("photo", BytesIO(_make_test_image()))
