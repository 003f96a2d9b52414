import secrets
from typing import BinaryIO

import structlog

from src.core.exceptions import InvalidFilenameError, InvalidUploadError, UnauthorizedError
from src.services import jpeg_codec
from src.services.blob_store import BlobStore
from src.services.filenames import validate_filename

logger = structlog.get_logger()


class UploadPipeline:
    """Accepts JPEG uploads into a :class:`BlobStore`.

    Stages run in order and the first failure stops the upload: ``authorize``,
    ``check_filename``, then ``save`` (bounded read, JPEG check, write). The
    file only reaches the store once every check has passed.
    """

    def __init__(self, store: BlobStore, bearer_token: str, max_upload_bytes: int) -> None:
        self.store = store
        self._expected_auth = f"Bearer {bearer_token}"
        self.max_upload_bytes = max_upload_bytes

    def authorize(self, authorization: str | None) -> None:
        if not authorization or not secrets.compare_digest(
            authorization.encode("utf-8"), self._expected_auth.encode("utf-8")
        ):
            raise UnauthorizedError()

    def check_filename(self, filename: str | None) -> str:
        if filename is None or not validate_filename(filename):
            raise InvalidFilenameError()
        return filename

    def read_bounded(self, stream: BinaryIO) -> bytes:
        # Anything past the limit is dropped, not rejected.
        return stream.read(self.max_upload_bytes)

    def save(self, filename: str, stream: BinaryIO, client_ip: str = "") -> int:
        data = self.read_bounded(stream)
        if not jpeg_codec.is_valid_jpeg(data):
            raise InvalidUploadError("Uploaded file is not a valid JPEG")

        path = self.store.write(filename, data)
        logger.info("image_saved", filename=path.name, size=len(data), client_ip=client_ip)
        return len(data)
