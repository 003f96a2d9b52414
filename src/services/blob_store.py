from datetime import datetime
from pathlib import Path

import structlog

from src.core.exceptions import ImageNotFoundError, StorageError
from src.schemas.images import StoredBlob

logger = structlog.get_logger()

EXTENSION = "jpg"


class BlobStore:
    """Flat directory of ``<filename>.jpg`` files.

    Filenames must already be validated. Writes overwrite in place with no
    locking, so a concurrent reader may see a partially written file.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, filename: str) -> Path:
        return self.root / f"{filename}.{EXTENSION}"

    def read(self, filename: str) -> StoredBlob:
        path = self.path_for(filename)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except (FileNotFoundError, IsADirectoryError) as e:
            raise ImageNotFoundError() from e
        except OSError as e:
            logger.error("image_read_failed", path=str(path), error=str(e))
            raise StorageError("Error reading the image") from e

        try:
            mtime = path.stat().st_mtime
        except OSError as e:
            logger.error("image_stat_failed", path=str(path), error=str(e))
            raise StorageError("Error getting file info") from e
        return StoredBlob(data=data, modified_at=datetime.fromtimestamp(mtime))

    def write(self, filename: str, data: bytes) -> Path:
        path = self.path_for(filename)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error("image_write_failed", path=str(path), error=str(e))
            raise StorageError("Error saving the image") from e
        return path
