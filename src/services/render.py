from collections.abc import Callable, Mapping
from datetime import datetime

import structlog

from src.core.exceptions import InvalidFilenameError
from src.schemas.images import ClientIdentity, CropBox, LabelConfig, ScaleSpec
from src.services import jpeg_codec
from src.services.blob_store import BlobStore
from src.services.crop_scale import crop_and_scale
from src.services.filenames import validate_filename
from src.services.label_overlay import build_label, draw_label

logger = structlog.get_logger()


class RenderPipeline:
    def __init__(self, store: BlobStore, clock: Callable[[], datetime] = datetime.now) -> None:
        self.store = store
        self.clock = clock

    def render(self, query: Mapping[str, str], identity: ClientIdentity | None = None) -> bytes:
        """Turn a stored JPEG plus ``/scaled`` query parameters into a derivative JPEG.

        Geometry parameters are parsed only after the image is loaded and
        decoded, so a missing file wins over a malformed parameter. ``identity``
        is echoed into the label only when the query carries a non-empty ``id``.
        """
        filename = query.get("filename")
        if filename is None or not validate_filename(filename):
            raise InvalidFilenameError()

        blob = self.store.read(filename)
        img = jpeg_codec.decode(blob.data)

        box = CropBox.from_query(query)
        scale = ScaleSpec.from_query(query)
        label = LabelConfig.from_query(query)

        result = crop_and_scale(img, box, scale)

        if not label.suppressed:
            text = build_label(blob.modified_at, self.clock(), identity if label.include_identity else None)
            draw_label(result, text, color=label.color)

        logger.debug("image_rendered", filename=filename, size=result.size, labelled=not label.suppressed)
        return jpeg_codec.encode(result)
