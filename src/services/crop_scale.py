from PIL import Image

from src.core.exceptions import InvalidParameterError
from src.schemas.images import CropBox, ScaleSpec

# Same ceiling Pillow uses for its decompression bomb check.
MAX_OUTPUT_PIXELS = 89_478_485


def resolve_box(box: CropBox, size: tuple[int, int]) -> tuple[int, int, int, int]:
    """Fill missing corners from the image bounds and reject boxes outside them.

    Out-of-range boxes are rejected rather than clamped, and an empty box is an
    error rather than a 0x0 image.
    """
    width, height = size
    x1 = 0 if box.x1 is None else box.x1
    y1 = 0 if box.y1 is None else box.y1
    x2 = width if box.x2 is None else box.x2
    y2 = height if box.y2 is None else box.y2

    for field, value, limit in (("x1", x1, width), ("y1", y1, height), ("x2", x2, width), ("y2", y2, height)):
        if not 0 <= value <= limit:
            raise InvalidParameterError(field, f"Invalid {field} parameter: outside image bounds {width}x{height}")
    if x2 <= x1:
        raise InvalidParameterError("x2", "Invalid x2 parameter: must be greater than x1")
    if y2 <= y1:
        raise InvalidParameterError("y2", "Invalid y2 parameter: must be greater than y1")
    return x1, y1, x2, y2


def scaled_size(size: tuple[int, int], width: int) -> tuple[int, int]:
    crop_width, crop_height = size
    scale_factor = width / crop_width
    height = max(1, round(crop_height * scale_factor))
    if width * height > MAX_OUTPUT_PIXELS:
        raise InvalidParameterError("w", f"Invalid w parameter: output {width}x{height} is too large")
    return width, height


def crop_and_scale(img: Image.Image, box: CropBox, scale: ScaleSpec) -> Image.Image:
    cropped = img.crop(resolve_box(box, img.size))
    if scale.width is not None:
        cropped = cropped.resize(scaled_size(cropped.size, scale.width), Image.Resampling.LANCZOS)
    # Overlay drawing writes pixels directly, so always hand back an RGBA buffer.
    return cropped.convert("RGBA")
