from io import BytesIO

from PIL import Image

from src.core.exceptions import ImageDecodeError, ImageEncodeError

_DECODE_ERRORS = (OSError, SyntaxError, ValueError, Image.DecompressionBombError)
# Pillow reports multi-picture camera JPEGs as MPO.
_JPEG_FORMATS = ("JPEG", "MPO")


def decode(data: bytes) -> Image.Image:
    try:
        img: Image.Image = Image.open(BytesIO(data))
        if img.format not in _JPEG_FORMATS:
            raise ImageDecodeError(f"Expected JPEG data, got {img.format}")
        img.load()
    except _DECODE_ERRORS as e:
        raise ImageDecodeError("Error decoding the image") from e
    return img


def encode(img: Image.Image) -> bytes:
    if img.mode != "RGB":
        img = img.convert("RGB")
    buffer = BytesIO()
    try:
        img.save(buffer, format="JPEG")
    except (OSError, ValueError) as e:
        raise ImageEncodeError("Error encoding the cropped image") from e
    return buffer.getvalue()


def is_valid_jpeg(data: bytes) -> bool:
    try:
        decode(data)
    except ImageDecodeError:
        return False
    return True
