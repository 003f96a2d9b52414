from datetime import datetime

from PIL import Image, ImageDraw, ImageFont

from src.schemas.images import WHITE, ClientIdentity

LABEL_POSITION = (10, 20)
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_font: ImageFont.ImageFont | None = None


def _get_font() -> ImageFont.ImageFont:
    global _font
    if _font is None:
        _font = ImageFont.load_default_imagefont()
    return _font


def resolve_client_ip(forwarded_for: str | None, peer: str | None) -> str:
    if forwarded_for:
        return forwarded_for.split(", ")[0]
    return peer or ""


def build_label(file_time: datetime, now: datetime, identity: ClientIdentity | None = None) -> str:
    label = f"FileTime: {file_time.strftime(TIME_FORMAT)} CurrentTime: {now.strftime(TIME_FORMAT)}"
    if identity is not None:
        label = f"{label} IP: {identity.ip} User-Agent: {identity.user_agent}"
    return label


def draw_label(
    img: Image.Image,
    text: str,
    position: tuple[int, int] = LABEL_POSITION,
    color: tuple[int, int, int] = WHITE,
) -> None:
    """Draw ``text`` onto ``img`` in place with the built-in bitmap font.

    Anything past the image edge is clipped by the renderer.
    """
    # The bitmap font only covers latin-1.
    text = text.encode("latin-1", errors="replace").decode("latin-1")
    draw = ImageDraw.Draw(img)
    draw.text(position, text, fill=(*color, 255), font=_get_font())
