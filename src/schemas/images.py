import re
from collections.abc import Mapping
from datetime import datetime

from pydantic import BaseModel

from src.core.exceptions import InvalidParameterError

_UNSIGNED_RE = re.compile(r"[0-9]+")
_HEX_COLOR_RE = re.compile(r"[0-9A-Fa-f]{6}")

WHITE = (255, 255, 255)

MAX_SCALE_WIDTH = 2**32 - 1


def parse_unsigned(query: Mapping[str, str], field: str) -> int | None:
    value = query.get(field, "")
    if value == "":
        return None
    if not _UNSIGNED_RE.fullmatch(value):
        raise InvalidParameterError(field)
    return int(value)


def parse_color(value: str | None) -> tuple[int, int, int]:
    """Decode an ``RRGGBB`` hex string, falling back to white on anything else."""
    if not value or not _HEX_COLOR_RE.fullmatch(value):
        return WHITE
    rgb = int(value, 16)
    return (rgb >> 16) & 0xFF, (rgb >> 8) & 0xFF, rgb & 0xFF


class StoredBlob(BaseModel):
    data: bytes
    modified_at: datetime


class CropBox(BaseModel):
    x1: int | None = None
    y1: int | None = None
    x2: int | None = None
    y2: int | None = None

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> "CropBox":
        return cls(**{field: parse_unsigned(query, field) for field in ("x1", "y1", "x2", "y2")})


class ScaleSpec(BaseModel):
    width: int | None = None

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> "ScaleSpec":
        width = parse_unsigned(query, "w")
        if width is not None and width > MAX_SCALE_WIDTH:
            raise InvalidParameterError("w")
        # A zero width keeps the crop at full resolution.
        return cls(width=width or None)


class ClientIdentity(BaseModel):
    ip: str
    user_agent: str = ""


class LabelConfig(BaseModel):
    color: tuple[int, int, int] = WHITE
    include_identity: bool = False
    suppressed: bool = False

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> "LabelConfig":
        return cls(
            color=parse_color(query.get("color")),
            include_identity=bool(query.get("id")),
            suppressed=bool(query.get("nolabel")),
        )
