import re

_VALID_FILENAME_RE = re.compile(r"[A-Za-z0-9-]+")


def validate_filename(name: str | None) -> bool:
    """Accept only non-empty ASCII letters, digits and hyphens.

    This is the only guard against path traversal into the storage directory,
    so uploads and renders both go through it.
    """
    return bool(name) and _VALID_FILENAME_RE.fullmatch(name) is not None
