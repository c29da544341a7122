from __future__ import annotations

import base64
import binascii
import mimetypes
import os
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Optional, Tuple

from app.core.errors import FileReadError, InvalidDataUriError

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
ACCEPTED_FILE_TYPES = ("image/png", "image/jpeg", "application/x-figma")
ACCEPTED_FILE_EXTENSIONS = ".png, .jpg, .jpeg, .fig"
# Pickers often report design files with an empty or generic MIME type.
DESIGN_FILE_SUFFIX = ".fig"
FALLBACK_MIME_TYPE = "application/octet-stream"

TOO_LARGE_MESSAGE = "File is too large. Maximum size is {limit}."
INVALID_TYPE_MESSAGE = "Invalid file type. Please upload a PNG, JPG, or FIG file."

DATA_URI_PATTERN = r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>[A-Za-z0-9+/=\s]*)$"
DATA_URI_RE = re.compile(DATA_URI_PATTERN)


@dataclass(frozen=True)
class SelectedFile:
    name: str
    mime_type: str
    size: int
    opener: Callable[[], BinaryIO]

    @classmethod
    def from_bytes(cls, name: str, data: bytes, mime_type: Optional[str] = None) -> "SelectedFile":
        return cls(
            name=name,
            mime_type=guess_mime_type(name) if mime_type is None else mime_type,
            size=len(data),
            opener=lambda: BytesIO(data),
        )

    @classmethod
    def from_path(cls, path: str | os.PathLike, mime_type: Optional[str] = None) -> "SelectedFile":
        p = Path(path)
        return cls(
            name=p.name,
            mime_type=guess_mime_type(p.name) if mime_type is None else mime_type,
            size=p.stat().st_size,
            opener=lambda: open(p, "rb"),
        )

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def open(self) -> BinaryIO:
        return self.opener()


def guess_mime_type(filename: str) -> str:
    # The host's mime.types maps .fig to XFig; a Figma file has no reliable type.
    if is_design_file(filename):
        return ""
    mime, _ = mimetypes.guess_type(filename or "")
    return mime or ""


def is_design_file(filename: str) -> bool:
    return (filename or "").lower().endswith(DESIGN_FILE_SUFFIX)


def format_size_limit(max_size: int) -> str:
    for unit, scale in (("MB", 1024 * 1024), ("KB", 1024)):
        if max_size >= scale and max_size % scale == 0:
            return f"{max_size // scale}{unit}"
    return f"{max_size} bytes"


def too_large_message(max_size: int = MAX_FILE_SIZE) -> str:
    return TOO_LARGE_MESSAGE.format(limit=format_size_limit(max_size))


def validate_file(
    name: str,
    mime_type: str,
    size: int,
    max_size: int = MAX_FILE_SIZE,
    accepted_types: Iterable[str] = ACCEPTED_FILE_TYPES,
) -> Optional[str]:
    """Return the user-facing rejection message, or None if the file may be analyzed."""
    if size > max_size:
        return too_large_message(max_size)
    if (mime_type or "") not in set(accepted_types) and not is_design_file(name):
        return INVALID_TYPE_MESSAGE
    return None


def encode_data_uri(data: bytes, mime_type: str) -> str:
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or FALLBACK_MIME_TYPE};base64,{payload}"


def read_file_as_data_uri(file: SelectedFile) -> str:
    try:
        with file.open() as fh:
            data = fh.read()
    except OSError as e:
        raise FileReadError() from e
    return encode_data_uri(data, file.mime_type)


def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    m = DATA_URI_RE.match(uri or "")
    if not m:
        raise InvalidDataUriError(
            "Expected a data URI of the form 'data:<mimetype>;base64,<encoded_data>'."
        )
    try:
        data = base64.b64decode(m.group("payload"), validate=False)
    except (binascii.Error, ValueError) as e:
        raise InvalidDataUriError(f"Data URI payload is not valid Base64: {e}") from e
    return m.group("mime"), data
