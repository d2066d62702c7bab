from __future__ import annotations

import mimetypes
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import IO, AnyStr


def to_bytes(contents: bytes | str) -> bytes:
    if isinstance(contents, str):
        return contents.encode("utf-8")
    return bytes(contents)


def content_size(contents: bytes | str) -> int:
    return len(to_bytes(contents))


def guess_mime_type(path: str, contents: bytes | str = b"") -> str:
    guessed, _encoding = mimetypes.guess_type(path, strict=False)
    if guessed:
        return guessed

    data = to_bytes(contents)
    if not data:
        return "application/x-empty"
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return "application/octet-stream"
    return "text/plain"


def to_timestamp(value) -> int:
    """Unix epoch seconds from a datetime, an HTTP date header, or a number."""
    if value is None or value == "":
        return 0
    if isinstance(value, datetime):
        return int(value.timestamp())
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(parsedate_to_datetime(str(value)).timestamp())
    except (TypeError, ValueError, AttributeError):
        pass
    try:
        return int(datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp())
    except ValueError:
        return 0


def read_stream_fully(stream: IO[AnyStr], chunk_size: int = 1024) -> bytes:
    chunks: list[bytes] = []
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        chunks.append(to_bytes(chunk))
    return b"".join(chunks)
