from __future__ import annotations

import hashlib
from pathlib import Path
from typing import IO

from censo_ma.errors import NotFoundError

"""User-supplied file handles (uploads).

An upload is any binary file object with a ``name``. Its cache identity is
the file name plus a content digest, so the same bytes uploaded twice hit
the cache and an edited file with the same name does not.
"""

__all__ = [
    "read_upload",
    "upload_identity",
    "upload_name",
]


def upload_name(file: IO[bytes] | None) -> str:
    return Path(str(getattr(file, "name", "") or "")).name


def upload_identity(name: str, content: bytes) -> str:
    digest = hashlib.sha256(content).hexdigest()[:16]
    return f"upload:{name}:{digest}"


def read_upload(file: IO[bytes] | None) -> tuple[str, bytes]:
    """Return (base file name, content bytes); NotFoundError when no file was selected."""
    if file is None:
        raise NotFoundError(None, message="no file selected")
    # Both sheets of one workbook are read from the same handle.
    if file.seekable():
        file.seek(0)
    content = file.read()
    if isinstance(content, str):
        content = content.encode("utf-8")
    return upload_name(file), content
