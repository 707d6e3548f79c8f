"""Streaming file reader for multipart firmware uploads.

:mod:`httpx` streams file-like objects in a multipart body chunk by chunk
instead of loading them into memory. :class:`UploadReader` wraps the
firmware file and counts the bytes handed to the transport, so an upload
that breaks off can report how far it got.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO


class UploadReader:
    """Binary file wrapper that tracks the upload offset.

    Supports the subset of the file protocol :mod:`httpx` uses for
    multipart fields: ``read``, ``seek`` and ``tell``. Seeking back to the
    start (as httpx does before every send) resets the offset.

    Args:
        path: The file to upload.

    Example::

        with UploadReader(Path("fw.bin")) as reader:
            client.request("POST", "/api/v1/projects", files={"file": (reader.name, reader)})
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._raw: BinaryIO = open(path, "rb")
        self._offset = 0

    @property
    def name(self) -> str:
        """Base name of the uploaded file."""
        return self._path.name

    @property
    def offset(self) -> int:
        """Bytes read since the last rewind."""
        return self._offset

    @property
    def size(self) -> int:
        return os.fstat(self._raw.fileno()).st_size

    def read(self, size: int = -1) -> bytes:
        chunk = self._raw.read(size)
        self._offset += len(chunk)
        return chunk

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        position = self._raw.seek(offset, whence)
        if whence == os.SEEK_SET:
            self._offset = position
        return position

    def tell(self) -> int:
        return self._raw.tell()

    def close(self) -> None:
        self._raw.close()

    def __enter__(self) -> UploadReader:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
