"""Storage layer for transcript-reconcile.

Provides atomic file operations and the single-blob persistence
backends the smart dictionary writes through.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from transcript_reconcile.errors import NotFoundError, StorageError


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    """Write data to a file atomically.

    Writes to a temporary file in the same directory, then renames to target.
    This prevents data corruption from interrupted writes.

    Args:
        path: Target file path
        data: String data to write
        encoding: File encoding (default utf-8)

    Raises:
        StorageError: If the write operation fails
    """
    path = Path(path)
    fd = None
    temp_path = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Same directory keeps the rename on one filesystem
        fd, temp_path = tempfile.mkstemp(
            suffix=".tmp",
            prefix=path.stem + "_",
            dir=path.parent,
        )
        os.write(fd, data.encode(encoding))
        os.fsync(fd)
        os.close(fd)
        fd = None

        os.replace(temp_path, path)
        temp_path = None

    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e}", context={"path": str(path)}) from e
    finally:
        if fd is not None:
            try:
                os.close(fd)
            except OSError:
                pass
        if temp_path is not None:
            try:
                os.unlink(temp_path)
            except OSError:
                pass


def atomic_write_json(path: Path, data: dict | list, indent: int = 2) -> None:
    """Write JSON data to a file atomically.

    Args:
        path: Target file path
        data: Data to serialize as JSON
        indent: JSON indentation level (default 2)
    """
    atomic_write(path, json.dumps(data, indent=indent, ensure_ascii=False))


def read_text(path: Path, encoding: str = "utf-8") -> str:
    """Read a whole text file.

    Raises:
        NotFoundError: If file doesn't exist
        StorageError: If the file can't be read or decoded
    """
    path = Path(path)
    if not path.exists():
        raise NotFoundError(f"File not found: {path}", context={"path": str(path)})

    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise StorageError(f"Failed to read {path}: {e}", context={"path": str(path)}) from e


def read_json(path: Path) -> dict | list:
    """Read JSON data from a file.

    Args:
        path: File path to read

    Returns:
        Parsed JSON data

    Raises:
        NotFoundError: If file doesn't exist
        StorageError: If file is invalid JSON
    """
    text = read_text(path)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid JSON in {path}: {e}", context={"path": str(path)}) from e


@runtime_checkable
class BlobBackend(Protocol):
    """Key-value style storage for one serialized blob."""

    def read(self) -> str | None:
        """Return the stored blob, or None if nothing was stored yet."""
        ...

    def write(self, blob: str) -> None:
        """Replace the stored blob entirely."""
        ...


class FileBlobBackend:
    """Stores the blob in a single UTF-8 file.

    Attributes:
        path: File holding the blob
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def read(self) -> str | None:
        try:
            return read_text(self.path)
        except NotFoundError:
            return None

    def write(self, blob: str) -> None:
        atomic_write(self.path, blob)

    def __repr__(self) -> str:
        return f"FileBlobBackend({str(self.path)!r})"


class MemoryBlobBackend:
    """In-memory blob storage, used as a test double.

    Attributes:
        blob: Last written (or initial) blob
        write_count: Number of write() calls seen
    """

    def __init__(self, initial: str | None = None):
        self.blob = initial
        self.write_count = 0

    def read(self) -> str | None:
        return self.blob

    def write(self, blob: str) -> None:
        self.blob = blob
        self.write_count += 1
