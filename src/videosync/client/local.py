"""Local media folder access.

This module provides:
- LocalEntry: a file in the local media folder
- LocalFolder: directory handle supporting list/find/create/delete
- LocalWriteStream: staged writer that replaces an entry only on success
"""

from __future__ import annotations

import contextlib
import logging
import mimetypes
import os
from pathlib import Path
from types import TracebackType

logger = logging.getLogger(__name__)

VIDEO_MIME_PREFIX = "video/"
GENERIC_VIDEO_MIME = "video/*"
DEFAULT_MIME = "application/octet-stream"

STAGING_SUFFIX = ".part"

# Container formats the stdlib table does not know on every platform
_VIDEO_EXTENSIONS = {
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
    ".m4v": "video/x-m4v",
    ".ts": "video/mp2t",
    ".3gp": "video/3gpp",
    ".flv": "video/x-flv",
}


class LocalStorageError(Exception):
    """Raised when the local folder cannot be used."""


def guess_mime_type(name: str) -> str:
    """Guess a content type from a file name's extension."""
    suffix = Path(name).suffix.lower()
    if suffix in _VIDEO_EXTENSIONS:
        return _VIDEO_EXTENSIONS[suffix]
    mime, _ = mimetypes.guess_type(name, strict=False)
    return mime or DEFAULT_MIME


def _staging_path(path: Path) -> Path:
    return path.with_name(f".{path.name}{STAGING_SUFFIX}")


class LocalEntry:
    """A regular file in the local media folder."""

    def __init__(self, path: Path, mime_type: str | None = None) -> None:
        """Initialize the entry.

        Args:
            path: Absolute path of the file.
            mime_type: Declared content type; guessed from the name when None.
        """
        self._path = path
        self._mime_type = mime_type

    def __repr__(self) -> str:
        return f"LocalEntry({self._path.name!r})"

    @property
    def path(self) -> Path:
        """Absolute path of the file."""
        return self._path

    @property
    def name(self) -> str:
        """File name (display name)."""
        return self._path.name

    @property
    def mime_type(self) -> str:
        """Content type of the file."""
        return self._mime_type or guess_mime_type(self._path.name)

    @property
    def is_video(self) -> bool:
        """Check if the entry has a video content type."""
        return self.mime_type.startswith(VIDEO_MIME_PREFIX)

    @property
    def size(self) -> int:
        """Current size in bytes, 0 if the file vanished."""
        try:
            return self._path.stat().st_size
        except FileNotFoundError:
            return 0

    def delete(self) -> bool:
        """Delete the file.

        Returns:
            True if the file was deleted (or was already gone).
        """
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to delete {self._path}: {e}")
            return False
        return True


class LocalWriteStream:
    """Writes to a hidden staging file and swaps it in on close.

    A failed or interrupted download never leaves a truncated file under the
    entry's name: the staging file is discarded instead.

    Usage:
        with folder.open_write_stream(entry) as stream:
            stream.write(data)
    """

    def __init__(self, entry: LocalEntry) -> None:
        """Open the staging file for entry."""
        self._entry = entry
        self._staging = _staging_path(entry.path)
        self._file = self._staging.open("wb")
        self._closed = False

    @property
    def bytes_written(self) -> int:
        """Bytes written so far."""
        return self._file.tell()

    def write(self, data: bytes) -> int:
        """Write bytes to the staging file."""
        return self._file.write(data)

    def close(self) -> None:
        """Flush the staging file and atomically replace the entry with it."""
        if self._closed:
            return
        self._closed = True
        self._file.flush()
        os.fsync(self._file.fileno())
        self._file.close()
        os.replace(self._staging, self._entry.path)

    def abort(self) -> None:
        """Discard everything written so far."""
        if self._closed:
            return
        self._closed = True
        self._file.close()
        with contextlib.suppress(OSError):
            self._staging.unlink()

    def __enter__(self) -> LocalWriteStream:
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Commit on success, discard on error."""
        if exc_type is None:
            self.close()
        else:
            self.abort()


class LocalFolder:
    """Directory handle for the user-selected media folder.

    Only regular files directly inside the folder are considered; hidden
    staging files are never listed.
    """

    def __init__(self, root: Path | str) -> None:
        """Initialize the folder handle.

        Args:
            root: Directory holding the media files.
        """
        self._root = Path(root).expanduser()

    def __repr__(self) -> str:
        return f"LocalFolder({str(self._root)!r})"

    @property
    def root(self) -> Path:
        """Directory path."""
        return self._root

    def is_accessible(self) -> bool:
        """Check that the folder exists and can be read and written."""
        return self._root.is_dir() and os.access(self._root, os.R_OK | os.W_OK | os.X_OK)

    def list_entries(self) -> list[LocalEntry]:
        """List regular files in the folder, sorted by name.

        Raises:
            LocalStorageError: If the folder cannot be read.
        """
        try:
            paths = sorted(p for p in self._root.iterdir() if p.is_file())
        except OSError as e:
            raise LocalStorageError(f"Cannot read folder {self._root}: {e}") from e
        return [
            LocalEntry(p)
            for p in paths
            if not (p.name.startswith(".") and p.name.endswith(STAGING_SUFFIX))
        ]

    def media_files(self) -> list[LocalEntry]:
        """List playable video files, sorted by name."""
        return [entry for entry in self.list_entries() if entry.is_video]

    def find_entry(self, name: str) -> LocalEntry | None:
        """Find a file by exact name."""
        path = self._root / name
        if path.is_file():
            return LocalEntry(path)
        return None

    def create_entry(self, mime_type: str, name: str) -> LocalEntry | None:
        """Create a new empty file.

        Args:
            mime_type: Content type recorded on the returned entry.
            name: File name; must not contain path separators.

        Returns:
            The new entry, or None if the file could not be created
            (for example because a file with that name already exists).
        """
        if not name or Path(name).name != name:
            logger.error(f"Refusing to create entry with invalid name: {name!r}")
            return None
        path = self._root / name
        try:
            with path.open("xb"):
                pass
        except OSError as e:
            logger.debug(f"Could not create {path}: {e}")
            return None
        return LocalEntry(path, mime_type=mime_type)

    def open_write_stream(self, entry: LocalEntry) -> LocalWriteStream:
        """Open a staged write stream for entry.

        Raises:
            OSError: If the staging file cannot be created.
        """
        return LocalWriteStream(entry)
