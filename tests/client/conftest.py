"""Shared fixtures for client tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from videosync.client.api import RemoteFile, RemoteFolder, WritableStream
from videosync.client.local import LocalFolder


class FakeDrive:
    """In-memory stand-in for DriveClient.

    Folders are matched by name and parent like the real search query;
    every call is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.folders: list[RemoteFolder] = []
        self.files: dict[str, list[RemoteFile]] = {}
        self.contents: dict[str, bytes] = {}
        self.download_errors: dict[str, Exception] = {}
        self.search_error: Exception | None = None
        self.calls: list[tuple[Any, ...]] = []

    def add_folder(self, folder_id: str, name: str, parent: str = "root") -> RemoteFolder:
        folder = RemoteFolder(id=folder_id, name=name, parents=(parent,))
        self.folders.append(folder)
        return folder

    def add_file(
        self,
        folder_id: str,
        file_id: str,
        name: str,
        content: bytes = b"",
        size: int | None = -1,
        mime_type: str = "video/mp4",
    ) -> RemoteFile:
        declared = len(content) if size == -1 else size
        remote = RemoteFile(id=file_id, name=name, mime_type=mime_type, size=declared)
        self.files.setdefault(folder_id, []).append(remote)
        self.contents[file_id] = content
        return remote

    def search_folders(self, name: str, parent_id: str | None = None) -> list[RemoteFolder]:
        self.calls.append(("search_folders", name, parent_id))
        if self.search_error is not None:
            raise self.search_error
        return [
            f
            for f in self.folders
            if f.name == name and (parent_id is None or parent_id in f.parents)
        ]

    def list_files(self, folder_id: str) -> list[RemoteFile]:
        self.calls.append(("list_files", folder_id))
        return list(self.files.get(folder_id, []))

    def download_into(
        self,
        file_id: str,
        stream: WritableStream,
        on_progress: Callable[[int], None] | None = None,
    ) -> int:
        self.calls.append(("download_into", file_id))
        if file_id in self.download_errors:
            raise self.download_errors[file_id]
        data = self.contents.get(file_id, b"")
        stream.write(data)
        if on_progress:
            on_progress(len(data))
        return len(data)


@pytest.fixture
def fake_drive() -> FakeDrive:
    """Create an empty in-memory Drive."""
    return FakeDrive()


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """Create an empty local media directory."""
    path = tmp_path / "videos"
    path.mkdir()
    return path


@pytest.fixture
def local_folder(media_dir: Path) -> LocalFolder:
    """Create a LocalFolder over the media directory."""
    return LocalFolder(media_dir)
