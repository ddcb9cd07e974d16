"""Fixtures for end-to-end sync tests.

The Drive API is replaced by an in-process HTTP handler mounted with
httpx.MockTransport, so the real DriveClient, query building, pagination
and streaming code paths all run.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import pytest

from videosync.client.api import FOLDER_MIME_TYPE, DriveClient
from videosync.client.network import NetworkMonitor
from videosync.client.sync import SyncOrchestrator
from videosync.core.config import DriveConfig
from videosync.core.retry import RetryPolicy

API_URL = "http://drive.test/drive/v3"
PROBE_URL = "http://probe.test/generate_204"

_NAME_RE = re.compile(r"name = '((?:[^'\\]|\\.)*)'")
_PARENT_RE = re.compile(r"'((?:[^'\\]|\\.)*)' in parents")


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)


@dataclass
class DriveItem:
    """A file or folder stored by the fake server."""

    id: str
    name: str
    mime_type: str
    parents: list[str]
    content: bytes = b""
    trashed: bool = False
    report_size: bool = True


@dataclass
class FakeDriveServer:
    """Minimal Drive v3 server: folder search, folder listing, media download."""

    items: dict[str, DriveItem] = field(default_factory=dict)
    page_size: int = 2
    requests: list[httpx.Request] = field(default_factory=list)
    online: bool = True
    # File ids whose media download answers 404
    unavailable: set[str] = field(default_factory=set)

    def folder(self, folder_id: str, name: str, parent: str = "root") -> None:
        self.items[folder_id] = DriveItem(folder_id, name, FOLDER_MIME_TYPE, [parent])

    def file(
        self,
        file_id: str,
        name: str,
        parent: str,
        content: bytes,
        mime_type: str = "video/mp4",
        **kwargs: bool,
    ) -> None:
        self.items[file_id] = DriveItem(file_id, name, mime_type, [parent], content, **kwargs)

    def _matches(self, item: DriveItem, query: str) -> bool:
        if item.trashed and "trashed = false" in query:
            return False
        parent = _PARENT_RE.search(query)
        if parent and _unescape(parent.group(1)) not in item.parents:
            return False
        if f"mimeType = '{FOLDER_MIME_TYPE}'" in query:
            name = _NAME_RE.search(query)
            is_match = item.mime_type == FOLDER_MIME_TYPE
            return is_match and (name is None or _unescape(name.group(1)) == item.name)
        return item.mime_type.startswith("video/") or item.mime_type == "application/octet-stream"

    def _metadata(self, item: DriveItem) -> dict[str, object]:
        data: dict[str, object] = {
            "id": item.id,
            "name": item.name,
            "mimeType": item.mime_type,
            "parents": item.parents,
            "modifiedTime": "2025-01-01T00:00:00.000Z",
        }
        if item.report_size and item.mime_type != FOLDER_MIME_TYPE:
            data["size"] = str(len(item.content))
        return data

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "probe.test":
            return httpx.Response(204 if self.online else 302)
        if not self.online:
            raise httpx.ConnectError("network is down", request=request)
        if request.headers.get("Authorization") != "Bearer test-token":
            return httpx.Response(401, json={"error": {"message": "Invalid Credentials"}})

        path = request.url.path.removeprefix("/drive/v3")
        if path == "/files":
            matches = [i for i in self.items.values() if self._matches(i, request.url.params["q"])]
            start = int(request.url.params.get("pageToken", "0"))
            page = matches[start : start + self.page_size]
            body: dict[str, object] = {"files": [self._metadata(i) for i in page]}
            if start + self.page_size < len(matches):
                body["nextPageToken"] = str(start + self.page_size)
            return httpx.Response(200, content=json.dumps(body).encode())

        file_id = path.removeprefix("/files/")
        item = self.items.get(file_id)
        if item is None or file_id in self.unavailable:
            return httpx.Response(404, json={"error": {"message": "File not found"}})
        return httpx.Response(200, content=item.content)


@pytest.fixture
def drive_server() -> FakeDriveServer:
    """Create an empty fake Drive server."""
    return FakeDriveServer()


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """Create an empty local media directory."""
    path = tmp_path / "videos"
    path.mkdir()
    return path


@pytest.fixture
def signed_in_auth() -> object:
    """Authenticator reporting a signed-in account."""

    class _Auth:
        def current_account_email(self) -> str | None:
            return "viewer@example.com"

    return _Auth()


@pytest.fixture
def orchestrator(
    drive_server: FakeDriveServer, signed_in_auth: object
) -> Iterator[SyncOrchestrator]:
    """Create an orchestrator wired to the fake server."""
    transport = httpx.MockTransport(drive_server.handle)
    drive = DriveClient(
        lambda: "test-token",
        DriveConfig(api_url=API_URL, page_size=drive_server.page_size),
        max_retries=0,
        transport=transport,
    )
    network = NetworkMonitor(DriveConfig(connectivity_url=PROBE_URL), transport=transport)
    with drive:
        yield SyncOrchestrator(
            signed_in_auth,  # type: ignore[arg-type]
            drive,
            network,
            RetryPolicy(sleep=lambda _: None),
        )
