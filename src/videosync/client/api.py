"""HTTP client for the Google Drive v3 API.

This module provides:
- DriveClient: search folders, list folder contents, download file media
- RemoteFolder / RemoteFile: immutable snapshots of Drive metadata
- APIError hierarchy mapping Drive error responses to exceptions
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

import httpx

from videosync.core.config import DriveConfig
from videosync.core.retry import DEFAULT_MAX_RETRIES, retry_with_backoff

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Drive often labels uploaded videos as generic binary content
VIDEO_MIME_QUERY = "(mimeType contains 'video/' or mimeType = 'application/octet-stream')"

DOWNLOAD_CHUNK_SIZE = 1024 * 1024

_RATE_LIMIT_REASONS = {"rateLimitExceeded", "userRateLimitExceeded"}
_AUTH_REASONS = {"authError", "invalidCredentials"}


class WritableStream(Protocol):
    """Destination for downloaded bytes."""

    def write(self, data: bytes, /) -> int: ...


class APIError(Exception):
    """Base exception for Drive API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Access token missing, expired or revoked."""


class NotFoundError(APIError):
    """Resource not found."""


class RateLimitError(APIError):
    """Request rejected by a Drive quota."""


class ServerError(APIError):
    """Drive returned a 5xx response."""


def escape_query_value(value: str) -> str:
    """Escape a literal for use inside a quoted Drive query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    # Drive returns RFC 3339 with a trailing Z
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class RemoteFolder:
    """Folder metadata from a Drive search."""

    id: str
    name: str
    parents: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemoteFolder:
        """Create from API response dictionary."""
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            parents=tuple(data.get("parents", ())),
        )


@dataclass(frozen=True)
class RemoteFile:
    """File metadata from a Drive folder listing.

    Attributes:
        id: Opaque Drive file id.
        name: Raw display name.
        mime_type: Content type declared by Drive.
        size: Declared byte size, None when Drive does not report one.
        modified_time: Last modification time.
    """

    id: str
    name: str
    mime_type: str = ""
    size: int | None = None
    modified_time: datetime | None = None

    @property
    def declared_size(self) -> int:
        """Declared size, 0 when unknown."""
        return self.size or 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemoteFile:
        """Create from API response dictionary."""
        # Drive encodes int64 fields as strings
        size = data.get("size")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
            size=int(size) if size is not None else None,
            modified_time=_parse_time(data.get("modifiedTime")),
        )


class _BearerAuth(httpx.Auth):
    """Attach a fresh access token to every request."""

    def __init__(self, token_provider: Callable[[], str]) -> None:
        self._token_provider = token_provider

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token_provider()}"
        yield request


class DriveClient:
    """HTTP client for the parts of the Drive v3 API used by sync."""

    def __init__(
        self,
        token_provider: Callable[[], str],
        config: DriveConfig | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the Drive client.

        Args:
            token_provider: Returns a valid OAuth access token; called per request.
            config: API settings (defaults to the public Drive endpoint).
            max_retries: Retries for rate-limited or failed read calls.
            transport: Optional httpx transport (used by tests).
        """
        self._config = config or DriveConfig()
        self._max_retries = max_retries
        self._client = httpx.Client(
            base_url=self._config.api_url,
            timeout=httpx.Timeout(self._config.timeout, read=self._config.download_timeout),
            auth=_BearerAuth(token_provider),
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> DriveClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle API response and raise appropriate exceptions."""
        if response.status_code < 400:
            return response

        message, reason = self._error_detail(response)
        status = response.status_code
        if status == 401 or reason in _AUTH_REASONS:
            raise AuthenticationError(message or "Invalid or expired token", status)
        if status == 429 or reason in _RATE_LIMIT_REASONS:
            raise RateLimitError(message or "Rate limit exceeded", status)
        if status == 404:
            raise NotFoundError(message or "Resource not found", status)
        if status >= 500:
            raise ServerError(message or "Drive server error", status)
        raise APIError(message or "Unknown error", status)

    @staticmethod
    def _error_detail(response: httpx.Response) -> tuple[str, str | None]:
        """Extract message and first reason from a Drive error body."""
        try:
            error = response.json().get("error", {})
        except ValueError:
            return response.text, None
        if not isinstance(error, dict):
            return str(error), None
        reasons = [e.get("reason") for e in error.get("errors", []) if isinstance(e, dict)]
        return error.get("message", ""), reasons[0] if reasons else None

    def _get_json(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        """GET a JSON resource, retrying on quota and server errors."""

        def _do_get() -> dict[str, Any]:
            response = self._handle_response(self._client.get(path, params=params))
            result: dict[str, Any] = response.json()
            return result

        result: dict[str, Any] = retry_with_backoff(
            _do_get,
            max_retries=self._max_retries,
            retryable_exceptions=(RateLimitError, ServerError),
        )
        return result

    def _list_all(self, query: str, fields: str) -> Iterator[dict[str, Any]]:
        """Yield every file matching query, following page tokens."""
        params = {
            "q": query,
            "fields": f"nextPageToken, files({fields})",
            "pageSize": str(self._config.page_size),
            "includeItemsFromAllDrives": "true",
            "supportsAllDrives": "true",
        }
        while True:
            data = self._get_json("/files", params)
            yield from data.get("files", [])
            page_token = data.get("nextPageToken")
            if not page_token:
                return
            params = {**params, "pageToken": page_token}

    # === Folder operations ===

    def search_folders(self, name: str, parent_id: str | None = None) -> list[RemoteFolder]:
        """Search non-trashed folders with an exact name.

        Args:
            name: Exact, case-sensitive folder name.
            parent_id: Restrict to direct children of this folder.

        Returns:
            Matching folders, in the order Drive returned them.
        """
        query = (
            f"mimeType = '{FOLDER_MIME_TYPE}' and name = '{escape_query_value(name)}' "
            f"and trashed = false"
        )
        if parent_id is not None:
            query += f" and '{escape_query_value(parent_id)}' in parents"
        logger.debug(f"Searching folders with query: {query}")
        return [RemoteFolder.from_dict(f) for f in self._list_all(query, "id, name, parents")]

    # === File operations ===

    def list_files(self, folder_id: str, mime_query: str = VIDEO_MIME_QUERY) -> list[RemoteFile]:
        """List non-trashed files directly inside a folder.

        Args:
            folder_id: Drive id of the folder.
            mime_query: Query clause restricting content types.

        Returns:
            File metadata for every matching file.
        """
        query = f"'{escape_query_value(folder_id)}' in parents and {mime_query} and trashed = false"
        logger.debug(f"Listing files with query: {query}")
        return [
            RemoteFile.from_dict(f)
            for f in self._list_all(query, "id, name, mimeType, size, modifiedTime")
        ]

    def download_into(
        self,
        file_id: str,
        stream: WritableStream,
        on_progress: Callable[[int], None] | None = None,
    ) -> int:
        """Stream a file's content into a writable binary stream.

        Args:
            file_id: Drive id of the file.
            stream: Destination stream (left open).
            on_progress: Called with the running byte count after each chunk.

        Returns:
            Number of bytes written.

        Raises:
            APIError: If Drive rejects the request.
            httpx.TransportError: If the connection fails mid-transfer.
        """
        written = 0
        with self._client.stream(
            "GET",
            f"/files/{file_id}",
            params={"alt": "media", "supportsAllDrives": "true"},
        ) as response:
            if response.status_code >= 400:
                response.read()
                self._handle_response(response)
            for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                stream.write(chunk)
                written += len(chunk)
                if on_progress:
                    on_progress(written)
        return written
