"""Shared types and dataclasses for sync operations.

This module provides:
- SyncError, TransferError, FileCreationError, DownloadError: Exception classes
- SyncRequest: Immutable input of one sync pass
- SyncPlan: Result of diffing the local and remote collections
- TransferFailure, TransferReport: Per-file outcome of applying a plan
- SyncOutcomeKind, SyncOutcome: Terminal result of a sync pass
- RemoteStore, Authenticator: Protocols for the collaborators
- Type aliases for callbacks
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from videosync.client.local import LocalFolder

if TYPE_CHECKING:
    from videosync.client.api import RemoteFile, RemoteFolder, WritableStream
    from videosync.client.local import LocalEntry

# Callers match on this to start sign-in instead of showing the message
NOT_SIGNED_IN = "Not signed in - please sign in first"


class SyncError(Exception):
    """Base exception for sync errors."""


class TransferError(SyncError):
    """A single file could not be transferred."""


class FileCreationError(TransferError):
    """The local file could not be created."""


class DownloadError(TransferError):
    """The remote content could not be written locally."""


# =============================================================================
# Collaborator protocols
# =============================================================================


class RemoteStore(Protocol):
    """Remote file storage used by the resolver and transfer executor."""

    def search_folders(self, name: str, parent_id: str | None = None) -> list[RemoteFolder]:
        """Search non-trashed folders with an exact name."""
        ...

    def list_files(self, folder_id: str) -> list[RemoteFile]:
        """List media files directly inside a folder."""
        ...

    def download_into(
        self,
        file_id: str,
        stream: WritableStream,
        on_progress: Callable[[int], None] | None = None,
    ) -> int:
        """Stream a file's bytes into stream."""
        ...


class Authenticator(Protocol):
    """Authentication capability consulted before any remote call."""

    def current_account_email(self) -> str | None:
        """Get the signed-in account, or None."""
        ...


# Type alias for progress callback: (file name, bytes written, total bytes)
ProgressCallback = Callable[[str, int, int], None]


# =============================================================================
# Request and plan
# =============================================================================


@dataclass(frozen=True)
class SyncRequest:
    """Everything one sync pass needs, passed down the whole call chain.

    Attributes:
        folder: Local media folder, None when the user has not picked one.
        remote_path: Slash-delimited path of the Drive folder to mirror.
    """

    folder: LocalFolder | None
    remote_path: str

    @classmethod
    def create(cls, local_root: Path | str | None, remote_path: str) -> SyncRequest:
        """Create a request from a local directory path."""
        folder = LocalFolder(local_root) if local_root else None
        return cls(folder=folder, remote_path=remote_path)


@dataclass
class SyncPlan:
    """Local mutations needed to mirror the remote folder.

    Attributes:
        files_to_download: Remote files that are missing or stale locally.
        files_to_delete: Local files absent remotely, by normalized name.
        up_to_date: Normalized names already current locally.
    """

    files_to_download: list[RemoteFile] = field(default_factory=list)
    files_to_delete: dict[str, LocalEntry] = field(default_factory=dict)
    up_to_date: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Check if nothing needs to change."""
        return not self.files_to_download and not self.files_to_delete


# =============================================================================
# Transfer results
# =============================================================================


class TransferOperation(str, Enum):
    """Kind of per-file local mutation."""

    DELETE = "delete"
    DOWNLOAD = "download"


@dataclass(frozen=True)
class TransferFailure:
    """A per-file failure absorbed by the batch."""

    name: str
    operation: TransferOperation
    error: str


@dataclass
class TransferReport:
    """Aggregated result of applying a sync plan."""

    downloaded: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failures: list[TransferFailure] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        """Check if any file failed."""
        return len(self.failures) > 0


# =============================================================================
# Outcome
# =============================================================================


class SyncOutcomeKind(Enum):
    """Terminal state of a sync pass."""

    SUCCESS = auto()
    NO_LOCAL_FOLDER = auto()
    NETWORK_UNAVAILABLE = auto()
    AUTH_REQUIRED = auto()
    REMOTE_FOLDER_NOT_FOUND = auto()
    REMOTE_FOLDER_EMPTY = auto()
    TRANSFER_ERROR = auto()
    ALREADY_RUNNING = auto()


@dataclass(frozen=True)
class SyncOutcome:
    """Result of a sync pass.

    Attributes:
        kind: What happened.
        message: Human-readable explanation.
        remote_path: Configured remote path, for folder-related failures.
        report: Per-file results, only for successful passes.
        expired: True when stored credentials were rejected, as opposed to
            nobody being signed in.
    """

    kind: SyncOutcomeKind
    message: str = ""
    remote_path: str | None = None
    report: TransferReport | None = None
    expired: bool = False

    @property
    def ok(self) -> bool:
        """Check if the pass completed."""
        return self.kind is SyncOutcomeKind.SUCCESS

    @property
    def needs_sign_in(self) -> bool:
        """Check if the caller should start the sign-in flow."""
        return self.kind is SyncOutcomeKind.AUTH_REQUIRED

    @classmethod
    def success(cls, report: TransferReport) -> SyncOutcome:
        """Completed pass, possibly with absorbed per-file failures."""
        return cls(SyncOutcomeKind.SUCCESS, "Sync complete", report=report)

    @classmethod
    def no_local_folder(cls) -> SyncOutcome:
        """No usable local folder."""
        return cls(SyncOutcomeKind.NO_LOCAL_FOLDER, "No local folder selected")

    @classmethod
    def network_unavailable(cls, message: str = "No internet connection") -> SyncOutcome:
        """Offline, or the connection failed during the pass."""
        return cls(SyncOutcomeKind.NETWORK_UNAVAILABLE, message)

    @classmethod
    def auth_required(cls, message: str = NOT_SIGNED_IN, expired: bool = False) -> SyncOutcome:
        """Not signed in, or credentials expired."""
        return cls(SyncOutcomeKind.AUTH_REQUIRED, message, expired=expired)

    @classmethod
    def folder_not_found(cls, remote_path: str) -> SyncOutcome:
        """The remote path did not resolve to a folder."""
        return cls(
            SyncOutcomeKind.REMOTE_FOLDER_NOT_FOUND,
            f"Folder '{remote_path}' not found in Google Drive",
            remote_path=remote_path,
        )

    @classmethod
    def folder_empty(cls, remote_path: str) -> SyncOutcome:
        """The remote folder holds no video files."""
        return cls(
            SyncOutcomeKind.REMOTE_FOLDER_EMPTY,
            f"No videos found in folder '{remote_path}'",
            remote_path=remote_path,
        )

    @classmethod
    def transfer_error(cls, message: str) -> SyncOutcome:
        """Unexpected failure outside the per-file batch."""
        return cls(SyncOutcomeKind.TRANSFER_ERROR, message)

    @classmethod
    def already_running(cls) -> SyncOutcome:
        """Another pass is in flight on the same orchestrator."""
        return cls(SyncOutcomeKind.ALREADY_RUNNING, "A sync is already in progress")
