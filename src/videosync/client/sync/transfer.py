"""Application of a sync plan to the local folder.

This module provides:
- TransferExecutor: deletes stale local files and downloads new ones

Failures are per file: a file that cannot be deleted, created or downloaded
is logged and recorded in the report, and the batch moves on.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from videosync.client.local import GENERIC_VIDEO_MIME
from videosync.client.sync.types import (
    DownloadError,
    FileCreationError,
    SyncError,
    TransferFailure,
    TransferOperation,
    TransferReport,
)
from videosync.core.naming import normalize
from videosync.core.retry import RetryPolicy

if TYPE_CHECKING:
    from videosync.client.api import RemoteFile
    from videosync.client.local import LocalEntry, LocalFolder
    from videosync.client.sync.types import ProgressCallback, RemoteStore, SyncPlan

logger = logging.getLogger(__name__)


class TransferExecutor:
    """Applies SyncPlans: deletions first, then downloads in plan order.

    Usage:
        executor = TransferExecutor(drive)
        report = executor.execute(folder, plan)
    """

    def __init__(
        self,
        store: RemoteStore,
        retry_policy: RetryPolicy | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            store: Remote storage to download from.
            retry_policy: Policy for local file creation (3 attempts, 100 ms apart
                by default).
            on_progress: Called with (name, bytes written, declared size).
        """
        self._store = store
        self._retry_policy = retry_policy or RetryPolicy()
        self._on_progress = on_progress

    def execute(self, folder: LocalFolder, plan: SyncPlan) -> TransferReport:
        """Apply plan to folder.

        Args:
            folder: Local media folder.
            plan: Plan computed by the differ.

        Returns:
            What was downloaded, deleted and what failed.
        """
        report = TransferReport()

        for name, entry in plan.files_to_delete.items():
            if entry.delete():
                logger.info(f"Deleted file: {name}")
                report.deleted.append(name)
            else:
                logger.warning(f"Failed to delete file: {name}")
                report.failures.append(
                    TransferFailure(name, TransferOperation.DELETE, "delete failed")
                )

        for remote_file in plan.files_to_download:
            try:
                entry = self.download(folder, remote_file)
                report.downloaded.append(entry.name)
            except Exception as e:
                logger.error(f"Error downloading file {remote_file.name}: {e}")
                report.failures.append(
                    TransferFailure(remote_file.name, TransferOperation.DOWNLOAD, str(e))
                )

        logger.info(
            f"Transfer complete: {len(report.downloaded)} downloaded, "
            f"{len(report.deleted)} deleted, {len(report.failures)} failed"
        )
        return report

    def download(self, folder: LocalFolder, remote_file: RemoteFile) -> LocalEntry:
        """Download one remote file under its normalized name.

        Any existing file with that name is removed first, then a fresh entry
        is created and the content is streamed into it.

        Args:
            folder: Local media folder.
            remote_file: File to download.

        Returns:
            The written entry.

        Raises:
            FileCreationError: If the entry could not be created after all attempts.
            DownloadError: If streaming the content failed.
        """
        name = normalize(remote_file.name)
        if name != remote_file.name:
            logger.debug(f"Sanitized file name: '{remote_file.name}' -> '{name}'")
        logger.info(f"Downloading file: {name}")

        existing = folder.find_entry(name)
        if existing is not None:
            deleted = existing.delete()
            logger.debug(f"Deleted existing file: {name}, success: {deleted}")

        entry = self._retry_policy.call_until_value(
            lambda: folder.create_entry(GENERIC_VIDEO_MIME, name),
            description=f"Creating file {name}",
        )
        if entry is None:
            raise FileCreationError(
                f"Failed to create file after {self._retry_policy.attempts} attempts: {name}"
            )

        def report_progress(written: int) -> None:
            if self._on_progress:
                self._on_progress(name, written, remote_file.declared_size)

        try:
            with folder.open_write_stream(entry) as stream:
                written = self._store.download_into(
                    remote_file.id, stream, on_progress=report_progress
                )
        except SyncError:
            entry.delete()
            raise
        except Exception as e:
            # Leave no empty placeholder behind; the next pass retries from scratch
            entry.delete()
            raise DownloadError(f"Failed to download {name}: {e}") from e

        logger.info(f"Downloaded file: {name} ({written} bytes)")
        return entry
