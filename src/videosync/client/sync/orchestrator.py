"""Top-level sync pass.

A pass moves through a fixed sequence of stages and stops at the first one
that fails:

    local folder check -> connectivity check -> sign-in check
        -> resolve remote path -> list remote files -> diff -> transfer

Every pass ends in a SyncOutcome; exceptions from the stages are mapped to
outcomes here and never reach the caller.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING

import httpx

from videosync.client.api import AuthenticationError
from videosync.client.auth import AuthError, NotSignedInError
from videosync.client.sync.differ import diff
from videosync.client.sync.resolver import RemotePathResolver
from videosync.client.sync.transfer import TransferExecutor
from videosync.client.sync.types import SyncOutcome

if TYPE_CHECKING:
    from videosync.client.network import NetworkMonitor
    from videosync.client.sync.types import (
        Authenticator,
        ProgressCallback,
        RemoteStore,
        SyncRequest,
    )
    from videosync.core.retry import RetryPolicy

logger = logging.getLogger(__name__)

# Failures of the connection itself, as opposed to error responses
NETWORK_EXCEPTIONS = (httpx.TransportError, ConnectionError, TimeoutError)


class SyncOrchestrator:
    """Runs sync passes from a remote Drive folder into a local folder.

    Only one pass runs at a time per orchestrator; a second request while
    one is in flight returns ALREADY_RUNNING immediately.

    Usage:
        orchestrator = SyncOrchestrator(auth, drive, NetworkMonitor())
        outcome = await orchestrator.run(SyncRequest.create(path, "VideoNetwork"))
    """

    def __init__(
        self,
        auth: Authenticator,
        store: RemoteStore,
        network: NetworkMonitor,
        retry_policy: RetryPolicy | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            auth: Reports the signed-in account.
            store: Remote storage (a DriveClient in production).
            network: Connectivity check run before any remote call.
            retry_policy: Policy for local file creation.
            on_progress: Per-file download progress callback.
        """
        self._auth = auth
        self._store = store
        self._network = network
        self._resolver = RemotePathResolver(store)
        self._executor = TransferExecutor(store, retry_policy, on_progress)
        self._in_flight = threading.Lock()

    @property
    def is_running(self) -> bool:
        """Check if a pass is in flight."""
        return self._in_flight.locked()

    async def run(self, request: SyncRequest) -> SyncOutcome:
        """Run one sync pass.

        Blocking stages run in worker threads so the event loop stays free.

        Args:
            request: Local folder and remote path to reconcile.

        Returns:
            The outcome of the pass.
        """
        if not self._in_flight.acquire(blocking=False):
            logger.warning("Sync requested while another sync is running")
            return SyncOutcome.already_running()
        try:
            outcome = await self._run_pass(request)
        finally:
            self._in_flight.release()

        if outcome.ok:
            logger.info("Sync completed successfully")
        else:
            logger.error(f"Sync failed: {outcome.message}")
        return outcome

    def sync(self, request: SyncRequest) -> SyncOutcome:
        """Run one sync pass, blocking until it finishes."""
        return asyncio.run(self.run(request))

    async def _run_pass(self, request: SyncRequest) -> SyncOutcome:
        try:
            return await self._run_stages(request)
        except NotSignedInError as e:
            logger.warning(f"Credentials missing during sync: {e}")
            return SyncOutcome.auth_required()
        except (AuthError, AuthenticationError) as e:
            logger.warning(f"Authentication failed during sync: {e}")
            return SyncOutcome.auth_required(
                "Authentication error: Please sign in again", expired=True
            )
        except NETWORK_EXCEPTIONS as e:
            return SyncOutcome.network_unavailable(f"Network error: {e}")
        except Exception as e:
            logger.exception("Unexpected error during sync")
            return SyncOutcome.transfer_error(f"Sync error: {e}")

    async def _run_stages(self, request: SyncRequest) -> SyncOutcome:
        folder = request.folder
        if folder is None or not folder.is_accessible():
            return SyncOutcome.no_local_folder()

        if not await asyncio.to_thread(self._network.is_available):
            return SyncOutcome.network_unavailable()

        email = await asyncio.to_thread(self._auth.current_account_email)
        if email is None:
            return SyncOutcome.auth_required()
        logger.info(f"Using account: {email} for sync")

        logger.info(f"Starting sync from folder: {request.remote_path}")
        folder_id = await asyncio.to_thread(self._resolver.resolve, request.remote_path)
        if folder_id is None:
            return SyncOutcome.folder_not_found(request.remote_path)

        remote_files = await asyncio.to_thread(self._store.list_files, folder_id)
        logger.info(f"Found {len(remote_files)} files in remote folder")
        if not remote_files:
            return SyncOutcome.folder_empty(request.remote_path)

        local_entries = await asyncio.to_thread(folder.list_entries)
        plan = await asyncio.to_thread(diff, local_entries, remote_files)

        report = await asyncio.to_thread(self._executor.execute, folder, plan)
        return SyncOutcome.success(report)
