"""Reconciliation of a remote Drive folder into a local media folder.

Architecture:
    SyncOrchestrator → RemotePathResolver → diff → TransferExecutor

Components:
- **SyncOrchestrator**: Runs a pass stage by stage and maps errors to outcomes
- **RemotePathResolver**: Turns "Shared/Videos" into a Drive folder id
- **diff**: Partitions files into download / delete / up to date
- **TransferExecutor**: Applies the plan, absorbing per-file failures
"""

from videosync.client.sync.differ import diff
from videosync.client.sync.orchestrator import NETWORK_EXCEPTIONS, SyncOrchestrator
from videosync.client.sync.resolver import RemotePathResolver, split_path
from videosync.client.sync.transfer import TransferExecutor
from videosync.client.sync.types import (
    NOT_SIGNED_IN,
    Authenticator,
    DownloadError,
    FileCreationError,
    ProgressCallback,
    RemoteStore,
    SyncError,
    SyncOutcome,
    SyncOutcomeKind,
    SyncPlan,
    SyncRequest,
    TransferError,
    TransferFailure,
    TransferOperation,
    TransferReport,
)

__all__ = [
    # Orchestration
    "NETWORK_EXCEPTIONS",
    "SyncOrchestrator",
    # Stages
    "RemotePathResolver",
    "TransferExecutor",
    "diff",
    "split_path",
    # Types and dataclasses
    "NOT_SIGNED_IN",
    "Authenticator",
    "DownloadError",
    "FileCreationError",
    "ProgressCallback",
    "RemoteStore",
    "SyncError",
    "SyncOutcome",
    "SyncOutcomeKind",
    "SyncPlan",
    "SyncRequest",
    "TransferError",
    "TransferFailure",
    "TransferOperation",
    "TransferReport",
]
