"""Comparison of the local and remote media collections.

Files are matched by normalized name. A matched file is stale when the local
copy is smaller than the size Drive declares ("remote wins by size"); a
larger or equal local copy is kept. There is no checksum comparison.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from videosync.client.local import VIDEO_MIME_PREFIX
from videosync.client.sync.types import SyncPlan
from videosync.core.naming import normalize

if TYPE_CHECKING:
    from videosync.client.api import RemoteFile
    from videosync.client.local import LocalEntry

logger = logging.getLogger(__name__)


def diff(local: Iterable[LocalEntry], remote: Iterable[RemoteFile]) -> SyncPlan:
    """Compute the downloads and deletions that mirror remote locally.

    Every file ends up in exactly one bucket: download, up to date, or
    delete. A local file is compared when it is a video or when a remote
    file carries its name, so files Drive serves without a video type are
    not fetched again on every pass. Only local videos are ever deleted.
    When two remote files normalize to the same name, the later one wins.

    Args:
        local: Entries currently in the local folder.
        remote: Files listed in the remote folder.

    Returns:
        The sync plan.
    """
    local_by_name = {normalize(entry.name): entry for entry in local}
    local_videos = {
        name: entry
        for name, entry in local_by_name.items()
        if entry.mime_type.startswith(VIDEO_MIME_PREFIX)
    }
    logger.debug(f"Found {len(local_videos)} existing local videos")

    remote_by_name: dict[str, RemoteFile] = {}
    for remote_file in remote:
        name = normalize(remote_file.name)
        if name in remote_by_name:
            logger.warning(f"Duplicate remote name '{name}', keeping the later file")
        remote_by_name[name] = remote_file

    plan = SyncPlan()
    for name, remote_file in remote_by_name.items():
        local_entry = local_by_name.get(name)
        if local_entry is None:
            logger.debug(f"New file found: {remote_file.name}")
            plan.files_to_download.append(remote_file)
            continue

        local_size = local_entry.size
        remote_size = remote_file.declared_size
        if local_size < remote_size:
            logger.debug(
                f"File needs update: {remote_file.name} (local: {local_size}, remote: {remote_size})"
            )
            plan.files_to_download.append(remote_file)
        else:
            logger.debug(f"File already up to date: {remote_file.name}")
            plan.up_to_date.append(name)

    plan.files_to_delete = {
        name: entry for name, entry in local_videos.items() if name not in remote_by_name
    }

    logger.info(
        f"Files to download: {len(plan.files_to_download)}, "
        f"Files to delete: {len(plan.files_to_delete)}, "
        f"Up to date: {len(plan.up_to_date)}"
    )
    return plan
