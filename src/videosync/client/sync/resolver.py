"""Resolution of slash-delimited folder paths to Drive folder ids.

Drive has no path lookup: folders are found by name search, names are not
unique, and the same folder can be reachable through several parents (shared
drives, "shared with me"). Resolution is therefore a best-effort walk:

1. Chained resolution: search each segment under the folder found for the
   previous one, taking the first match. The first segment is searched by
   name only.
2. Alternative resolution: when the chain breaks, try every folder named
   like the first segment as the root and walk the rest from there.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from videosync.client.sync.types import RemoteStore

logger = logging.getLogger(__name__)


def split_path(path: str) -> list[str]:
    """Split a folder path into trimmed, non-empty segments.

    Blank segments are skipped rather than treated as path breaks, so
    "Shared//Videos/" and " Shared / Videos" both give ["Shared", "Videos"].
    """
    return [segment.strip() for segment in path.split("/") if segment.strip()]


class RemotePathResolver:
    """Resolves folder paths against a RemoteStore."""

    def __init__(self, store: RemoteStore) -> None:
        self._store = store

    def resolve(self, path: str) -> str | None:
        """Resolve path to a folder id.

        Args:
            path: Slash-delimited folder path, e.g. "Shared/Videos".

        Returns:
            Folder id, or None if no folder matches.
        """
        segments = split_path(path)
        if not segments:
            logger.error("Folder path is empty after filtering")
            return None

        logger.debug(f"Resolving folder path: {segments}")

        if len(segments) == 1:
            folders = self._store.search_folders(segments[0])
            logger.debug(f"Found {len(folders)} folders named '{segments[0]}'")
            return folders[0].id if folders else None

        return self._resolve_chained(segments)

    def _resolve_chained(self, segments: list[str]) -> str | None:
        """Walk the path taking the first match at every level."""
        parent_id: str | None = None
        first_ambiguous = False

        for index, name in enumerate(segments):
            folders = self._store.search_folders(name, parent_id)
            logger.debug(
                f"Found {len(folders)} folders matching '{name}' (level {index + 1})"
            )
            if index == 0:
                first_ambiguous = len(folders) > 1

            if not folders:
                logger.warning(f"Folder '{name}' not found in parent: {parent_id or 'any'}")
                is_last = index == len(segments) - 1
                # A different root can only help when the first segment had
                # several candidates; otherwise the walk would repeat itself.
                if not is_last or first_ambiguous:
                    logger.info("Trying alternative path finding for multi-level folder")
                    return self._resolve_alternative(segments)
                return None

            parent_id = folders[0].id
            logger.debug(f"Found folder '{name}' with ID: {parent_id}")

        logger.info(f"Resolved '{'/'.join(segments)}' to folder ID: {parent_id}")
        return parent_id

    def _resolve_alternative(self, segments: list[str]) -> str | None:
        """Try every folder named like the first segment as the root."""
        roots = self._store.search_folders(segments[0])
        logger.debug(f"Found {len(roots)} potential root folders")

        for root in roots:
            current_id = self._walk(root.id, segments[1:])
            if current_id is not None:
                logger.info(
                    f"Resolved '{'/'.join(segments)}' via root {root.id} to folder ID: {current_id}"
                )
                return current_id
            logger.debug(f"Path not complete under root folder {root.name} ({root.id})")

        logger.error(f"Alternative method also failed to find folder path: {segments}")
        return None

    def _walk(self, root_id: str, segments: list[str]) -> str | None:
        """Follow segments down from root_id by parent-scoped search."""
        current_id = root_id
        for name in segments:
            folders = self._store.search_folders(name, current_id)
            if not folders:
                return None
            current_id = folders[0].id
        return current_id
