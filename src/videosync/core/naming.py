"""File name normalization shared by local and remote listings.

Google Drive accepts names that most local filesystems reject, so both sides
are reduced to the same comparable key before they are diffed or written.
"""

from __future__ import annotations

import re

# Characters rejected by at least one common local filesystem
FORBIDDEN_CHARS = '<>:"/\\|?*'

_FORBIDDEN_RE = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE_RE = re.compile(r"\s+")


def normalize(name: str) -> str:
    """Canonicalize a display name into a comparable identity key.

    Replaces each forbidden character with an underscore, collapses every
    whitespace run to a single space and strips the ends.

    Args:
        name: Raw display name (local or remote).

    Returns:
        Normalized name, safe to use as a local file name.
    """
    replaced = _FORBIDDEN_RE.sub("_", name)
    return _WHITESPACE_RE.sub(" ", replaced).strip()
