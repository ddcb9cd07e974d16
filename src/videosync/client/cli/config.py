"""Configuration utilities for the VideoSync CLI.

This module provides shared configuration functions used across CLI commands.
Preferences live in a JSON file:

    ~/.videosync/config.json
    {
        "local_folder": "/home/me/Videos/network",
        "remote_path": "Shared/Videos",
        "client_id": "...apps.googleusercontent.com",
        "client_secret": "..."
    }
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from videosync.core.config import DEFAULT_REMOTE_PATH, OAuthConfig

logger = logging.getLogger(__name__)

# Environment overrides for the OAuth client credentials
CLIENT_ID_ENV = "VIDEOSYNC_CLIENT_ID"
CLIENT_SECRET_ENV = "VIDEOSYNC_CLIENT_SECRET"


def get_config_dir() -> Path:
    """Get the configuration directory for VideoSync.

    Returns:
        Path to ~/.videosync or equivalent.
    """
    return Path.home() / ".videosync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def set_local_folder(path: Path) -> Path:
    """Remember the local media folder.

    Returns:
        The absolute path that was stored.
    """
    folder = path.expanduser().resolve()
    config = load_config()
    config["local_folder"] = str(folder)
    save_config(config)
    return folder


def get_local_folder() -> Path | None:
    """Get the remembered local media folder.

    A stored folder that no longer exists is forgotten, so the user is
    asked to pick a new one instead of failing on every sync.

    Returns:
        Path to the folder, or None if none is usable.
    """
    config = load_config()
    stored = config.get("local_folder")
    if not stored:
        return None

    folder = Path(stored).expanduser()
    if not folder.is_dir():
        logger.warning(f"Stored folder is no longer accessible, clearing it: {folder}")
        del config["local_folder"]
        save_config(config)
        return None
    return folder


def get_remote_path() -> str:
    """Get the remote folder path (default "VideoNetwork")."""
    return load_config().get("remote_path") or DEFAULT_REMOTE_PATH


def get_oauth_config() -> OAuthConfig | None:
    """Get the OAuth client settings.

    Environment variables take precedence over the config file.

    Returns:
        OAuth settings, or None if no client id is configured.
    """
    config = load_config()
    client_id = os.environ.get(CLIENT_ID_ENV) or config.get("client_id")
    if not client_id:
        return None
    client_secret = os.environ.get(CLIENT_SECRET_ENV) or config.get("client_secret", "")
    return OAuthConfig(client_id=client_id, client_secret=client_secret)
