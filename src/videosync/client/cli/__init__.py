"""Command-line interface for VideoSync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- set-folder: Remember the local video folder
- sign-in: Sign in with a Google account
- sign-out: Forget the signed-in account
- sync: Mirror the Drive folder into the local folder
- list: List local videos
- status: Show folder, remote path and account
"""

from __future__ import annotations

import click

from videosync.client.cli.auth import sign_in, sign_out
from videosync.client.cli.config import (
    get_config_dir,
    get_config_file,
    get_local_folder,
    get_oauth_config,
    get_remote_path,
    load_config,
    save_config,
    set_local_folder,
)
from videosync.client.cli.folder import list_videos, set_folder, status
from videosync.client.cli.sync import sync


@click.group()
@click.version_option(package_name="videosync")
def cli() -> None:
    """VideoSync - Mirror a Google Drive video folder to this machine."""


# Folder commands
cli.add_command(set_folder)
cli.add_command(list_videos)
cli.add_command(status)

# Account commands
cli.add_command(sign_in)
cli.add_command(sign_out)

# Sync commands
cli.add_command(sync)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "get_local_folder",
    "get_oauth_config",
    "get_remote_path",
    "load_config",
    "save_config",
    "set_local_folder",
]
