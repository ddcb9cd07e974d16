"""Local folder commands for the VideoSync CLI.

Commands:
- set-folder: Remember the local media folder
- list: List the videos in the local folder
- status: Show the current configuration and account
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from videosync.client.cli.config import (
    get_config_file,
    get_local_folder,
    get_oauth_config,
    get_remote_path,
    load_config,
    save_config,
    set_local_folder,
)
from videosync.client.local import LocalFolder, LocalStorageError


def format_size(size: int) -> str:
    """Format a byte count for display."""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


@click.command("set-folder")
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, writable=True, path_type=Path),
)
@click.option("--remote", default=None, help="Also set the Drive folder path to mirror.")
def set_folder(path: Path, remote: str | None) -> None:
    """Remember PATH as the local video folder."""
    folder = set_local_folder(path)
    click.echo(f"Local folder: {folder}")
    if remote is not None:
        config = load_config()
        config["remote_path"] = remote
        save_config(config)
        click.echo(f"Remote folder: {remote}")


@click.command("list")
def list_videos() -> None:
    """List the videos in the local folder, in playback order."""
    root = get_local_folder()
    if root is None:
        click.echo("Error: No local folder selected. Run 'videosync set-folder PATH' first.", err=True)
        sys.exit(1)

    try:
        videos = LocalFolder(root).media_files()
    except LocalStorageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not videos:
        click.echo("No videos in folder.")
        return
    for entry in videos:
        click.echo(f"{entry.name}  ({format_size(entry.size)})")
    click.echo(f"\n{len(videos)} video(s)")


@click.command()
def status() -> None:
    """Show the local folder, remote path and signed-in account."""
    from videosync.client.auth import GoogleAuth

    root = get_local_folder()
    click.echo(f"Config file:   {get_config_file()}")
    click.echo(f"Local folder:  {root if root is not None else '(not set)'}")
    click.echo(f"Remote folder: {get_remote_path()}")

    oauth_config = get_oauth_config()
    if oauth_config is None:
        click.echo("Account:       (no OAuth client configured)")
        return
    email = GoogleAuth(oauth_config).current_account_email()
    click.echo(f"Account:       {email or '(not signed in)'}")
