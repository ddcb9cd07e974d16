"""Sync command for the VideoSync CLI.

Commands:
- sync: Mirror the remote Drive folder into the local folder
"""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Callable
from pathlib import Path

import click

from videosync.client.cli.auth import make_auth, run_sign_in
from videosync.client.cli.config import get_local_folder, get_remote_path
from videosync.client.sync.types import SyncOutcome, SyncOutcomeKind


class StatusLineAwareHandler(logging.Handler):
    """Logging handler that coordinates with the status line display.

    Clears the status line before printing log messages and restores it after.
    """

    def __init__(
        self,
        clear_func: Callable[[], None],
        update_func: Callable[[], None],
        lock: threading.Lock,
    ) -> None:
        super().__init__()
        self._clear_func = clear_func
        self._update_func = update_func
        self._lock = lock

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            with self._lock:
                self._clear_func()
                # Use stdout (same as status line) to prevent interleaving
                sys.stdout.write(msg + "\n")
                sys.stdout.flush()
                self._update_func()
        except Exception:
            self.handleError(record)


class ProgressLine:
    """Single-line download progress display.

    Called from the transfer thread, so every method takes the lock.
    """

    def __init__(self, enabled: bool = True, width: int = 80) -> None:
        self.lock = threading.Lock()
        self._enabled = enabled
        self._width = width
        self._status = ""
        self._last_len = 0

    def clear(self) -> None:
        """Clear the current status line (lock must be held)."""
        if self._last_len > 0 and self._enabled:
            sys.stdout.write("\r" + " " * self._last_len + "\r")
            sys.stdout.flush()
            self._last_len = 0

    def redraw(self) -> None:
        """Write the current status (lock must be held)."""
        if not self._enabled or not self._status:
            return
        status = self._status
        if len(status) > self._width - 3:
            status = status[: self._width - 6] + "..."
        clear_part = " " * max(0, self._last_len - len(status))
        sys.stdout.write(f"\r{status}{clear_part}")
        sys.stdout.flush()
        self._last_len = len(status)

    def update(self, name: str, written: int, total: int) -> None:
        """Show progress for the file being downloaded."""
        with self.lock:
            if total > 0:
                percent = min(100, written * 100 // total)
                self._status = f"  ↓ {name} {percent}%"
            else:
                self._status = f"  ↓ {name} {written} bytes"
            self.redraw()

    def finish(self) -> None:
        """Remove the status line."""
        with self.lock:
            self._status = ""
            self.clear()


def configure_logging(verbose: bool, progress: ProgressLine) -> None:
    """Route videosync log records through the status-line-aware handler.

    Args:
        verbose: Show info-level progress instead of warnings only.
        progress: Status line to keep intact while logging.
    """
    handler = StatusLineAwareHandler(
        clear_func=progress.clear,
        update_func=progress.redraw,
        lock=progress.lock,
    )
    level = logging.INFO if verbose else logging.WARNING
    fmt = "%(levelname)s %(name)s: %(message)s" if verbose else "%(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    handler.setLevel(level)

    videosync_logger = logging.getLogger("videosync")
    for existing in videosync_logger.handlers[:]:
        videosync_logger.removeHandler(existing)
    videosync_logger.addHandler(handler)
    videosync_logger.setLevel(level)
    # Prevent propagation to root logger
    videosync_logger.propagate = False


def display_outcome(outcome: SyncOutcome) -> None:
    """Print the result of a sync pass."""
    if not outcome.ok:
        click.echo(f"Error: {outcome.message}", err=True)
        return

    report = outcome.report
    if report is None:
        click.echo(outcome.message)
        return

    for name in report.deleted:
        click.echo(f"  ✗ {name}")
    for name in report.downloaded:
        click.echo(f"  ↓ {name}")

    if report.failures:
        click.echo(click.style("\nFailed:", fg="red"))
        for failure in report.failures:
            click.echo(f"  ! {failure.name} ({failure.operation.value}): {failure.error}")

    parts = []
    if report.downloaded:
        parts.append(f"{len(report.downloaded)} downloaded")
    if report.deleted:
        parts.append(f"{len(report.deleted)} deleted")
    if report.failures:
        parts.append(f"{len(report.failures)} failed")
    summary = ", ".join(parts) if parts else "already up to date"
    click.echo(f"\nSync complete: {summary}")


@click.command()
@click.option(
    "--folder",
    "-f",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Local folder to sync into (default: the folder set with set-folder).",
)
@click.option("--remote", "-r", default=None, help="Drive folder path, e.g. 'Shared/Videos'.")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed progress logs.")
@click.option("--no-progress", is_flag=True, help="Disable the progress line.")
def sync(folder: Path | None, remote: str | None, verbose: bool, no_progress: bool) -> None:
    """Mirror the Google Drive video folder into the local folder.

    Downloads new and grown videos and deletes local videos that are gone
    from Drive. Prompts for sign-in when needed.
    """
    from videosync.client.api import DriveClient
    from videosync.client.network import NetworkMonitor
    from videosync.client.sync import SyncOrchestrator, SyncRequest

    progress = ProgressLine(enabled=not no_progress)
    configure_logging(verbose, progress)

    local_root = folder if folder is not None else get_local_folder()
    remote_path = remote or get_remote_path()
    request = SyncRequest.create(local_root, remote_path)

    auth = make_auth()
    with DriveClient(auth.access_token) as drive:
        orchestrator = SyncOrchestrator(
            auth,
            drive,
            NetworkMonitor(),
            on_progress=progress.update,
        )

        click.echo(f"Syncing '{remote_path}' into {local_root or '(no folder)'}...")
        outcome = orchestrator.sync(request)
        progress.finish()

        if outcome.kind is SyncOutcomeKind.AUTH_REQUIRED:
            click.echo(outcome.message)
            run_sign_in(auth)
            outcome = orchestrator.sync(request)
            progress.finish()

    display_outcome(outcome)
    if not outcome.ok:
        if outcome.kind is SyncOutcomeKind.NO_LOCAL_FOLDER:
            click.echo("Run 'videosync set-folder PATH' to choose one.", err=True)
        sys.exit(1)
