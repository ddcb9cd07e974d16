"""Account commands for the VideoSync CLI.

Commands:
- sign-in: Sign in with a Google account
- sign-out: Forget the signed-in account
"""

from __future__ import annotations

import sys

import click

from videosync.client.auth import AuthError, GoogleAuth
from videosync.client.cli.config import CLIENT_ID_ENV, get_config_file, get_oauth_config


def _prompt(text: str) -> str:
    return str(click.prompt(text))


def make_auth() -> GoogleAuth:
    """Create the authenticator from the configured OAuth client.

    Exits with an error if no OAuth client is configured.
    """
    oauth_config = get_oauth_config()
    if oauth_config is None:
        click.echo("Error: No Google OAuth client configured.", err=True)
        click.echo(
            f"Set 'client_id' in {get_config_file()} or the {CLIENT_ID_ENV} variable.",
            err=True,
        )
        sys.exit(1)
    return GoogleAuth(oauth_config, prompt=_prompt, open_browser=click.launch)


def run_sign_in(auth: GoogleAuth) -> str:
    """Run the interactive sign-in, exiting on failure.

    Returns:
        Email of the signed-in account.
    """
    try:
        email = auth.begin_interactive_sign_in()
    except AuthError as e:
        click.echo(f"Error: Sign-in failed: {e}", err=True)
        sys.exit(1)
    click.echo(f"Signed in as {email}")
    return email


@click.command("sign-in")
def sign_in() -> None:
    """Sign in with the Google account that can see the video folder.

    Opens the consent page in a browser; paste back the URL you are
    redirected to.
    """
    auth = make_auth()
    current = auth.current_account_email()
    if current is not None:
        click.echo(f"Already signed in as {current}.")
        if not click.confirm("Sign in with a different account?"):
            return
        auth.sign_out()
    run_sign_in(auth)


@click.command("sign-out")
def sign_out() -> None:
    """Forget the signed-in account and its stored credentials."""
    auth = make_auth()
    email = auth.current_account_email()
    if email is None:
        click.echo("Not signed in.")
        return
    auth.sign_out()
    click.echo(f"Signed out {email}")
