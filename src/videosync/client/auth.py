"""Google account sign-in and access token management.

This module provides:
- GoogleAuth: OAuth2 installed-app sign-in, token refresh and sign-out
- OS keyring storage of the account email and refresh token

The refresh token is the only long-lived secret; access tokens are kept in
memory and refreshed shortly before they expire.
"""

from __future__ import annotations

import contextlib
import logging
import secrets
import threading
import time
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import parse_qs, urlencode, urlparse

import httpx
import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from videosync.core.config import OAuthConfig

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "videosync"
ACCOUNT_KEY = "account"

# Refresh this many seconds before the access token actually expires
EXPIRY_MARGIN = 60.0


class AuthError(Exception):
    """Exception raised for sign-in and token errors."""


class NotSignedInError(AuthError):
    """No account has signed in yet (or it signed out)."""


class TokenRefreshError(AuthError):
    """The stored refresh token was rejected; the user must sign in again."""


@dataclass
class AccessToken:
    """Short-lived access token held in memory."""

    value: str
    expires_at: float

    @property
    def is_expired(self) -> bool:
        """Check if the token is expired or about to expire."""
        return time.time() >= self.expires_at - EXPIRY_MARGIN


def extract_authorization_code(response: str, expected_state: str | None = None) -> str:
    """Get the authorization code from a pasted redirect URL or bare code.

    Args:
        response: Either the full URL the browser was redirected to, or the code.
        expected_state: State value sent with the authorization request.

    Returns:
        The authorization code.

    Raises:
        AuthError: If the redirect carries an error or a mismatched state.
    """
    text = response.strip()
    if not text.startswith(("http://", "https://")):
        if not text:
            raise AuthError("No authorization code provided")
        return text

    query = parse_qs(urlparse(text).query)
    if "error" in query:
        raise AuthError(f"Sign-in failed: {query['error'][0]}")
    if expected_state is not None and query.get("state", [None])[0] != expected_state:
        raise AuthError("Sign-in failed: state mismatch")
    codes = query.get("code")
    if not codes:
        raise AuthError("Sign-in failed: no code in redirect URL")
    return codes[0]


class GoogleAuth:
    """Authentication capability handed to the sync engine.

    Usage:
        auth = GoogleAuth(OAuthConfig(client_id="..."))
        if auth.current_account_email() is None:
            auth.begin_interactive_sign_in()
        token = auth.access_token()
    """

    def __init__(
        self,
        config: OAuthConfig,
        http_client: httpx.Client | None = None,
        prompt: Callable[[str], str] = input,
        open_browser: Callable[[str], object] = webbrowser.open,
    ) -> None:
        """Initialize the authenticator.

        Args:
            config: OAuth client settings.
            http_client: Client for token and userinfo calls.
            prompt: Asks the user to paste the redirect URL; returns the answer.
            open_browser: Opens the authorization URL.
        """
        self._config = config
        self._http = http_client or httpx.Client(timeout=30.0)
        self._prompt = prompt
        self._open_browser = open_browser
        self._token: AccessToken | None = None
        self._lock = threading.Lock()

    # === Account ===

    def current_account_email(self) -> str | None:
        """Get the signed-in account, or None when nobody is signed in."""
        try:
            email = keyring.get_password(KEYRING_SERVICE, ACCOUNT_KEY)
        except KeyringError as e:
            logger.warning(f"Keyring unavailable, treating as signed out: {e}")
            return None
        return email or None

    def authorization_url(self, state: str) -> str:
        """Build the consent URL for the installed-app flow."""
        query = urlencode(
            {
                "client_id": self._config.client_id,
                "redirect_uri": self._config.redirect_uri,
                "response_type": "code",
                "scope": self._config.scopes,
                "access_type": "offline",
                "prompt": "consent",
                "state": state,
            }
        )
        return f"{self._config.auth_uri}?{query}"

    def begin_interactive_sign_in(self) -> str:
        """Run the interactive sign-in flow and persist the credentials.

        Returns:
            Email of the signed-in account.

        Raises:
            AuthError: If the user aborts or Google rejects the code.
        """
        state = secrets.token_urlsafe(16)
        url = self.authorization_url(state)
        logger.info("Opening browser for Google sign-in")
        self._open_browser(url)
        answer = self._prompt(
            f"Sign in at:\n{url}\n\nPaste the URL you were redirected to"
        )
        code = extract_authorization_code(answer, expected_state=state)

        data = self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._config.redirect_uri,
            }
        )
        refresh_token = data.get("refresh_token")
        if not refresh_token:
            raise AuthError("Sign-in failed: no refresh token returned")

        token = AccessToken(
            value=data["access_token"],
            expires_at=time.time() + float(data.get("expires_in", 3600)),
        )
        email = self._fetch_email(token.value)

        try:
            keyring.set_password(KEYRING_SERVICE, email, refresh_token)
            keyring.set_password(KEYRING_SERVICE, ACCOUNT_KEY, email)
        except KeyringError as e:
            raise AuthError(f"Could not store credentials: {e}") from e

        with self._lock:
            self._token = token
        logger.info(f"Signed in with email: {email}")
        return email

    def sign_out(self) -> None:
        """Forget the signed-in account and its tokens."""
        email = self.current_account_email()
        with self._lock:
            self._token = None
        if email is None:
            return
        self._forget(email)
        logger.info(f"Signed out {email}")

    def _forget(self, email: str) -> None:
        """Remove the stored account and refresh token."""
        for key in (email, ACCOUNT_KEY):
            with contextlib.suppress(PasswordDeleteError):
                keyring.delete_password(KEYRING_SERVICE, key)

    # === Tokens ===

    def access_token(self) -> str:
        """Get a valid access token, refreshing it if needed.

        Raises:
            NotSignedInError: If no account is signed in.
            TokenRefreshError: If the refresh token was revoked or expired.
        """
        with self._lock:
            if self._token is not None and not self._token.is_expired:
                return self._token.value

            email = self.current_account_email()
            if email is None:
                raise NotSignedInError("Not signed in")
            refresh_token = keyring.get_password(KEYRING_SERVICE, email)
            if not refresh_token:
                raise NotSignedInError(f"No stored credentials for {email}")

            logger.debug(f"Refreshing access token for {email}")
            try:
                data = self._token_request(
                    {"grant_type": "refresh_token", "refresh_token": refresh_token}
                )
            except TokenRefreshError:
                logger.warning(f"Refresh token for {email} was rejected, signing out")
                self._forget(email)
                raise
            self._token = AccessToken(
                value=data["access_token"],
                expires_at=time.time() + float(data.get("expires_in", 3600)),
            )
            return self._token.value

    def _token_request(self, form: dict[str, str]) -> dict[str, str]:
        """POST to the token endpoint with client credentials."""
        payload = {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            **form,
        }
        response = self._http.post(self._config.token_uri, data=payload)
        if response.status_code >= 400:
            try:
                error = response.json().get("error", "unknown_error")
            except ValueError:
                error = response.text
            if error == "invalid_grant":
                raise TokenRefreshError("Credentials expired or revoked")
            raise AuthError(f"Token request failed ({response.status_code}): {error}")
        result: dict[str, str] = response.json()
        return result

    def _fetch_email(self, access_token: str) -> str:
        """Look up the email of the account owning access_token."""
        response = self._http.get(
            self._config.userinfo_uri,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code >= 400:
            raise AuthError(f"Could not read account info ({response.status_code})")
        email = response.json().get("email")
        if not email:
            raise AuthError("Sign-in failed: No email provided")
        return str(email)
