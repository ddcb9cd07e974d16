"""Tests for Google sign-in and token management."""

from __future__ import annotations

import time
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from keyring.errors import KeyringError, PasswordDeleteError

from videosync.client.auth import (
    ACCOUNT_KEY,
    KEYRING_SERVICE,
    AccessToken,
    AuthError,
    GoogleAuth,
    NotSignedInError,
    TokenRefreshError,
    extract_authorization_code,
)
from videosync.core.config import OAuthConfig

TOKEN_URI = "https://oauth2.googleapis.com/token"
USERINFO_URI = "https://openidconnect.googleapis.com/v1/userinfo"


class MemoryKeyring:
    """Dictionary-backed replacement for the keyring functions."""

    def __init__(self) -> None:
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, key: str) -> str | None:
        return self.passwords.get((service, key))

    def set_password(self, service: str, key: str, value: str) -> None:
        self.passwords[(service, key)] = value

    def delete_password(self, service: str, key: str) -> None:
        if (service, key) not in self.passwords:
            raise PasswordDeleteError("not found")
        del self.passwords[(service, key)]


@pytest.fixture
def memory_keyring():  # type: ignore[no-untyped-def]
    """Patch keyring with an in-memory store."""
    store = MemoryKeyring()
    with (
        patch("videosync.client.auth.keyring.get_password", store.get_password),
        patch("videosync.client.auth.keyring.set_password", store.set_password),
        patch("videosync.client.auth.keyring.delete_password", store.delete_password),
    ):
        yield store


def signed_in(store: MemoryKeyring, email: str = "me@example.com") -> None:
    """Store credentials as if the user had signed in."""
    store.set_password(KEYRING_SERVICE, ACCOUNT_KEY, email)
    store.set_password(KEYRING_SERVICE, email, "refresh-token")


def make_auth(**kwargs) -> GoogleAuth:  # type: ignore[no-untyped-def]
    """Create a GoogleAuth with a test client."""
    return GoogleAuth(OAuthConfig(client_id="cid", client_secret="secret"), httpx.Client(), **kwargs)


class TestExtractAuthorizationCode:
    """Tests for extract_authorization_code()."""

    def test_from_redirect_url(self) -> None:
        """Should read the code from the redirect URL."""
        url = "http://localhost/?state=s1&code=4/abc&scope=email"
        assert extract_authorization_code(url, expected_state="s1") == "4/abc"

    def test_bare_code(self) -> None:
        """A pasted bare code is returned as-is."""
        assert extract_authorization_code("  4/abc \n") == "4/abc"

    def test_state_mismatch(self) -> None:
        """A foreign state must be rejected."""
        with pytest.raises(AuthError, match="state mismatch"):
            extract_authorization_code("http://localhost/?state=evil&code=x", expected_state="s1")

    def test_error_redirect(self) -> None:
        """A denied consent should raise."""
        with pytest.raises(AuthError, match="access_denied"):
            extract_authorization_code("http://localhost/?error=access_denied")

    def test_empty(self) -> None:
        """Empty input should raise."""
        with pytest.raises(AuthError):
            extract_authorization_code("   ")


class TestAccessToken:
    """Tests for AccessToken."""

    def test_expiry_margin(self) -> None:
        """Tokens about to expire count as expired."""
        assert AccessToken("t", time.time() + 10).is_expired
        assert not AccessToken("t", time.time() + 3600).is_expired


class TestGoogleAuth:
    """Tests for GoogleAuth."""

    def test_not_signed_in(self, memory_keyring: MemoryKeyring) -> None:
        """Without stored credentials there is no account."""
        auth = make_auth()

        assert auth.current_account_email() is None
        with pytest.raises(NotSignedInError):
            auth.access_token()

    def test_keyring_failure_means_signed_out(self) -> None:
        """A broken keyring should read as signed out, not crash."""
        with patch(
            "videosync.client.auth.keyring.get_password", side_effect=KeyringError("locked")
        ):
            assert make_auth().current_account_email() is None

    def test_authorization_url(self) -> None:
        """The consent URL should request offline access for Drive."""
        url = make_auth().authorization_url("state-1")
        query = parse_qs(urlparse(url).query)

        assert query["client_id"] == ["cid"]
        assert query["access_type"] == ["offline"]
        assert query["state"] == ["state-1"]
        assert "https://www.googleapis.com/auth/drive" in query["scope"][0]

    def test_interactive_sign_in(self, httpx_mock, memory_keyring: MemoryKeyring) -> None:  # type: ignore[no-untyped-def]
        """Sign-in should exchange the code and store the refresh token."""
        httpx_mock.add_response(
            url=TOKEN_URI,
            json={"access_token": "at-1", "refresh_token": "rt-1", "expires_in": 3600},
        )
        httpx_mock.add_response(url=USERINFO_URI, json={"email": "me@example.com"})
        opened: list[str] = []

        def answer(_: str) -> str:
            state = parse_qs(urlparse(opened[0]).query)["state"][0]
            return f"http://localhost/?state={state}&code=auth-code"

        auth = make_auth(prompt=answer, open_browser=opened.append)
        email = auth.begin_interactive_sign_in()

        assert email == "me@example.com"
        assert auth.current_account_email() == "me@example.com"
        assert memory_keyring.get_password(KEYRING_SERVICE, "me@example.com") == "rt-1"
        token_form = parse_qs(httpx_mock.get_requests()[0].content.decode())
        assert token_form["code"] == ["auth-code"]
        assert token_form["grant_type"] == ["authorization_code"]
        # The fresh access token is cached
        assert auth.access_token() == "at-1"

    def test_sign_in_without_email(self, httpx_mock, memory_keyring: MemoryKeyring) -> None:  # type: ignore[no-untyped-def]
        """A missing email should fail sign-in and store nothing."""
        httpx_mock.add_response(
            url=TOKEN_URI, json={"access_token": "at", "refresh_token": "rt"}
        )
        httpx_mock.add_response(url=USERINFO_URI, json={})

        auth = make_auth(prompt=lambda _: "bare-code", open_browser=lambda _: None)
        with pytest.raises(AuthError, match="No email provided"):
            auth.begin_interactive_sign_in()
        assert memory_keyring.passwords == {}

    def test_refreshes_access_token(self, httpx_mock, memory_keyring: MemoryKeyring) -> None:  # type: ignore[no-untyped-def]
        """A stored refresh token should be exchanged once and cached."""
        signed_in(memory_keyring)
        httpx_mock.add_response(url=TOKEN_URI, json={"access_token": "at-2", "expires_in": 3600})

        auth = make_auth()

        assert auth.access_token() == "at-2"
        assert auth.access_token() == "at-2"
        form = parse_qs(httpx_mock.get_requests()[0].content.decode())
        assert form["grant_type"] == ["refresh_token"]
        assert form["refresh_token"] == ["refresh-token"]

    def test_revoked_refresh_token(self, httpx_mock, memory_keyring: MemoryKeyring) -> None:  # type: ignore[no-untyped-def]
        """invalid_grant should raise TokenRefreshError and forget the account."""
        signed_in(memory_keyring)
        httpx_mock.add_response(url=TOKEN_URI, status_code=400, json={"error": "invalid_grant"})
        auth = make_auth()

        with pytest.raises(TokenRefreshError):
            auth.access_token()

        assert memory_keyring.passwords == {}
        assert auth.current_account_email() is None

    def test_sign_out(self, memory_keyring: MemoryKeyring) -> None:
        """Sign-out should remove the account and its refresh token."""
        signed_in(memory_keyring)
        auth = make_auth()

        auth.sign_out()

        assert auth.current_account_email() is None
        assert memory_keyring.passwords == {}
