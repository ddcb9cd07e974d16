"""Shared configuration classes for videosync.

This module defines the connection settings for the Google Drive API and
the OAuth client used to obtain tokens for it.
"""

from __future__ import annotations

from dataclasses import dataclass

DRIVE_SCOPE = "https://www.googleapis.com/auth/drive"
DEFAULT_REMOTE_PATH = "VideoNetwork"


@dataclass
class DriveConfig:
    """Configuration for talking to the Google Drive v3 API.

    Attributes:
        api_url: Base URL of the Drive v3 REST API.
        timeout: Request timeout in seconds for metadata calls.
        download_timeout: Read timeout in seconds for media downloads.
        connectivity_url: Endpoint probed to decide whether the network is up.
        page_size: Page size for file listing calls.
    """

    api_url: str = "https://www.googleapis.com/drive/v3"
    timeout: float = 30.0
    download_timeout: float = 300.0
    connectivity_url: str = "https://www.google.com/generate_204"
    page_size: int = 1000

    def __post_init__(self) -> None:
        """Normalize API URL."""
        self.api_url = self.api_url.rstrip("/")


@dataclass
class OAuthConfig:
    """OAuth2 installed-application client settings.

    Attributes:
        client_id: OAuth client id from the Google Cloud console.
        client_secret: OAuth client secret (not confidential for desktop apps).
        redirect_uri: Loopback redirect registered for the client.
        scope: Requested scope; full Drive access is needed to read shared folders.
        auth_uri: Authorization endpoint.
        token_uri: Token exchange and refresh endpoint.
        userinfo_uri: Endpoint returning the signed-in account's email.
    """

    client_id: str
    client_secret: str = ""
    redirect_uri: str = "http://localhost"
    scope: str = DRIVE_SCOPE
    auth_uri: str = "https://accounts.google.com/o/oauth2/v2/auth"
    token_uri: str = "https://oauth2.googleapis.com/token"
    userinfo_uri: str = "https://openidconnect.googleapis.com/v1/userinfo"

    @property
    def scopes(self) -> str:
        """Space-separated scopes, including the email scope for account lookup."""
        return f"openid email {self.scope}"
