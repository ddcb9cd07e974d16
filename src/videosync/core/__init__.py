"""Core module - Shared configuration, name normalization and retry helpers."""

from videosync.core.config import (
    DEFAULT_REMOTE_PATH,
    DRIVE_SCOPE,
    DriveConfig,
    OAuthConfig,
)
from videosync.core.naming import FORBIDDEN_CHARS, normalize
from videosync.core.retry import (
    DEFAULT_CREATE_ATTEMPTS,
    DEFAULT_CREATE_DELAY,
    DEFAULT_MAX_RETRIES,
    RetryPolicy,
    retry_with_backoff,
)

__all__ = [
    # Config
    "DEFAULT_REMOTE_PATH",
    "DRIVE_SCOPE",
    "DriveConfig",
    "OAuthConfig",
    # Naming
    "FORBIDDEN_CHARS",
    "normalize",
    # Retry
    "DEFAULT_CREATE_ATTEMPTS",
    "DEFAULT_CREATE_DELAY",
    "DEFAULT_MAX_RETRIES",
    "RetryPolicy",
    "retry_with_backoff",
]
