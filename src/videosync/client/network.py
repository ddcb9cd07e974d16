"""Network connectivity check.

Sync refuses to start while offline instead of failing halfway through
the remote calls.
"""

from __future__ import annotations

import logging

import httpx

from videosync.core.config import DriveConfig

logger = logging.getLogger(__name__)

# Short timeout: the probe only answers "is there a route to the internet"
PROBE_TIMEOUT = 5.0


class NetworkMonitor:
    """Checks whether the active network can reach the internet."""

    def __init__(
        self,
        config: DriveConfig | None = None,
        timeout: float = PROBE_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            config: Provides the connectivity probe URL.
            timeout: Probe timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self._url = (config or DriveConfig()).connectivity_url
        self._timeout = timeout
        self._transport = transport

    def is_available(self) -> bool:
        """Probe the connectivity endpoint.

        Returns:
            True if the probe answered with 204 No Content.
        """
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(self._url)
        except httpx.HTTPError as e:
            logger.debug(f"Connectivity probe failed: {e}")
            return False
        # Captive portals answer the probe with a redirect or a 200 login page
        return response.status_code == 204
