"""Per-request identifiers for tracing responses back to log lines."""

import secrets
from datetime import datetime, timezone


class RequestIdGenerator:
    """
    Generates and caches one request ID for a single request lifecycle.

    A new instance is created for every request; instances are never shared
    between concurrent requests. IDs look like ``LH-20260127120000-9F3A1B2C``.
    """

    def __init__(self, prefix: str = "LH-"):
        self.prefix = prefix
        self._current: str | None = None

    def generate(self) -> str:
        """Return the cached request ID, creating it on first use."""
        if self._current is None:
            self._current = self._create_unique_id()
        return self._current

    def get(self) -> str:
        return self.generate()

    def set_request_id(self, request_id: str) -> None:
        """Replace the current request ID with a caller-supplied value."""
        self._current = request_id

    def reset(self) -> None:
        """Forget the current request ID so the next read generates a fresh one."""
        self._current = None

    def _create_unique_id(self) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        return f"{self.prefix}{timestamp}-{secrets.token_hex(4).upper()}"
