"""Invocation deadline shared by every external call."""

import time
from dataclasses import dataclass

from clusterprofile_credentials.core.exceptions import DeadlineExceededError


@dataclass(frozen=True)
class Deadline:
    """Monotonic point in time after which the invocation gives up.

    A deadline without ``expires_at`` never expires.
    """

    expires_at: float | None = None

    @classmethod
    def after(cls, seconds: float | None) -> "Deadline":
        """Create a deadline ``seconds`` from now (``None`` for unbounded)."""
        if seconds is None:
            return cls()
        return cls(expires_at=time.monotonic() + seconds)

    def remaining(self) -> float | None:
        """Seconds left before expiry, ``None`` when unbounded."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self) -> bool:
        return self.expires_at is not None and time.monotonic() >= self.expires_at

    def check(self, operation: str) -> None:
        """Raise if the deadline has passed.

        Args:
            operation: Operation about to start, used in the error message

        Raises:
            DeadlineExceededError: If the deadline has expired
        """
        if self.expired():
            raise DeadlineExceededError(f"deadline exceeded before {operation}")
