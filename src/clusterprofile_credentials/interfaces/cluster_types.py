"""Data types returned by the external client wrappers."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class ClusterInfo:
    """Cloud cluster endpoint information."""

    name: str
    endpoint: str | None
    ca_certificate: str | None = None
    status: str | None = None


@dataclass
class ClusterToken:
    """Minted cluster authentication token."""

    token: str
    expiration: datetime | None = None
