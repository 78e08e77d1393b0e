"""Host normalization and cluster identity matching.

Every provider resolves the requested endpoint against its candidate records
with the same policy:

- hosts are compared after ``normalize_host`` on both sides
- CA bytes are compared exactly, and only when the request carries CA data
- the first qualifying record wins
"""

import re
from collections.abc import Iterable
from urllib.parse import urlsplit

from clusterprofile_credentials.core.exceptions import CredentialLookupError, InputError
from clusterprofile_credentials.core.models import ClusterRecord

DEFAULT_PORT_SUFFIX = ":443"

EKS_HOST_PATTERN = re.compile(r".*\.([a-z0-9-]+)\.eks(-fips)?\.amazonaws\.com(\.cn)?$")


def _strip_suffixes(value: str) -> str:
    value = value.removesuffix("/")
    return value.removesuffix(DEFAULT_PORT_SUFFIX)


def normalize_host(raw: str) -> str:
    """Convert an endpoint such as ``https://example.com:443/`` to ``example.com``.

    The scheme is dropped, then trailing slashes and ``:443`` suffixes are
    stripped until none is left, so normalizing twice changes nothing. Other
    ports are kept, so ``example.com:8443`` stays distinct.

    Args:
        raw: Server URL or ``host[:port][/path]``

    Returns:
        Normalized host token

    Raises:
        InputError: If ``raw`` is empty
    """
    if not raw:
        raise InputError("empty host")

    value = raw
    if value.startswith(("http://", "https://")):
        try:
            parts = urlsplit(value)
        except ValueError:
            parts = None
        if parts is not None:
            # netloc minus any userinfo
            value = parts.netloc.rpartition("@")[2] + parts.path

    stripped = _strip_suffixes(value)
    while stripped != value:
        value = stripped
        stripped = _strip_suffixes(value)
    return value


def match_cluster(
    candidates: Iterable[ClusterRecord],
    target_host: str,
    target_ca: bytes | None = None,
) -> str | None:
    """Pick the first candidate whose identity matches the target.

    Candidates are consumed lazily; iteration stops at the first match.

    Args:
        candidates: Cluster records in priority order
        target_host: Requested server (normalized here if it is not already)
        target_ca: Requested CA bytes; when empty only the host is compared

    Returns:
        Name of the matching record, or None
    """
    want = normalize_host(target_host)

    for candidate in candidates:
        if not candidate.identity.host:
            continue
        if normalize_host(candidate.identity.host) != want:
            continue
        if target_ca and candidate.identity.ca_data != target_ca:
            continue
        return candidate.name

    return None


def infer_eks_region(server: str) -> str:
    """Extract the AWS region from an EKS API server endpoint.

    Args:
        server: Cluster server URL or host

    Returns:
        Region identifier, e.g. ``us-west-2``

    Raises:
        InputError: If ``server`` is empty
        CredentialLookupError: If the host is not an EKS managed endpoint
    """
    host = normalize_host(server).partition("/")[0]
    match = EKS_HOST_PATTERN.match(host)
    if match is None:
        raise CredentialLookupError(f"failed to parse region from server hostname: {server}")
    return match.group(1)
