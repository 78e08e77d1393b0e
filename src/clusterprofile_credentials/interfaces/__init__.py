"""Interface definitions for credential providers and their clients."""

from clusterprofile_credentials.interfaces.cluster_types import ClusterInfo, ClusterToken
from clusterprofile_credentials.interfaces.credential_provider import CredentialProvider

__all__ = [
    "ClusterInfo",
    "ClusterToken",
    "CredentialProvider",
]
