"""Secret-backed provider resolving ClusterProfiles to stored tokens."""

from collections.abc import Iterable
from typing import Any

from clusterprofile_credentials.clients.kubernetes_client import KubernetesClient
from clusterprofile_credentials.core.deadline import Deadline
from clusterprofile_credentials.core.exceptions import CredentialLookupError, UpstreamError
from clusterprofile_credentials.core.matching import match_cluster
from clusterprofile_credentials.core.models import (
    ClusterIdentity,
    ClusterRecord,
    ExecCredential,
    ExecCredentialStatus,
    decode_ca_data,
)
from clusterprofile_credentials.interfaces.credential_provider import CredentialProvider
from clusterprofile_credentials.utils.logging import get_logger

logger = get_logger(__name__)

PROVIDER_NAME = "secretreader"
TOKEN_KEY = "token"


def cluster_records(profiles: Iterable[dict[str, Any]], provider_name: str) -> list[ClusterRecord]:
    """Extract the records a provider owns from ClusterProfile objects.

    Each ``status.credentialProviders`` entry named ``provider_name`` becomes
    one record, in list order. Undecodable CA data leaves the record without
    CA bytes, so it can only match requests that carry no CA.

    Args:
        profiles: ClusterProfile objects as dictionaries
        provider_name: Credential provider name to keep

    Returns:
        Cluster records in profile order
    """
    records = []
    for profile in profiles:
        name = (profile.get("metadata") or {}).get("name")
        if not name:
            continue

        providers = (profile.get("status") or {}).get("credentialProviders") or []
        for entry in providers:
            if entry.get("name") != provider_name:
                continue

            cluster = entry.get("cluster") or {}
            try:
                ca_data = decode_ca_data(cluster.get("certificate-authority-data"))
            except ValueError:
                logger.debug("cluster_profile_invalid_ca", cluster_profile=name)
                ca_data = None

            records.append(
                ClusterRecord(
                    name=name,
                    provider_name=provider_name,
                    identity=ClusterIdentity(host=cluster.get("server") or "", ca_data=ca_data),
                )
            )
    return records


def read_secret_token(
    client: KubernetesClient, namespace: str, name: str, key: str, deadline: Deadline
) -> str:
    """Read one non-empty value from a Secret.

    Raises:
        CredentialLookupError: If the Secret or key is missing, or the value is empty
        UpstreamError: If the read fails or the value is not UTF-8
    """
    data = client.get_secret_data(namespace, name, deadline)
    if data is None:
        raise CredentialLookupError(f"secret {namespace}/{name} not found")

    value = data.get(key)
    if not value:
        raise CredentialLookupError(f'secret {namespace}/{name} missing "{key}" key')

    try:
        return value.decode("utf-8")
    except UnicodeDecodeError as e:
        raise UpstreamError(f'secret {namespace}/{name} key "{key}" is not valid UTF-8') from e


class SecretReaderProvider(CredentialProvider):
    """Resolve the requested cluster through ClusterProfiles, then read its Secret.

    The Secret shares the matched ClusterProfile's name and namespace and
    holds the token under ``token``. Tokens carry no expiration; whoever
    writes the Secret is responsible for rotating it.
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        namespace: str = "default",
        client: KubernetesClient | None = None,
        kubeconfig_path: str | None = None,
    ):
        """Initialize provider.

        Args:
            namespace: Namespace holding ClusterProfiles and Secrets
            client: Kubernetes client (built lazily if omitted)
            kubeconfig_path: Kubeconfig used when building the default client
        """
        self.namespace = namespace
        self.kubeconfig_path = kubeconfig_path
        self._client = client

    @property
    def client(self) -> KubernetesClient:
        """Get or create the Kubernetes client lazily."""
        if self._client is None:
            self._client = KubernetesClient(kubeconfig_path=self.kubeconfig_path)
        return self._client

    def get_token(self, request: ExecCredential, deadline: Deadline) -> ExecCredentialStatus:
        identity = request.cluster_identity()

        profiles = self.client.list_cluster_profiles(self.namespace, deadline)
        records = cluster_records(profiles, self.name)
        matched = match_cluster(records, identity.host, identity.ca_data)
        if matched is None:
            raise CredentialLookupError(
                f"no matching ClusterProfile for server {identity.host} "
                f"in namespace {self.namespace}"
            )

        logger.info("cluster_profile_matched", cluster_profile=matched, namespace=self.namespace)
        token = read_secret_token(self.client, self.namespace, matched, TOKEN_KEY, deadline)
        return ExecCredentialStatus(token=token)
