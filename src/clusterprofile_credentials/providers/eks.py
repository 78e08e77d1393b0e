"""EKS provider resolving the requested endpoint to a cluster in the account."""

from collections.abc import Callable, Iterator

from botocore.exceptions import BotoCoreError

from clusterprofile_credentials.clients.aws_client import AWSClient
from clusterprofile_credentials.core.deadline import Deadline
from clusterprofile_credentials.core.exceptions import ConfigurationError, CredentialLookupError
from clusterprofile_credentials.core.matching import infer_eks_region, match_cluster, normalize_host
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

PROVIDER_NAME = "eks"


class EKSProvider(CredentialProvider):
    """Find the EKS cluster serving the requested endpoint and mint a token for it.

    The region comes from the endpoint hostname
    (``<id>.<suffix>.<region>.eks.amazonaws.com``). Clusters in that region
    are described one at a time and matched with the shared host/CA policy;
    the listing stops at the first match.
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        profile: str | None = None,
        client_factory: Callable[[str, float | None], AWSClient] | None = None,
    ):
        """Initialize provider.

        Args:
            profile: AWS profile name (optional)
            client_factory: Builds an AWSClient from (region, timeout); tests
                pass a fake here
        """
        self.profile = profile
        self._client_factory = client_factory

    def _client_for(self, region: str, deadline: Deadline) -> AWSClient:
        if self._client_factory is not None:
            return self._client_factory(region, deadline.remaining())
        try:
            return AWSClient(region=region, profile=self.profile, timeout=deadline.remaining())
        except BotoCoreError as e:
            raise ConfigurationError(f"failed to initialize AWS client: {e}") from e

    def _cluster_records(self, aws: AWSClient, deadline: Deadline) -> Iterator[ClusterRecord]:
        for cluster_name in aws.iter_cluster_names(deadline):
            info = aws.describe_cluster(cluster_name, deadline)
            if not info.endpoint:
                logger.debug(
                    "eks_cluster_without_endpoint", cluster_name=cluster_name, status=info.status
                )
                continue

            try:
                ca_data = decode_ca_data(info.ca_certificate)
            except ValueError:
                logger.debug("eks_cluster_invalid_ca", cluster_name=cluster_name)
                ca_data = None

            yield ClusterRecord(
                name=cluster_name,
                provider_name=self.name,
                identity=ClusterIdentity(host=info.endpoint, ca_data=ca_data),
            )

    def get_token(self, request: ExecCredential, deadline: Deadline) -> ExecCredentialStatus:
        identity = request.cluster_identity()
        host = normalize_host(identity.host)
        region = infer_eks_region(host)

        aws = self._client_for(region, deadline)
        target = match_cluster(self._cluster_records(aws, deadline), host, identity.ca_data)
        if target is None:
            raise CredentialLookupError(
                f"no matching EKS cluster for endpoint: {identity.host} (region={region})"
            )

        logger.info("eks_cluster_matched", cluster_name=target, region=region)
        token = aws.generate_token(target, deadline)
        return ExecCredentialStatus(token=token.token, expiration_timestamp=token.expiration)
