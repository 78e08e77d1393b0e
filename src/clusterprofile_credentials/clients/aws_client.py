"""AWS client for EKS cluster discovery and token generation."""

import base64
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)
from botocore.model import ServiceId
from botocore.signers import RequestSigner

from clusterprofile_credentials.core.deadline import Deadline
from clusterprofile_credentials.core.exceptions import DeadlineExceededError, UpstreamError
from clusterprofile_credentials.interfaces.cluster_types import ClusterInfo, ClusterToken
from clusterprofile_credentials.utils.logging import get_logger

logger = get_logger(__name__)

TOKEN_PREFIX = "k8s-aws-v1."
CLUSTER_ID_HEADER = "x-k8s-aws-id"
# STS only honours presigned URLs for 60 seconds, but the API server accepts
# the token for 15 minutes; report one minute less to leave room for skew.
PRESIGN_EXPIRES_SECONDS = 60
TOKEN_LIFETIME = timedelta(minutes=14)


def _sts_url(region: str) -> str:
    suffix = "amazonaws.com.cn" if region.startswith("cn-") else "amazonaws.com"
    return f"https://sts.{region}.{suffix}/?Action=GetCallerIdentity&Version=2011-06-15"


class AWSClient:
    """AWS client for EKS and STS presigning."""

    def __init__(
        self,
        region: str,
        profile: str | None = None,
        session: boto3.Session | None = None,
        timeout: float | None = None,
    ):
        """Initialize AWS client.

        Args:
            region: AWS region
            profile: AWS profile name (optional)
            session: Existing boto3 session (optional, overrides profile)
            timeout: Connect and read timeout in seconds (optional)
        """
        self.region = region
        self.profile = profile

        if session:
            self.session = session
        elif profile:
            self.session = boto3.Session(profile_name=profile, region_name=region)
        else:
            self.session = boto3.Session(region_name=region)

        client_config = Config(connect_timeout=timeout, read_timeout=timeout) if timeout else None
        self.eks = self.session.client("eks", region_name=region, config=client_config)

        logger.debug("aws_client_initialized", region=region, profile=profile)

    def _api_error(self, error: Exception, deadline: Deadline, message: str) -> Exception:
        if isinstance(error, ClientError):
            error_code = error.response["Error"]["Code"]
            return UpstreamError(f"{message}: {error_code}")
        if isinstance(error, (ConnectTimeoutError, ReadTimeoutError)) and deadline.expired():
            return DeadlineExceededError(f"deadline exceeded: {message}")
        return UpstreamError(f"{message}: {error}")

    def iter_cluster_names(self, deadline: Deadline) -> Iterator[str]:
        """Yield EKS cluster names page by page.

        Pages are fetched lazily, so a consumer that stops early stops the
        listing too.

        Args:
            deadline: Invocation deadline, checked before each page

        Yields:
            Cluster names

        Raises:
            UpstreamError: If listing clusters fails
            DeadlineExceededError: If the deadline expires
        """
        paginator = self.eks.get_paginator("list_clusters")
        pages = iter(paginator.paginate())

        while True:
            deadline.check("listing EKS clusters")
            try:
                page = next(pages)
            except StopIteration:
                return
            except (ClientError, BotoCoreError) as e:
                logger.debug("eks_cluster_list_failed", region=self.region, error=str(e))
                raise self._api_error(
                    e, deadline, f"failed to list EKS clusters in {self.region}"
                ) from e

            clusters = page.get("clusters", [])
            logger.debug("eks_cluster_page_listed", region=self.region, count=len(clusters))
            yield from clusters

    def describe_cluster(self, cluster_name: str, deadline: Deadline) -> ClusterInfo:
        """Get EKS cluster endpoint information.

        Args:
            cluster_name: Name of the EKS cluster
            deadline: Invocation deadline

        Returns:
            ClusterInfo with endpoint and base64 CA data (either may be None
            while the cluster is still being created)

        Raises:
            UpstreamError: If the cluster cannot be described
            DeadlineExceededError: If the deadline expires
        """
        deadline.check(f"describing EKS cluster {cluster_name}")

        try:
            logger.debug("describing_eks_cluster", cluster_name=cluster_name)
            response = self.eks.describe_cluster(name=cluster_name)
        except (ClientError, BotoCoreError) as e:
            logger.debug("eks_cluster_describe_failed", cluster_name=cluster_name, error=str(e))
            raise self._api_error(
                e, deadline, f"failed to describe EKS cluster {cluster_name}"
            ) from e

        cluster = response.get("cluster") or {}
        return ClusterInfo(
            name=cluster.get("name", cluster_name),
            endpoint=cluster.get("endpoint"),
            ca_certificate=(cluster.get("certificateAuthority") or {}).get("data"),
            status=cluster.get("status"),
        )

    def generate_token(self, cluster_id: str, deadline: Deadline) -> ClusterToken:
        """Mint an EKS bearer token for a cluster.

        This is what ``aws eks get-token`` does: presign an STS
        GetCallerIdentity request carrying the cluster name header and wrap
        the URL in the ``k8s-aws-v1.`` token format.

        Args:
            cluster_id: EKS cluster name
            deadline: Invocation deadline

        Returns:
            ClusterToken with token and expiration

        Raises:
            UpstreamError: If credentials are unavailable or signing fails
            DeadlineExceededError: If the deadline expires
        """
        deadline.check(f"generating EKS token for {cluster_id}")

        try:
            credentials = self.session.get_credentials()
            if credentials is None:
                raise UpstreamError(
                    f"no AWS credentials available to sign a token for {cluster_id}"
                )

            signer = RequestSigner(
                ServiceId("sts"),
                self.region,
                "sts",
                "v4",
                credentials.get_frozen_credentials(),
                self.session.events,
            )
            request_params = {
                "method": "GET",
                "url": _sts_url(self.region),
                "body": {},
                "headers": {CLUSTER_ID_HEADER: cluster_id},
                "context": {},
            }
            expiration = datetime.now(timezone.utc) + TOKEN_LIFETIME
            presigned_url = signer.generate_presigned_url(
                request_params,
                region_name=self.region,
                expires_in=PRESIGN_EXPIRES_SECONDS,
                operation_name="",
            )
        except BotoCoreError as e:
            logger.debug("eks_token_generation_failed", cluster_id=cluster_id, error=str(e))
            raise UpstreamError(f"failed to get EKS token for {cluster_id}: {e}") from e

        encoded = base64.urlsafe_b64encode(presigned_url.encode("utf-8")).decode("utf-8")
        token = TOKEN_PREFIX + encoded.rstrip("=")

        logger.info("eks_token_generated", cluster_id=cluster_id, region=self.region)
        return ClusterToken(token=token, expiration=expiration)
