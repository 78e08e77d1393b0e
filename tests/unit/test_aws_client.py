"""Unit tests for AWS client.

This module tests the AWSClient wrapper for boto3 operations including:
- Session and EKS client creation
- Paginated cluster listing
- Cluster description
- EKS token generation
- Error handling for AWS API failures
"""

import base64
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, Mock, patch
from urllib.parse import parse_qs, urlsplit

import pytest
from botocore.credentials import Credentials
from botocore.exceptions import ClientError, EndpointConnectionError, ReadTimeoutError
from botocore.hooks import HierarchicalEmitter

from clusterprofile_credentials.clients.aws_client import TOKEN_PREFIX, AWSClient
from clusterprofile_credentials.core.deadline import Deadline
from clusterprofile_credentials.core.exceptions import DeadlineExceededError, UpstreamError


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestAWSClientInitialization:
    """Tests for AWSClient initialization."""

    def test_aws_client_initialization_default(self) -> None:
        """Test AWSClient initializes with default settings."""
        with patch("boto3.Session") as mock_session:
            client = AWSClient(region="us-west-2")

            assert client.region == "us-west-2"
            assert client.profile is None
            mock_session.assert_called_once_with(region_name="us-west-2")

    def test_aws_client_initialization_with_profile(self) -> None:
        """Test AWSClient initializes with custom profile."""
        with patch("boto3.Session") as mock_session:
            client = AWSClient(region="us-east-1", profile="test-profile")

            assert client.profile == "test-profile"
            mock_session.assert_called_once_with(
                profile_name="test-profile", region_name="us-east-1"
            )

    def test_aws_client_uses_given_session(self) -> None:
        """Test an existing session is reused."""
        session = MagicMock()

        client = AWSClient(region="us-east-1", session=session)

        assert client.session is session
        session.client.assert_called_once_with("eks", region_name="us-east-1", config=None)

    def test_aws_client_timeout_config(self) -> None:
        """Test the timeout is applied to connect and read."""
        session = MagicMock()

        AWSClient(region="us-east-1", session=session, timeout=5.0)

        client_config = session.client.call_args.kwargs["config"]
        assert client_config.connect_timeout == 5.0
        assert client_config.read_timeout == 5.0


@pytest.fixture
def aws_client() -> AWSClient:
    """Create AWSClient with a mocked session."""
    return AWSClient(region="us-west-2", session=MagicMock())


class TestIterClusterNames:
    """Tests for iter_cluster_names."""

    def test_pages_are_flattened(self, aws_client: AWSClient) -> None:
        """Test names from every page are yielded in order."""
        paginator = Mock()
        paginator.paginate.return_value = iter(
            [{"clusters": ["a", "b"]}, {"clusters": []}, {"clusters": ["c"]}]
        )
        aws_client.eks.get_paginator.return_value = paginator

        names = list(aws_client.iter_cluster_names(Deadline()))

        assert names == ["a", "b", "c"]
        aws_client.eks.get_paginator.assert_called_once_with("list_clusters")

    def test_stops_fetching_when_consumer_stops(self, aws_client: AWSClient) -> None:
        """Test later pages are not requested after an early exit."""
        fetched = []

        def pages():
            for page in ({"clusters": ["a"]}, {"clusters": ["b"]}):
                fetched.append(page)
                yield page

        aws_client.eks.get_paginator.return_value.paginate.return_value = pages()

        names = aws_client.iter_cluster_names(Deadline())
        assert next(names) == "a"

        assert len(fetched) == 1

    def test_list_failure(self, aws_client: AWSClient) -> None:
        """Test listing errors become upstream errors with the code."""

        def failing_pages():
            raise client_error("AccessDeniedException", "ListClusters")
            yield  # pragma: no cover

        aws_client.eks.get_paginator.return_value.paginate.return_value = failing_pages()

        with pytest.raises(UpstreamError) as exc_info:
            list(aws_client.iter_cluster_names(Deadline()))

        assert "AccessDeniedException" in str(exc_info.value)
        assert "us-west-2" in str(exc_info.value)

    def test_expired_deadline(self, aws_client: AWSClient) -> None:
        """Test an expired deadline stops the listing."""
        aws_client.eks.get_paginator.return_value.paginate.return_value = iter(
            [{"clusters": ["a"]}]
        )

        with pytest.raises(DeadlineExceededError):
            list(aws_client.iter_cluster_names(Deadline(expires_at=0.0)))


class TestDescribeCluster:
    """Tests for describe_cluster."""

    def test_success(self, aws_client: AWSClient) -> None:
        """Test endpoint and CA are extracted."""
        aws_client.eks.describe_cluster.return_value = {
            "cluster": {
                "name": "prod",
                "arn": "arn:aws:eks:us-west-2:123456789012:cluster/prod",
                "endpoint": "https://ABC.gr7.us-west-2.eks.amazonaws.com",
                "certificateAuthority": {"data": "Q0Ex"},
                "status": "ACTIVE",
            }
        }

        info = aws_client.describe_cluster("prod", Deadline())

        assert info.name == "prod"
        assert info.endpoint == "https://ABC.gr7.us-west-2.eks.amazonaws.com"
        assert info.ca_certificate == "Q0Ex"
        assert info.status == "ACTIVE"
        aws_client.eks.describe_cluster.assert_called_once_with(name="prod")

    def test_creating_cluster_has_no_endpoint(self, aws_client: AWSClient) -> None:
        """Test clusters without endpoint or CA are returned with None."""
        aws_client.eks.describe_cluster.return_value = {
            "cluster": {"name": "new", "status": "CREATING"}
        }

        info = aws_client.describe_cluster("new", Deadline())

        assert info.endpoint is None
        assert info.ca_certificate is None

    def test_not_found(self, aws_client: AWSClient) -> None:
        """Test describe failures are upstream errors naming the cluster."""
        aws_client.eks.describe_cluster.side_effect = client_error(
            "ResourceNotFoundException", "DescribeCluster"
        )

        with pytest.raises(UpstreamError) as exc_info:
            aws_client.describe_cluster("gone", Deadline())

        assert "gone" in str(exc_info.value)
        assert "ResourceNotFoundException" in str(exc_info.value)

    def test_connection_error(self, aws_client: AWSClient) -> None:
        """Test endpoint errors are upstream errors."""
        aws_client.eks.describe_cluster.side_effect = EndpointConnectionError(
            endpoint_url="https://eks.us-west-2.amazonaws.com"
        )

        with pytest.raises(UpstreamError):
            aws_client.describe_cluster("prod", Deadline())

    def test_read_timeout_after_deadline(self, aws_client: AWSClient) -> None:
        """Test timeouts past the deadline are deadline errors."""
        aws_client.eks.describe_cluster.side_effect = ReadTimeoutError(
            endpoint_url="https://eks.us-west-2.amazonaws.com"
        )
        deadline = MagicMock(spec=Deadline)
        deadline.expired.return_value = True

        with pytest.raises(DeadlineExceededError):
            aws_client.describe_cluster("prod", deadline)


class TestGenerateToken:
    """Tests for generate_token."""

    @pytest.fixture
    def signing_client(self) -> AWSClient:
        """AWSClient whose session returns static credentials."""
        session = MagicMock()
        session.get_credentials.return_value = Credentials("AKIDEXAMPLE", "secret", "session")
        session.events = HierarchicalEmitter()
        return AWSClient(region="us-west-2", session=session)

    def decode(self, token: str) -> str:
        encoded = token[len(TOKEN_PREFIX) :]
        padding = "=" * (-len(encoded) % 4)
        return base64.urlsafe_b64decode(encoded + padding).decode("utf-8")

    def test_token_format(self, signing_client: AWSClient) -> None:
        """Test the token wraps a presigned STS GetCallerIdentity URL."""
        before = datetime.now(timezone.utc)

        token = signing_client.generate_token("prod", Deadline())

        assert token.token.startswith(TOKEN_PREFIX)
        assert not token.token.endswith("=")
        url = urlsplit(self.decode(token.token))
        query = parse_qs(url.query)
        assert url.netloc == "sts.us-west-2.amazonaws.com"
        assert query["Action"] == ["GetCallerIdentity"]
        assert query["X-Amz-Expires"] == ["60"]
        assert "x-k8s-aws-id" in query["X-Amz-SignedHeaders"][0]
        assert token.expiration is not None
        assert timedelta(minutes=13) < token.expiration - before <= timedelta(minutes=15)

    def test_china_partition_endpoint(self) -> None:
        """Test China regions sign against the .com.cn STS endpoint."""
        session = MagicMock()
        session.get_credentials.return_value = Credentials("AKIDEXAMPLE", "secret")
        session.events = HierarchicalEmitter()
        client = AWSClient(region="cn-north-1", session=session)

        token = client.generate_token("prod", Deadline())

        assert urlsplit(self.decode(token.token)).netloc == "sts.cn-north-1.amazonaws.com.cn"

    def test_no_credentials(self, aws_client: AWSClient) -> None:
        """Test missing credentials are upstream errors."""
        aws_client.session.get_credentials.return_value = None

        with pytest.raises(UpstreamError) as exc_info:
            aws_client.generate_token("prod", Deadline())

        assert "prod" in str(exc_info.value)

    def test_expired_deadline(self, aws_client: AWSClient) -> None:
        """Test no token is minted after the deadline."""
        with pytest.raises(DeadlineExceededError):
            aws_client.generate_token("prod", Deadline(expires_at=0.0))

        aws_client.session.get_credentials.assert_not_called()
