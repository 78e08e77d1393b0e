"""Integration test fixtures and configuration."""

import os
from pathlib import Path

import boto3
import pytest
from botocore.exceptions import ClientError, NoCredentialsError


@pytest.fixture
def aws_test_region() -> str:
    """AWS region for integration tests."""
    return os.getenv("AWS_TEST_REGION", "us-east-1")


@pytest.fixture
def skip_if_no_aws_credentials():
    """Skip test if AWS credentials are not available."""
    try:
        sts = boto3.client("sts")
        sts.get_caller_identity()
    except (NoCredentialsError, ClientError) as e:
        pytest.skip(f"AWS credentials not available: {e}")


@pytest.fixture
def eks_test_cluster() -> str | None:
    """Name of an EKS cluster the test credentials may describe (optional)."""
    return os.getenv("EKS_TEST_CLUSTER")


@pytest.fixture
def skip_if_no_kubeconfig():
    """Skip test if kubeconfig is not available."""
    kubeconfig_path = os.getenv("KUBECONFIG", str(Path("~/.kube/config").expanduser()))
    if not Path(kubeconfig_path).exists():
        pytest.skip(
            "Kubeconfig not found. Set KUBECONFIG environment variable or "
            "ensure ~/.kube/config exists."
        )


@pytest.fixture
def clusterprofile_test_namespace() -> str:
    """Namespace holding ClusterProfiles in the test cluster."""
    return os.getenv("CLUSTERPROFILE_TEST_NAMESPACE", "default")
