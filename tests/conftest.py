"""Pytest configuration and shared fixtures."""

import base64
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from clusterprofile_credentials.clients.kubernetes_client import KubernetesClient
from clusterprofile_credentials.core.deadline import Deadline
from clusterprofile_credentials.core.models import ExecCredential


@pytest.fixture
def deadline() -> Deadline:
    """Unbounded invocation deadline."""
    return Deadline()


@pytest.fixture
def make_exec_request() -> Callable[..., ExecCredential]:
    """Build ExecCredential requests the way kubectl sends them."""

    def _make(
        server: str,
        ca: bytes | None = None,
        config: Any = None,
        api_version: str = "client.authentication.k8s.io/v1beta1",
    ) -> ExecCredential:
        cluster: dict[str, Any] = {"server": server}
        if ca:
            cluster["certificate-authority-data"] = base64.b64encode(ca).decode("ascii")
        if config is not None:
            cluster["config"] = config
        return ExecCredential.model_validate(
            {"apiVersion": api_version, "kind": "ExecCredential", "spec": {"cluster": cluster}}
        )

    return _make


@pytest.fixture
def make_cluster_profile() -> Callable[..., dict[str, Any]]:
    """Build ClusterProfile objects as returned by the custom objects API."""

    def _make(
        name: str,
        server: str,
        ca: bytes | None = None,
        provider: str = "secretreader",
        namespace: str = "ns1",
    ) -> dict[str, Any]:
        cluster: dict[str, Any] = {"server": server}
        if ca:
            cluster["certificate-authority-data"] = base64.b64encode(ca).decode("ascii")
        return {
            "apiVersion": "multicluster.x-k8s.io/v1alpha1",
            "kind": "ClusterProfile",
            "metadata": {"name": name, "namespace": namespace},
            "status": {"credentialProviders": [{"name": provider, "cluster": cluster}]},
        }

    return _make


@pytest.fixture
def make_kube_client() -> Callable[..., MagicMock]:
    """Fake KubernetesClient serving ClusterProfiles and decoded Secret data."""

    def _make(
        profiles: list[dict[str, Any]] | None = None,
        secrets: dict[tuple[str, str], dict[str, bytes]] | None = None,
    ) -> MagicMock:
        stored = secrets or {}
        client = MagicMock(spec=KubernetesClient)
        client.list_cluster_profiles.return_value = profiles or []
        client.get_secret_data.side_effect = lambda namespace, name, deadline: stored.get(
            (namespace, name)
        )
        return client

    return _make


def pytest_configure(config: Any) -> None:
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
