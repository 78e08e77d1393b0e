"""Kubernetes client for Secret and ClusterProfile reads."""

import base64
import binascii
from typing import Any

import urllib3
import yaml
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from clusterprofile_credentials.core.deadline import Deadline
from clusterprofile_credentials.core.exceptions import (
    ConfigurationError,
    DeadlineExceededError,
    UpstreamError,
)
from clusterprofile_credentials.utils.logging import get_logger

logger = get_logger(__name__)

CLUSTER_PROFILE_GROUP = "multicluster.x-k8s.io"
CLUSTER_PROFILE_VERSION = "v1alpha1"
CLUSTER_PROFILE_PLURAL = "clusterprofiles"


def build_api_client(kubeconfig_path: str | None = None) -> client.ApiClient:
    """Build an API client from in-cluster config, falling back to a kubeconfig.

    The configuration is loaded into a private ``Configuration`` object so
    the kubernetes package's global default is left untouched.

    Args:
        kubeconfig_path: Kubeconfig path(s) used when not running in a pod

    Returns:
        Configured ApiClient

    Raises:
        ConfigurationError: If neither configuration source is usable
    """
    configuration = client.Configuration()
    try:
        config.load_incluster_config(client_configuration=configuration)
        logger.debug("k8s_incluster_config_loaded")
    except config.ConfigException:
        try:
            config.load_kube_config(
                config_file=kubeconfig_path,
                client_configuration=configuration,
                persist_config=False,
            )
            logger.debug("k8s_kubeconfig_loaded", kubeconfig_path=kubeconfig_path)
        except (config.ConfigException, OSError, yaml.YAMLError) as e:
            logger.debug("k8s_client_config_failed", error=str(e))
            raise ConfigurationError(f"failed to build kube client config: {e}") from e

    return client.ApiClient(configuration)


def _is_timeout(error: urllib3.exceptions.HTTPError) -> bool:
    if isinstance(error, urllib3.exceptions.TimeoutError):
        return True
    return isinstance(error, urllib3.exceptions.MaxRetryError) and isinstance(
        error.reason, urllib3.exceptions.TimeoutError
    )


class KubernetesClient:
    """Kubernetes client wrapper."""

    def __init__(
        self,
        api_client: client.ApiClient | None = None,
        kubeconfig_path: str | None = None,
    ):
        """Initialize Kubernetes client.

        Args:
            api_client: Pre-built ApiClient (optional)
            kubeconfig_path: Kubeconfig path used when building a default client
        """
        self.api_client = api_client or build_api_client(kubeconfig_path)
        self.core_v1 = client.CoreV1Api(self.api_client)
        self.custom_objects = client.CustomObjectsApi(self.api_client)

        logger.debug("k8s_client_initialized")

    def _transport_error(
        self, error: urllib3.exceptions.HTTPError, deadline: Deadline, operation: str
    ) -> Exception:
        if _is_timeout(error) and deadline.expired():
            return DeadlineExceededError(f"deadline exceeded while {operation}")
        return UpstreamError(f"failed {operation}: {error}")

    def list_cluster_profiles(self, namespace: str, deadline: Deadline) -> list[dict[str, Any]]:
        """List ClusterProfile objects in a namespace.

        Args:
            namespace: Namespace to query
            deadline: Invocation deadline

        Returns:
            ClusterProfile objects as dictionaries

        Raises:
            UpstreamError: If the list call fails
            DeadlineExceededError: If the deadline expires
        """
        operation = f"listing ClusterProfiles in {namespace}"
        deadline.check(operation)

        try:
            logger.debug("listing_cluster_profiles", namespace=namespace)
            response = self.custom_objects.list_namespaced_custom_object(
                group=CLUSTER_PROFILE_GROUP,
                version=CLUSTER_PROFILE_VERSION,
                namespace=namespace,
                plural=CLUSTER_PROFILE_PLURAL,
                _request_timeout=deadline.remaining(),
            )
        except ApiException as e:
            logger.debug(
                "list_cluster_profiles_failed",
                namespace=namespace,
                status=e.status,
                reason=e.reason,
            )
            raise UpstreamError(
                f"failed to list ClusterProfiles in {namespace}: {e.reason}"
            ) from e
        except urllib3.exceptions.HTTPError as e:
            raise self._transport_error(e, deadline, operation) from e

        items = response.get("items") or []
        logger.info("cluster_profiles_listed", namespace=namespace, count=len(items))
        return items

    def get_secret_data(
        self, namespace: str, name: str, deadline: Deadline
    ) -> dict[str, bytes] | None:
        """Read a Secret and decode its data.

        Args:
            namespace: Secret namespace
            name: Secret name
            deadline: Invocation deadline

        Returns:
            Decoded data by key, or None if the Secret does not exist

        Raises:
            UpstreamError: If the read fails or the data is not valid base64
            DeadlineExceededError: If the deadline expires
        """
        operation = f"getting secret {namespace}/{name}"
        deadline.check(operation)

        try:
            logger.debug("getting_secret", namespace=namespace, name=name)
            secret = self.core_v1.read_namespaced_secret(
                name=name,
                namespace=namespace,
                _request_timeout=deadline.remaining(),
            )
        except ApiException as e:
            if e.status == 404:
                logger.debug("secret_not_found", namespace=namespace, name=name)
                return None
            logger.debug(
                "get_secret_failed",
                namespace=namespace,
                name=name,
                status=e.status,
                reason=e.reason,
            )
            raise UpstreamError(f"failed to get secret {namespace}/{name}: {e.reason}") from e
        except urllib3.exceptions.HTTPError as e:
            raise self._transport_error(e, deadline, operation) from e

        try:
            data = {key: base64.b64decode(value) for key, value in (secret.data or {}).items()}
        except (binascii.Error, TypeError) as e:
            raise UpstreamError(f"secret {namespace}/{name} holds invalid base64 data") from e

        logger.info("secret_retrieved", namespace=namespace, name=name, keys=len(data))
        return data
