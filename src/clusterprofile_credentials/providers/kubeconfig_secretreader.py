"""Provider reading a Secret named by the kubeconfig exec extension."""

from pydantic import ValidationError

from clusterprofile_credentials.clients.kubernetes_client import KubernetesClient
from clusterprofile_credentials.core.deadline import Deadline
from clusterprofile_credentials.core.exceptions import InputError
from clusterprofile_credentials.core.models import (
    ExecCredential,
    ExecCredentialStatus,
    SecretReference,
)
from clusterprofile_credentials.interfaces.credential_provider import CredentialProvider
from clusterprofile_credentials.providers.secretreader import read_secret_token
from clusterprofile_credentials.utils.logging import get_logger

logger = get_logger(__name__)

PROVIDER_NAME = "kubeconfig-secretreader"


def parse_secret_reference(request: ExecCredential) -> SecretReference:
    """Parse ``spec.cluster.config`` into Secret coordinates.

    Raises:
        InputError: If the extension is missing, malformed, or has blank fields
    """
    extension = request.cluster.config
    if not extension:
        raise InputError("missing ExecCredential.spec.cluster.config")

    try:
        reference = SecretReference.model_validate(extension)
    except ValidationError as e:
        raise InputError(f"invalid extensions config: {e}") from e

    if not reference.is_complete():
        raise InputError("extensions must include secretName, secretNamespace and key")
    return reference


class KubeconfigSecretReaderProvider(CredentialProvider):
    """Return the value stored at the Secret key named in the exec extension.

    Example kubeconfig cluster extension::

        extensions:
        - name: client.authentication.k8s.io/exec
          extension:
            secretName: cluster-a-token
            secretNamespace: fleet-system
            key: token
    """

    name = PROVIDER_NAME

    def __init__(self, client: KubernetesClient | None = None, kubeconfig_path: str | None = None):
        self.kubeconfig_path = kubeconfig_path
        self._client = client

    @property
    def client(self) -> KubernetesClient:
        """Get or create the Kubernetes client lazily."""
        if self._client is None:
            self._client = KubernetesClient(kubeconfig_path=self.kubeconfig_path)
        return self._client

    def get_token(self, request: ExecCredential, deadline: Deadline) -> ExecCredentialStatus:
        reference = parse_secret_reference(request)
        logger.debug(
            "reading_referenced_secret",
            namespace=reference.secret_namespace,
            name=reference.secret_name,
            key=reference.key,
        )
        token = read_secret_token(
            self.client,
            reference.secret_namespace,
            reference.secret_name,
            reference.key,
            deadline,
        )
        return ExecCredentialStatus(token=token)
