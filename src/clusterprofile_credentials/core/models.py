"""Core data models for the credential plugins.

The ``ExecCredential`` models follow the ``client.authentication.k8s.io``
wire schema used by kubectl and client-go exec plugins.
"""

import base64
import binascii
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from clusterprofile_credentials.core.exceptions import InputError

API_VERSION_V1BETA1 = "client.authentication.k8s.io/v1beta1"
API_VERSION_V1 = "client.authentication.k8s.io/v1"
SUPPORTED_API_VERSIONS = (API_VERSION_V1BETA1, API_VERSION_V1)
EXEC_CREDENTIAL_KIND = "ExecCredential"


def decode_ca_data(value: Any) -> bytes | None:
    """Decode base64 certificate-authority data as it appears in JSON documents.

    Args:
        value: Raw bytes, base64 text, or None

    Returns:
        Decoded bytes, or None when empty

    Raises:
        ValueError: If the text is not valid base64
    """
    if value is None or value == "" or value == b"":
        return None
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise ValueError(f"certificate-authority-data is not valid base64: {e}") from e
    raise ValueError("certificate-authority-data must be base64 text")


class ClusterIdentity(BaseModel):
    """Endpoint host and CA bytes identifying a cluster."""

    model_config = ConfigDict(frozen=True)

    host: str
    ca_data: bytes | None = None


class ClusterRecord(BaseModel):
    """Stored association between a cluster identity and a credential source."""

    model_config = ConfigDict(frozen=True)

    name: str
    provider_name: str
    identity: ClusterIdentity


class ExecCluster(BaseModel):
    """Cluster information passed to the plugin (``spec.cluster``)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    server: str = ""
    tls_server_name: str | None = Field(default=None, alias="tls-server-name")
    insecure_skip_tls_verify: bool = Field(default=False, alias="insecure-skip-tls-verify")
    certificate_authority_data: bytes | None = Field(
        default=None, alias="certificate-authority-data"
    )
    proxy_url: str | None = Field(default=None, alias="proxy-url")
    disable_compression: bool = Field(default=False, alias="disable-compression")
    # Opaque exec extension from the kubeconfig cluster entry
    config: Any = None

    @field_validator("certificate_authority_data", mode="before")
    @classmethod
    def _decode_ca(cls, value: Any) -> bytes | None:
        return decode_ca_data(value)


class ExecCredentialSpec(BaseModel):
    """Request half of an ExecCredential."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    cluster: ExecCluster | None = None
    interactive: bool = False


class ExecCredentialStatus(BaseModel):
    """Response half of an ExecCredential."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    token: str = ""
    expiration_timestamp: datetime | None = Field(default=None, alias="expirationTimestamp")

    @field_serializer("expiration_timestamp")
    def _serialize_expiration(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ExecCredential(BaseModel):
    """ExecCredential document exchanged with the cluster-access tool."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_version: str = Field(default=API_VERSION_V1BETA1, alias="apiVersion")
    kind: str = EXEC_CREDENTIAL_KIND
    spec: ExecCredentialSpec = Field(default_factory=ExecCredentialSpec)
    status: ExecCredentialStatus | None = None

    @property
    def cluster(self) -> ExecCluster:
        """The request's cluster section.

        Raises:
            InputError: If the request carries no cluster information
        """
        if self.spec.cluster is None:
            raise InputError(
                "ExecCredential.spec.cluster is missing; set provideClusterInfo: true"
            )
        return self.spec.cluster

    def cluster_identity(self) -> ClusterIdentity:
        """Return the caller's target endpoint identity."""
        cluster = self.cluster
        return ClusterIdentity(host=cluster.server, ca_data=cluster.certificate_authority_data)


class SecretReference(BaseModel):
    """Secret coordinates carried in the exec extension config."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    secret_name: str = Field(default="", alias="secretName")
    secret_namespace: str = Field(default="", alias="secretNamespace")
    key: str = ""

    def is_complete(self) -> bool:
        return bool(self.secret_name and self.secret_namespace and self.key)
