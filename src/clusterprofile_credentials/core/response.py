"""ExecCredential response construction."""

from datetime import datetime

from clusterprofile_credentials.core.exceptions import InputError
from clusterprofile_credentials.core.models import (
    API_VERSION_V1BETA1,
    ExecCredential,
    ExecCredentialStatus,
)


def build_exec_credential(
    token: str,
    expiration: datetime | None = None,
    api_version: str = API_VERSION_V1BETA1,
) -> bytes:
    """Serialize an ExecCredential response.

    ``status.expirationTimestamp`` is only written when ``expiration`` is set;
    it is rendered in UTC at second precision. Naive datetimes are taken as UTC.

    Args:
        token: Bearer token
        expiration: Token expiry (optional)
        api_version: ExecCredential API version to answer with

    Returns:
        JSON document as bytes

    Raises:
        InputError: If ``token`` is empty
    """
    if not token:
        raise InputError("cannot build ExecCredential without a token")

    credential = ExecCredential(
        api_version=api_version,
        status=ExecCredentialStatus(token=token, expiration_timestamp=expiration),
    )
    return credential.model_dump_json(
        by_alias=True, exclude_none=True, include={"api_version", "kind", "status"}
    ).encode("utf-8")


def build_from_status(
    status: ExecCredentialStatus, api_version: str = API_VERSION_V1BETA1
) -> bytes:
    """Serialize a provider's ExecCredentialStatus."""
    return build_exec_credential(status.token, status.expiration_timestamp, api_version)
