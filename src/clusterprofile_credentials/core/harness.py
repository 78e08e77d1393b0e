"""Exec-credential protocol harness.

kubectl and client-go run the plugin with the request in the
``KUBERNETES_EXEC_INFO`` environment variable and read an ExecCredential
document from standard output. Failures go to standard error with a non-zero
exit status. The harness never retries; that is the caller's decision.
"""

import json
import os
import sys
from collections.abc import Mapping
from typing import TextIO

import structlog
from pydantic import ValidationError

from clusterprofile_credentials.core.deadline import Deadline
from clusterprofile_credentials.core.exceptions import CredentialPluginError, InputError
from clusterprofile_credentials.core.models import (
    API_VERSION_V1BETA1,
    SUPPORTED_API_VERSIONS,
    ExecCredential,
)
from clusterprofile_credentials.core.response import build_from_status
from clusterprofile_credentials.interfaces.credential_provider import CredentialProvider
from clusterprofile_credentials.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

EXEC_INFO_ENV = "KUBERNETES_EXEC_INFO"

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def read_exec_info(environ: Mapping[str, str] | None = None) -> ExecCredential:
    """Read and parse the ExecCredential request from the environment.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Parsed request with a cluster section

    Raises:
        InputError: If the variable is absent, not JSON, malformed, or has no cluster
    """
    env = os.environ if environ is None else environ
    raw = env.get(EXEC_INFO_ENV, "")
    if not raw.strip():
        raise InputError(
            f"{EXEC_INFO_ENV} is empty; the plugin must be run by an exec-aware client"
        )

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InputError(f"failed to parse {EXEC_INFO_ENV}: {e}") from e

    if not isinstance(data, dict):
        raise InputError(f"{EXEC_INFO_ENV} must be a JSON object")

    try:
        request = ExecCredential.model_validate(data)
    except ValidationError as e:
        raise InputError(f"invalid ExecCredential in {EXEC_INFO_ENV}: {e}") from e

    # Raises InputError when spec.cluster is missing
    _ = request.cluster
    return request


def response_api_version(request: ExecCredential) -> str:
    """API version to answer with; kubectl rejects a mismatched version."""
    if request.api_version in SUPPORTED_API_VERSIONS:
        return request.api_version
    return API_VERSION_V1BETA1


def run(
    provider: CredentialProvider,
    *,
    environ: Mapping[str, str] | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    deadline: Deadline | None = None,
) -> int:
    """Run one exec-credential invocation.

    Args:
        provider: Provider resolving the request to a token
        environ: Environment mapping (defaults to os.environ)
        stdout: Token output channel (defaults to sys.stdout)
        stderr: Error output channel (defaults to sys.stderr)
        deadline: Invocation deadline (unbounded if None)

    Returns:
        Process exit status
    """
    # stdout is the token channel; an unconfigured structlog would print there
    if not structlog.is_configured():
        setup_logging()

    out = stdout or sys.stdout
    err = stderr or sys.stderr
    deadline = deadline or Deadline()

    try:
        request = read_exec_info(environ)
        logger.debug(
            "exec_request_received",
            provider=provider.name,
            server=request.cluster.server,
            api_version=request.api_version,
        )

        status = provider.get_token(request, deadline)
        payload = build_from_status(status, response_api_version(request))

    except CredentialPluginError as e:
        logger.debug(
            "exec_request_failed",
            provider=provider.name,
            error_type=type(e).__name__,
        )
        err.write(f"error: {e}\n")
        err.flush()
        return EXIT_FAILURE

    out.write(payload.decode("utf-8") + "\n")
    out.flush()

    logger.info(
        "exec_credential_issued",
        provider=provider.name,
        expires=status.expiration_timestamp is not None,
    )
    return EXIT_SUCCESS
