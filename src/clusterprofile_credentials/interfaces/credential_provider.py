"""Credential provider interface."""

from abc import ABC, abstractmethod

from clusterprofile_credentials.core.deadline import Deadline
from clusterprofile_credentials.core.models import ExecCredential, ExecCredentialStatus


class CredentialProvider(ABC):
    """Resolve an ExecCredential request to a token.

    Implementations are selected once at process start and called once per
    invocation. They hold no state between invocations.
    """

    name: str

    @abstractmethod
    def get_token(self, request: ExecCredential, deadline: Deadline) -> ExecCredentialStatus:
        """Resolve the request's cluster to a bearer token.

        Args:
            request: Parsed ExecCredential request
            deadline: Invocation deadline, passed to every external call

        Returns:
            ExecCredentialStatus with the token and optional expiration

        Raises:
            InputError: If the request lacks required information
            CredentialLookupError: If no credential matches the request
            UpstreamError: If an external API call fails
            DeadlineExceededError: If the deadline expires
        """
