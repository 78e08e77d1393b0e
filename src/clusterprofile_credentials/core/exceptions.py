"""Custom exceptions for the credential plugins."""


class CredentialPluginError(Exception):
    """Base exception for all credential plugin errors."""


class ConfigurationError(CredentialPluginError):
    """Configuration-related errors."""


class InputError(CredentialPluginError):
    """Malformed or missing exec-credential request."""


class CredentialLookupError(CredentialPluginError, LookupError):
    """No matching cluster, or its stored credential is missing or empty."""


class UpstreamError(CredentialPluginError):
    """An external API call failed."""


class DeadlineExceededError(CredentialPluginError):
    """The invocation deadline expired before the token was resolved."""
