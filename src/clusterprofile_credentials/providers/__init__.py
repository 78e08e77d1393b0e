"""Credential provider strategies, selected by name at process start."""

from collections.abc import Callable

from clusterprofile_credentials.core.config import PluginConfig
from clusterprofile_credentials.core.exceptions import ConfigurationError
from clusterprofile_credentials.interfaces.credential_provider import CredentialProvider
from clusterprofile_credentials.providers.eks import EKSProvider
from clusterprofile_credentials.providers.kubeconfig_secretreader import (
    KubeconfigSecretReaderProvider,
)
from clusterprofile_credentials.providers.secretreader import SecretReaderProvider

PROVIDER_FACTORIES: dict[str, Callable[[PluginConfig], CredentialProvider]] = {
    SecretReaderProvider.name: lambda config: SecretReaderProvider(
        namespace=config.kubernetes.namespace,
        kubeconfig_path=config.kubernetes.kubeconfig_path,
    ),
    EKSProvider.name: lambda config: EKSProvider(profile=config.aws.profile),
    KubeconfigSecretReaderProvider.name: lambda config: KubeconfigSecretReaderProvider(
        kubeconfig_path=config.kubernetes.kubeconfig_path,
    ),
}


def build_provider(name: str, config: PluginConfig) -> CredentialProvider:
    """Build the named provider.

    Args:
        name: Provider name
        config: Plugin configuration

    Returns:
        Provider instance (external clients are created on first use)

    Raises:
        ConfigurationError: If the provider name is unknown
    """
    factory = PROVIDER_FACTORIES.get(name)
    if factory is None:
        known = ", ".join(sorted(PROVIDER_FACTORIES))
        raise ConfigurationError(f"unknown provider {name!r} (known: {known})")
    return factory(config)


__all__ = [
    "EKSProvider",
    "KubeconfigSecretReaderProvider",
    "PROVIDER_FACTORIES",
    "SecretReaderProvider",
    "build_provider",
]
