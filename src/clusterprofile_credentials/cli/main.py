"""CLI entry points for the credential plugins.

Each provider is a subcommand of ``clusterprofile-credentials`` and is also
installed as its own console script, which is what a kubeconfig ``exec``
stanza or a ClusterProfile credential provider points at.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click
from rich.console import Console
from rich.markup import escape

from clusterprofile_credentials import __version__
from clusterprofile_credentials.core.exceptions import CredentialPluginError

if TYPE_CHECKING:
    from clusterprofile_credentials.core.config import PluginConfig
    from clusterprofile_credentials.interfaces.credential_provider import CredentialProvider

# stdout carries the ExecCredential, so everything human-readable goes to stderr
err_console = Console(stderr=True)


class PluginContext:
    """Per-invocation CLI state with lazy configuration loading."""

    def __init__(
        self,
        config_path: str | None = None,
        log_level: str | None = None,
        log_format: str | None = None,
        timeout: float | None = None,
        **overrides: Any,
    ):
        """Initialize context.

        Args:
            config_path: Path to configuration file (optional)
            log_level: Log level override
            log_format: Log format override
            timeout: Invocation timeout override in seconds
            **overrides: Provider-specific overrides (namespace, profile)
        """
        self.config_path = config_path
        self.log_level = log_level
        self.log_format = log_format
        self.timeout = timeout
        self.overrides = {k: v for k, v in overrides.items() if v is not None}
        self._config: PluginConfig | None = None

    @property
    def config(self) -> PluginConfig:
        """Get or load config lazily, applying command-line overrides."""
        if self._config is None:
            from clusterprofile_credentials.core.config import PluginConfig

            config = PluginConfig.load(self.config_path)

            if self.log_level:
                config.logging.level = self.log_level
            if self.log_format:
                config.logging.format = self.log_format
            if self.timeout:
                config.timeout_seconds = self.timeout
            if "namespace" in self.overrides:
                config.kubernetes.namespace = self.overrides["namespace"]
            if "profile" in self.overrides:
                config.aws.profile = self.overrides["profile"]

            self._config = config
        return self._config

    def build_provider(self, name: str) -> CredentialProvider:
        from clusterprofile_credentials.providers import build_provider

        return build_provider(name, self.config)


def plugin_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every provider command."""
    func = click.option(
        "--timeout",
        type=click.FloatRange(min=0, min_open=True),
        default=None,
        help="Give up after this many seconds",
    )(func)
    func = click.option(
        "--log-format",
        type=click.Choice(["console", "json"]),
        default=None,
        help="Log format",
    )(func)
    func = click.option(
        "--log-level",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
        default=None,
        help="Log level (logs are written to stderr)",
    )(func)
    func = click.option(
        "--config",
        "config_path",
        type=click.Path(dir_okay=False),
        default=None,
        help="Path to configuration file",
    )(func)
    return func


def run_provider(plugin_ctx: PluginContext, name: str) -> None:
    """Configure logging, build the provider and run one exec invocation."""
    from clusterprofile_credentials.core.deadline import Deadline
    from clusterprofile_credentials.core.harness import EXIT_FAILURE, run
    from clusterprofile_credentials.utils.logging import setup_logging

    ctx = click.get_current_context()
    try:
        config = plugin_ctx.config
        setup_logging(
            level=config.logging.level,
            format=config.logging.format,
            output=config.logging.output,
        )
        provider = plugin_ctx.build_provider(name)
    except CredentialPluginError as e:
        err_console.print(f"[bold red]error:[/bold red] {escape(str(e))}", highlight=False)
        ctx.exit(EXIT_FAILURE)

    ctx.exit(run(provider, deadline=Deadline.after(config.timeout_seconds)))


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Exec-credential plugins resolving cluster endpoints to bearer tokens."""


@cli.command("secretreader")
@plugin_options
@click.option("--namespace", default=None, help="Namespace holding ClusterProfiles and Secrets")
def secretreader(
    config_path: str | None,
    log_level: str | None,
    log_format: str | None,
    timeout: float | None,
    namespace: str | None,
) -> None:
    """Read the token stored for the matching ClusterProfile."""
    plugin_ctx = PluginContext(config_path, log_level, log_format, timeout, namespace=namespace)
    run_provider(plugin_ctx, "secretreader")


@cli.command("eks")
@plugin_options
@click.option("--profile", default=None, help="AWS profile name")
def eks(
    config_path: str | None,
    log_level: str | None,
    log_format: str | None,
    timeout: float | None,
    profile: str | None,
) -> None:
    """Mint an EKS token for the cluster serving the requested endpoint."""
    plugin_ctx = PluginContext(config_path, log_level, log_format, timeout, profile=profile)
    run_provider(plugin_ctx, "eks")


@cli.command("kubeconfig-secretreader")
@plugin_options
def kubeconfig_secretreader(
    config_path: str | None,
    log_level: str | None,
    log_format: str | None,
    timeout: float | None,
) -> None:
    """Read the Secret named in the kubeconfig exec extension."""
    plugin_ctx = PluginContext(config_path, log_level, log_format, timeout)
    run_provider(plugin_ctx, "kubeconfig-secretreader")


if __name__ == "__main__":
    cli()
