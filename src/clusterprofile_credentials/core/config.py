"""Configuration management for the credential plugins."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from clusterprofile_credentials.core.exceptions import ConfigurationError

ENV_PREFIX = "CLUSTERPROFILE_"


class KubernetesConfig(BaseModel):
    """Kubernetes client configuration."""

    # Only used when in-cluster configuration is unavailable
    kubeconfig_path: str | None = None
    namespace: str = "default"


class AWSConfig(BaseModel):
    """AWS configuration."""

    profile: str | None = None


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "console"
    output: str = "stderr"


class PluginConfig(BaseModel):
    """Main plugin configuration."""

    kubernetes: KubernetesConfig = Field(default_factory=KubernetesConfig)
    aws: AWSConfig = Field(default_factory=AWSConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    timeout_seconds: float = Field(default=30.0, gt=0)

    @classmethod
    def from_file(cls, path: str | Path) -> "PluginConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            PluginConfig instance

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        config_path = Path(path).expanduser()

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        try:
            return cls(**data)
        except (TypeError, ValidationError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def load(
        cls, path: str | Path | None = None, environ: Mapping[str, str] | None = None
    ) -> "PluginConfig":
        """Load configuration from an optional file, then overlay the environment.

        Args:
            path: Path to configuration file (falls back to CLUSTERPROFILE_CONFIG)
            environ: Environment mapping (defaults to os.environ)

        Returns:
            PluginConfig instance

        Raises:
            ConfigurationError: If the file or an environment value is invalid
        """
        env = os.environ if environ is None else environ
        path = path or env.get(f"{ENV_PREFIX}CONFIG")
        base = cls.from_file(path) if path else cls()
        return base.with_env(env)

    def with_env(self, environ: Mapping[str, str]) -> "PluginConfig":
        """Return a copy with environment overrides applied.

        Args:
            environ: Environment mapping

        Returns:
            New PluginConfig instance
        """
        data: dict[str, Any] = self.model_dump()

        if environ.get("KUBECONFIG"):
            data["kubernetes"]["kubeconfig_path"] = environ["KUBECONFIG"]
        if environ.get(f"{ENV_PREFIX}NAMESPACE"):
            data["kubernetes"]["namespace"] = environ[f"{ENV_PREFIX}NAMESPACE"]
        if environ.get("AWS_PROFILE"):
            data["aws"]["profile"] = environ["AWS_PROFILE"]
        if environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
            data["logging"]["level"] = environ[f"{ENV_PREFIX}LOG_LEVEL"]
        if environ.get(f"{ENV_PREFIX}LOG_FORMAT"):
            data["logging"]["format"] = environ[f"{ENV_PREFIX}LOG_FORMAT"]
        if environ.get(f"{ENV_PREFIX}TIMEOUT_SECONDS"):
            data["timeout_seconds"] = environ[f"{ENV_PREFIX}TIMEOUT_SECONDS"]

        try:
            return type(self)(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid environment configuration: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation
        """
        return self.model_dump()
