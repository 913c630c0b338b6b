"""Configuration management for mail-sts."""

import logging
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_AGENT_TIMEOUT,
    DEFAULT_DNS_PUBLIC_SERVERS,
    DEFAULT_DNS_TIMEOUT,
    DEFAULT_MAX_POLICY_SIZE,
    DEFAULT_USER_AGENT,
)

logger = logging.getLogger(__name__)


class DnsConfig(BaseModel):
    """DNS resolver configuration."""

    nameservers: list[str] | None = Field(
        default=None,
        description="DNS nameservers to use (system resolver when unset)",
    )
    fallback_nameservers: list[str] = Field(
        default_factory=lambda: DEFAULT_DNS_PUBLIC_SERVERS.copy(),
        description="Nameservers used when no system resolver is configured",
    )
    timeout: float = Field(default=DEFAULT_DNS_TIMEOUT, description="DNS query timeout in seconds")
    dnssec: bool = Field(
        default=True,
        description="Request DNSSEC validation and report the AD flag",
    )

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v):
        """Reject non-positive timeouts."""
        if v <= 0:
            raise ValueError("DNS timeout must be a positive number")
        return v


class AgentConfig(BaseModel):
    """HTTPS agent configuration for policy retrieval."""

    timeout: float = Field(
        default=DEFAULT_AGENT_TIMEOUT,
        description="Overall policy fetch timeout in seconds",
    )
    max_policy_size: int | None = Field(
        default=DEFAULT_MAX_POLICY_SIZE,
        description="Maximum policy document size in bytes (None disables the limit)",
    )
    ssl_ca_file: str | None = Field(default=None, description="CA bundle file for verification")
    ssl_ca_path: str | None = Field(default=None, description="CA certificate directory")
    proxy: str | None = Field(default=None, description="Proxy URL for policy requests")
    trust_env: bool = Field(
        default=False,
        description="Honour proxy settings from the environment (HTTPS_PROXY, NO_PROXY)",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User agent string for policy requests",
    )

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v):
        """Reject non-positive timeouts."""
        if v <= 0:
            raise ValueError("Agent timeout must be a positive number")
        return v

    @field_validator("max_policy_size")
    @classmethod
    def validate_max_policy_size(cls, v):
        """Reject negative size limits."""
        if v is not None and v < 0:
            raise ValueError("max_policy_size must not be negative")
        return v

    @field_validator("user_agent", mode="before")
    @classmethod
    def validate_user_agent(cls, v):
        """Fall back to the default user agent for blank values."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_USER_AGENT
        return v


class StsConfig(BaseSettings):
    """
    Main configuration for mail-sts.

    Values can come from TOML files (see load_config) and from environment
    variables prefixed with ``MAIL_STS_``, using ``__`` for nesting, e.g.
    ``MAIL_STS_AGENT__TIMEOUT=30``.
    """

    model_config = SettingsConfigDict(
        env_prefix="MAIL_STS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    dns: DnsConfig = Field(default_factory=DnsConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)

    def to_toml(self) -> str:
        """
        Export configuration to TOML string.

        Returns:
            TOML formatted configuration string
        """
        return tomli_w.dumps(self.model_dump(mode="json", exclude_none=True))

    def to_toml_file(self, path: Path) -> None:
        """
        Export configuration to TOML file.

        Args:
            path: Path to save the TOML file
        """
        with open(path, "wb") as f:
            tomli_w.dump(self.model_dump(mode="json", exclude_none=True), f)
        logger.info(f"Exported config to: {path}")

    @classmethod
    def from_toml_string(cls, toml_string: str) -> "StsConfig":
        """
        Import configuration from TOML string.

        Args:
            toml_string: TOML formatted configuration string

        Returns:
            StsConfig object
        """
        return cls(**tomllib.loads(toml_string))


def get_config_paths() -> list[Path]:
    """
    Get configuration file paths in order of precedence (lowest to highest).

    Returns:
        List of existing config file paths
    """
    candidates = [
        Path("/etc/mail-sts/config.toml"),
        Path.home() / ".config" / "mail-sts" / "config.toml",
        Path.home() / ".mail-sts.toml",
        Path.cwd() / ".mail-sts.toml",
    ]
    return [path for path in candidates if path.exists()]


def load_config(extra_paths: list[Path] | None = None, strict: bool = False) -> StsConfig:
    """
    Load configuration from files.

    Configuration is loaded in this order (later files override earlier):
    1. System-wide config (/etc/mail-sts/config.toml)
    2. User config (~/.config/mail-sts/config.toml)
    3. User home config (~/.mail-sts.toml)
    4. Current directory config (.mail-sts.toml)
    5. Explicit extra paths

    Args:
        extra_paths: Additional config files, highest precedence
        strict: Raise instead of logging when a file cannot be read

    Returns:
        Merged configuration
    """
    config_paths = get_config_paths()
    if extra_paths:
        config_paths.extend(extra_paths)

    config_data: dict[str, Any] = {}

    for config_path in config_paths:
        try:
            with open(config_path, "rb") as f:
                file_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            if strict:
                raise RuntimeError(f"Failed to load config from {config_path}: {e}") from e
            logger.warning(f"Failed to load config from {config_path}: {e}")
            continue
        config_data = _merge_configs(config_data, file_data)
        logger.debug(f"Loaded config from {config_path}")

    return StsConfig(**config_data)


def _merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    Args:
        base: Base configuration
        override: Configuration to override base with

    Returns:
        Merged configuration
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_configs(result[key], value)
        else:
            result[key] = value

    return result
