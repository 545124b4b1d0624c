"""
Configuration management for TLS Host Checker.
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tls_host_checker.errors import ConfigValidationError

# camelCase option names accepted for compatibility with existing configs
OPTION_ALIASES = {
    "rejectUnauthorized": "reject_unauthorized",
    "dnsTimeout": "dns_timeout",
    "retryDelay": "retry_delay",
    "logLevel": "log_level",
    "logFile": "log_file",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Config(BaseModel):
    """Configuration model for a TLS check run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Connection settings (milliseconds)
    timeout: float = Field(default=1000)
    dns_timeout: float = Field(default=1000)
    port: int = Field(default=443, le=65535)
    reject_unauthorized: bool = Field(default=False)

    # Scheduling
    concurrency: int = Field(default=20)
    retries: int = Field(default=1)
    retry_delay: float = Field(default=100)

    hostnames: List[str] = Field(default_factory=list)

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = None

    @field_validator("timeout", "dns_timeout", "port", "concurrency", mode="before")
    @classmethod
    def validate_positive(cls, v: Any) -> Any:
        """Reject non-numeric and non-positive values."""
        if not _is_number(v) or v <= 0:
            raise ValueError("must be a positive number")
        return v

    @field_validator("retries", "retry_delay", mode="before")
    @classmethod
    def validate_non_negative(cls, v: Any) -> Any:
        """Reject non-numeric and negative values."""
        if not _is_number(v) or v < 0:
            raise ValueError("must be a non-negative number")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"must be one of: {valid_levels}")
        return v.upper()

    @field_validator("hostnames")
    @classmethod
    def validate_hostnames(cls, v: List[str]) -> List[str]:
        """Strip whitespace and drop empty entries."""
        return [h.strip() for h in v if h and h.strip()]

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None, **overrides: Any) -> "Config":
        """
        Build a validated configuration from defaults, then options, then overrides.

        Args:
            options: Option mapping (snake_case or camelCase keys)
            **overrides: Highest-priority option values

        Returns:
            Config object

        Raises:
            ConfigValidationError: If any option is invalid
        """
        merged: Dict[str, Any] = {}
        for source in (options or {}, overrides):
            for key, value in source.items():
                merged[OPTION_ALIASES.get(key, key)] = value

        try:
            return cls(**merged)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or "config"
            ctx_error = error.get("ctx", {}).get("error")
            reason = str(ctx_error) if ctx_error is not None else error["msg"]
            raise ConfigValidationError(field, reason) from e

    @property
    def timeout_seconds(self) -> float:
        """Get connect timeout in seconds."""
        return self.timeout / 1000.0

    @property
    def dns_timeout_seconds(self) -> float:
        """Get DNS timeout in seconds."""
        return self.dns_timeout / 1000.0

    @property
    def retry_delay_seconds(self) -> float:
        """Get retry delay in seconds."""
        return self.retry_delay / 1000.0

    @property
    def max_attempts(self) -> int:
        """Total attempts per host, the initial try included."""
        return self.retries + 1


def load_config(
    config_path: Optional[str] = None, overrides: Optional[Mapping[str, Any]] = None
) -> Config:
    """
    Load configuration from file, environment variables and explicit overrides.

    Args:
        config_path: Path to configuration file
        overrides: Values taking precedence over file and environment (e.g. CLI options)

    Returns:
        Config object
    """
    config_data: Dict[str, Any] = {}

    # Load from file if provided
    if config_path:
        config_file = Path(config_path)
        if config_file.exists():
            with open(config_file, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        else:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if not isinstance(config_data, dict):
            raise ConfigValidationError(
                "config", f"file {config_path} must contain a mapping of options"
            )

    config_data = {OPTION_ALIASES.get(k, k): v for k, v in config_data.items()}

    # Override with environment variables
    config_data.update(_get_env_overrides())

    if overrides:
        config_data.update({k: v for k, v in overrides.items() if v is not None})

    return Config.from_options(config_data)


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _parse_number(value: str) -> float:
    number = float(value)
    return int(number) if number.is_integer() else number


def _get_env_overrides() -> dict:
    """Get configuration overrides from environment variables."""
    env_mapping: Dict[str, tuple[str, Callable[[str], Any]]] = {
        "TLS_CHECKER_TIMEOUT": ("timeout", _parse_number),
        "TLS_CHECKER_DNS_TIMEOUT": ("dns_timeout", _parse_number),
        "TLS_CHECKER_PORT": ("port", int),
        "TLS_CHECKER_REJECT_UNAUTHORIZED": ("reject_unauthorized", _parse_bool),
        "TLS_CHECKER_CONCURRENCY": ("concurrency", int),
        "TLS_CHECKER_RETRIES": ("retries", int),
        "TLS_CHECKER_RETRY_DELAY": ("retry_delay", _parse_number),
        "TLS_CHECKER_LOG_LEVEL": ("log_level", str),
        "TLS_CHECKER_LOG_FILE": ("log_file", str),
    }

    overrides = {}
    for env_var, (config_key, converter) in env_mapping.items():
        value = os.getenv(env_var)
        if value is not None:
            try:
                overrides[config_key] = converter(value)
            except (ValueError, TypeError) as e:
                logging.warning(f"Invalid value for {env_var}: {value} - {e}")

    hostnames = os.getenv("TLS_CHECKER_HOSTNAMES")
    if hostnames:
        overrides["hostnames"] = [h.strip() for h in hostnames.split(",")]

    return overrides


def create_example_config(output_path: str = "config.example.yaml") -> None:
    """Create an example configuration file."""
    example_config = {
        "timeout": 1000,
        "dns_timeout": 1000,
        "port": 443,
        "reject_unauthorized": False,
        "concurrency": 20,
        "retries": 1,
        "retry_delay": 100,
        "hostnames": ["www.github.com", "www.python.org"],
        "log_level": "INFO",
    }

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
