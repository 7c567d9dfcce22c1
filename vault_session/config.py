"""
Vault Configuration — Client settings loaded from the environment.

Reads the usual Vault client variables:
    VAULT_ADDR = <http(s) address of the Vault server>
    VAULT_NAMESPACE = <enterprise namespace>
    VAULT_SKIP_VERIFY = <true|false>
    VAULT_CLIENT_TIMEOUT = <seconds, or a duration such as 60s or 1m30s>
    VAULT_K8S_TOKEN_PATH = <service-account token file>

Security Note:
    Never log token values. Only log addresses, mounts and paths.
"""
import os
import re
import logging
from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

logger = logging.getLogger("vault_session")

DEFAULT_APPROLE_MOUNT = "approle"
DEFAULT_KUBERNETES_MOUNT = "kubernetes"
DEFAULT_KUBERNETES_TOKEN_PATH = "/var/run/secrets/kubernetes.io/serviceaccount/token"
DEFAULT_TIMEOUT = 30

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")
_DURATION_PATTERN = re.compile(r"^(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?$")


def validate_address(address: str) -> str:
    """Check that ``address`` is an absolute http(s) URL with a host.

    Args:
        address: Vault server address, e.g. ``http://vault.local:8200``.

    Returns:
        The address, stripped of surrounding whitespace.

    Raises:
        ValueError: If the address is empty, relative or uses another scheme.
    """
    if not isinstance(address, str) or not address.strip():
        raise ValueError("Vault address cannot be empty")
    address = address.strip()
    parts = urlsplit(address)
    if parts.scheme not in ("http", "https"):
        raise ValueError(
            f"Vault address must use http or https, got {address!r}"
        )
    try:
        port = parts.port
    except ValueError as err:
        raise ValueError(f"Invalid port in Vault address {address!r}") from err
    if not parts.hostname:
        raise ValueError(f"Vault address has no host: {address!r}")
    if port == 0:
        raise ValueError(f"Invalid port in Vault address {address!r}")
    return address


def parse_duration(value: str) -> int:
    """Convert seconds or a Vault style duration (``90``, ``60s``, ``1m30s``,
    ``1h``) to whole seconds.

    Raises:
        ValueError: If the value is not a recognised duration.
    """
    value = value.strip().lower()
    if value.isdigit():
        return int(value)
    match = _DURATION_PATTERN.match(value)
    if not value or match is None:
        raise ValueError(f"Invalid duration: {value!r}")
    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


class VaultConfig(BaseModel):
    """Validated Vault client configuration."""

    address: Optional[str] = None
    namespace: Optional[str] = None
    verify: bool = True
    timeout: int = Field(default=DEFAULT_TIMEOUT, ge=1)
    kubernetes_token_path: str = Field(default=DEFAULT_KUBERNETES_TOKEN_PATH)
    approle_mount: str = Field(default=DEFAULT_APPROLE_MOUNT, min_length=1)
    kubernetes_mount: str = Field(default=DEFAULT_KUBERNETES_MOUNT, min_length=1)

    @field_validator("address")
    @classmethod
    def check_address(cls, v: Optional[str]) -> Optional[str]:
        """Validate the address when one is configured."""
        if v is None or not v.strip():
            return None
        return validate_address(v)

    @field_validator("timeout", mode="before")
    @classmethod
    def check_timeout(cls, v):
        """Accept duration strings such as ``60s`` as well as integers."""
        if isinstance(v, str):
            return parse_duration(v)
        return v

    @field_validator("namespace")
    @classmethod
    def empty_namespace(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            Populated VaultConfig instance.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        values = {
            "address": env.get("VAULT_ADDR"),
            "namespace": env.get("VAULT_NAMESPACE"),
        }
        if "VAULT_SKIP_VERIFY" in env:
            values["verify"] = not _parse_bool(
                "VAULT_SKIP_VERIFY", env["VAULT_SKIP_VERIFY"]
            )
        if env.get("VAULT_CLIENT_TIMEOUT"):
            values["timeout"] = env["VAULT_CLIENT_TIMEOUT"]
        if env.get("VAULT_K8S_TOKEN_PATH"):
            values["kubernetes_token_path"] = env["VAULT_K8S_TOKEN_PATH"]
        try:
            config = cls(**values)
        except ValidationError as err:
            raise ConfigurationError(
                f"Invalid Vault configuration: {err}"
            ) from err
        logger.debug(
            "Loaded Vault config: address=%s namespace=%s verify=%s timeout=%s",
            config.address, config.namespace, config.verify, config.timeout,
        )
        return config
