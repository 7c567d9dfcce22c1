"""
Vault Credentials — Login strategies that turn role/secret material into a
client token.

Each credential variant knows its default mount, how to fill in missing
material (``resolve``) and which backend login call to issue
(``authenticate``). The session drives both steps through a single
``login(credential)`` operation.

Security Note:
    Never log secret ids or jwts. Only log role names and mounts.
"""
import logging
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, SecretStr

from .config import (
    DEFAULT_APPROLE_MOUNT,
    DEFAULT_KUBERNETES_MOUNT,
    DEFAULT_KUBERNETES_TOKEN_PATH,
    VaultConfig,
)
from .exceptions import AuthenticationError, CredentialSourceError

logger = logging.getLogger("vault_session")


def read_service_account_token(path: str = DEFAULT_KUBERNETES_TOKEN_PATH) -> str:
    """Read a Kubernetes service-account token from disk.

    Args:
        path: Token file location.

    Returns:
        The token with surrounding whitespace removed.

    Raises:
        CredentialSourceError: If the file is missing, unreadable or empty.
    """
    try:
        token = Path(path).read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as err:
        raise CredentialSourceError(
            f"Cannot read service account token from {path}: {err}",
            operation="kubernetes_login",
        ) from err
    if not token:
        raise CredentialSourceError(
            f"Service account token file {path} is empty",
            operation="kubernetes_login",
        )
    logger.debug("Read service account token from %s", path)
    return token


def extract_client_token(response: Any) -> str:
    """Return ``auth.client_token`` from a login response.

    Raises:
        AuthenticationError: If the response carries no client token.
    """
    auth = response.get("auth") if isinstance(response, dict) else None
    token = auth.get("client_token") if isinstance(auth, dict) else None
    if not token:
        raise AuthenticationError(
            "Login response did not contain a client token",
            operation="login",
        )
    return token


class AppRoleCredential(BaseModel):
    """AppRole role id / secret id pair."""

    method: Literal["approle"] = "approle"
    role_id: str
    secret_id: SecretStr = SecretStr("")
    mount: str = ""

    def resolve(self, config: Optional[VaultConfig] = None) -> "AppRoleCredential":
        """Fill in the default mount."""
        default_mount = DEFAULT_APPROLE_MOUNT
        if config is not None:
            default_mount = config.approle_mount
        return self.model_copy(update={"mount": self.mount or default_mount})

    def authenticate(self, adapter) -> Any:
        return adapter.approle_login(
            role_id=self.role_id,
            secret_id=self.secret_id.get_secret_value() or None,
            mount=self.mount or DEFAULT_APPROLE_MOUNT,
        )

    def describe(self) -> str:
        return f"approle mount={self.mount or DEFAULT_APPROLE_MOUNT}"


class KubernetesCredential(BaseModel):
    """Kubernetes service-account JWT bound to a Vault role.

    An empty ``jwt`` is loaded from ``token_path`` by ``resolve()``.
    """

    method: Literal["kubernetes"] = "kubernetes"
    role: str
    jwt: SecretStr = SecretStr("")
    mount: str = ""
    token_path: Optional[str] = None

    def resolve(self, config: Optional[VaultConfig] = None) -> "KubernetesCredential":
        """Fill in the default mount and load the jwt from disk when empty.

        Raises:
            CredentialSourceError: If the token file cannot be read.
        """
        default_mount = DEFAULT_KUBERNETES_MOUNT
        token_path = DEFAULT_KUBERNETES_TOKEN_PATH
        if config is not None:
            default_mount = config.kubernetes_mount
            token_path = config.kubernetes_token_path
        update: dict = {"mount": self.mount or default_mount}
        if not self.jwt.get_secret_value():
            path = self.token_path or token_path
            update["jwt"] = SecretStr(read_service_account_token(path))
            update["token_path"] = path
        return self.model_copy(update=update)

    def authenticate(self, adapter) -> Any:
        jwt = self.jwt.get_secret_value()
        if not jwt:
            raise CredentialSourceError(
                "Kubernetes credential has no jwt, resolve() it first",
                operation="kubernetes_login",
            )
        return adapter.kubernetes_login(
            role=self.role,
            jwt=jwt,
            mount=self.mount or DEFAULT_KUBERNETES_MOUNT,
        )

    def describe(self) -> str:
        return (
            f"kubernetes role={self.role} "
            f"mount={self.mount or DEFAULT_KUBERNETES_MOUNT}"
        )


Credential = Annotated[
    Union[AppRoleCredential, KubernetesCredential],
    Field(discriminator="method"),
]
