"""
Backend Adapter — thin wrapper over ``hvac.Client``.

The adapter performs exactly one HTTP call per method and returns what
``hvac`` returns. Error translation and result shaping happen in the
session, never here.
"""
import logging
from typing import Any, Callable, Optional

import hvac

from .config import VaultConfig

logger = logging.getLogger("vault_session")

ClientFactory = Callable[..., Any]


class BackendAdapter:
    """Owns one ``hvac.Client`` bound to a single Vault address.

    Args:
        address: Vault server URL.
        config: Client settings (namespace, TLS verification, timeout).
        client_factory: Callable building the client, ``hvac.Client`` by
            default. It receives ``url``, ``token``, ``namespace``,
            ``verify`` and ``timeout`` keyword arguments.
    """

    def __init__(
        self,
        address: str,
        config: Optional[VaultConfig] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.address = address
        self._config = config or VaultConfig()
        factory = client_factory or hvac.Client
        # token="" keeps hvac from picking up VAULT_TOKEN or ~/.vault-token
        self._client = factory(
            url=address,
            token="",
            namespace=self._config.namespace,
            verify=self._config.verify,
            timeout=self._config.timeout,
        )

    @property
    def client(self) -> Any:
        return self._client

    @property
    def token(self) -> Optional[str]:
        return self._client.token or None

    @token.setter
    def token(self, value: str) -> None:
        self._client.token = value

    # ------------------------------------------------------------------
    # Auth methods
    # ------------------------------------------------------------------

    def approle_login(self, role_id: str, secret_id: Optional[str], mount: str) -> Any:
        return self._client.auth.approle.login(
            role_id=role_id,
            secret_id=secret_id,
            use_token=False,
            mount_point=mount,
        )

    def kubernetes_login(self, role: str, jwt: str, mount: str) -> Any:
        return self._client.auth.kubernetes.login(
            role=role,
            jwt=jwt,
            use_token=False,
            mount_point=mount,
        )

    # ------------------------------------------------------------------
    # Logical backend calls
    # ------------------------------------------------------------------

    def read(self, path: str) -> Any:
        return self._client.read(path)

    def list(self, path: str) -> Any:
        return self._client.list(path)

    def write(self, path: str, body: dict) -> Any:
        return self._client.write_data(path, data=body)

    def delete(self, path: str) -> Any:
        return self._client.delete(path)

    def close(self) -> None:
        """Close the underlying HTTP session, if the client exposes one."""
        adapter = getattr(self._client, "adapter", None)
        close = getattr(adapter, "close", None)
        if callable(close):
            close()
