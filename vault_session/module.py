"""
Vault Module — Binds one VaultSession to each execution context and
exposes it to scripts.

``RootModule`` is the factory registered with the host once per process.
For every execution context the host asks it for a ``ModuleInstance``,
whose ``exports()`` carry:

- ``default``: a ``ScriptVault`` wrapping the context's own session
- ``named["Vault"]``: a constructor ``Vault(address)`` returning a new,
  already set up ``ScriptVault`` bound to the same context
"""
import logging
from typing import Any, Callable, Optional

from .adapter import ClientFactory
from .config import VaultConfig
from .context import ExecutionContext
from .exceptions import VaultSessionError
from .session import SecretData, VaultSession

logger = logging.getLogger("vault_session")


class ScriptVault:
    """The object scripts see, with the scripting runtime's method names.

    Delegates every call to its ``VaultSession``. When the context
    provides a ``throw`` hook, session errors are handed to it so they
    surface as the runtime's own exceptions; otherwise they propagate.
    """

    def __init__(self, session: VaultSession):
        self._session = session

    def __repr__(self) -> str:
        return f'<ScriptVault {self._session!r}>'

    @property
    def session(self) -> VaultSession:
        return self._session

    def _invoke(self, fn: Callable, *args) -> Any:
        try:
            return fn(*args)
        except VaultSessionError as err:
            context = self._session.context
            throw = context.throw if context is not None else None
            if throw is None:
                raise
            return throw(err)

    def setup(self, address: str) -> None:
        self._invoke(self._session.setup, address)

    def setToken(self, token: str) -> None:
        self._invoke(self._session.set_token, token)

    def appRoleLogin(self, roleId: str, secretId: str, mount: str = "") -> None:
        self._invoke(self._session.approle_login, roleId, secretId, mount)

    def kubernetesLogin(self, jwt: str, role: str, mount: str = "") -> None:
        self._invoke(self._session.kubernetes_login, jwt, role, mount)

    def read(self, path: str) -> SecretData:
        return self._invoke(self._session.read, path)

    def list(self, path: str) -> SecretData:
        return self._invoke(self._session.list, path)

    def write(self, path: str, body: dict) -> SecretData:
        return self._invoke(self._session.write, path, body)

    def delete(self, path: str) -> SecretData:
        return self._invoke(self._session.delete, path)


class ModuleInstance:
    """Module state for a single execution context."""

    def __init__(self, root: "RootModule", context: ExecutionContext):
        self._root = root
        self._context = context
        self._vault = ScriptVault(root.new_session(context))

    @property
    def context(self) -> ExecutionContext:
        return self._context

    @property
    def vault(self) -> ScriptVault:
        return self._vault

    def new_vault(self, address: str) -> ScriptVault:
        """``Vault(address)`` constructor exported to scripts."""
        vault = ScriptVault(self._root.new_session(self._context))
        vault.setup(address)
        return vault

    def exports(self) -> dict:
        return {
            "default": self._vault,
            "named": {
                "Vault": self.new_vault,
            },
        }


class RootModule:
    """Process-wide factory producing one ``ModuleInstance`` per context.

    Args:
        config: Shared client settings. When omitted each session loads
            them from the environment during ``setup()``.
        client_factory: Overrides ``hvac.Client`` for every session.
    """

    def __init__(
        self,
        config: Optional[VaultConfig] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        self._config = config
        self._client_factory = client_factory

    def new_session(self, context: ExecutionContext) -> VaultSession:
        return VaultSession(
            context=context,
            config=self._config,
            client_factory=self._client_factory,
        )

    def new_module_instance(self, context: ExecutionContext) -> ModuleInstance:
        logger.debug("New Vault module instance: context=%s", context.id)
        return ModuleInstance(self, context)
