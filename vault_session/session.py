"""
VaultSession — Per-context Vault client with login and secret operations.

Provides the public API of the facade:
- ``setup(address)`` — build the backend client for an address
- ``set_token(token)`` — install a token directly
- ``login(credential)`` — AppRole / Kubernetes login, installs the client token
- ``read`` / ``list`` / ``write`` / ``delete`` — path-addressed secret calls

Every operation except ``setup`` requires a configured client and raises
``UninitializedClientError`` otherwise. Backend failures are re-raised as
``VaultSessionError`` subclasses; a call that returns no result object
yields ``None``.

Security Note:
    Never log tokens, secret ids, jwts or secret payloads. Only log
    context ids, paths, mounts and role names.
"""
import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable, Optional, Union

import orjson
from pydantic import TypeAdapter, ValidationError

from .adapter import BackendAdapter, ClientFactory
from .config import VaultConfig, validate_address
from .context import ExecutionContext
from .credentials import (
    AppRoleCredential,
    Credential,
    KubernetesCredential,
    extract_client_token,
)
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    OperationCancelledError,
    OperationError,
    UninitializedClientError,
    VaultSessionError,
)

logger = logging.getLogger("vault_session")

_CREDENTIAL_ADAPTER = TypeAdapter(Credential)

# How often a blocking call re-checks the context's cancellation signal.
_DEFAULT_POLL_INTERVAL = 0.05

SecretData = Optional[dict[str, Any]]


class VaultSession:
    """Vault client state owned by exactly one execution context.

    A session holds the backend address, the adapter built by ``setup()``
    and the current token. Sessions are never shared between contexts,
    so no locking happens here.

    When bound to an ``ExecutionContext`` every backend call runs on a
    single worker thread owned by the session, and the caller gives up
    as soon as the context is cancelled. Without a context calls run
    inline.
    """

    def __init__(
        self,
        context: Optional[ExecutionContext] = None,
        config: Optional[VaultConfig] = None,
        client_factory: Optional[ClientFactory] = None,
        poll_interval: float = _DEFAULT_POLL_INTERVAL,
    ):
        self._context = context
        self._config = config
        self._client_factory = client_factory
        self._poll_interval = poll_interval
        self._address: Optional[str] = None
        self._adapter: Optional[BackendAdapter] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        if context is not None:
            context.on_close(self.close)

    def __repr__(self) -> str:
        return (
            f'<VaultSession [context:{self.context_id}, '
            f'address:{self._address}, authenticated:{self.is_authenticated()}]>'
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def context(self) -> Optional[ExecutionContext]:
        return self._context

    @property
    def context_id(self) -> Optional[str]:
        return self._context.id if self._context is not None else None

    @property
    def config(self) -> VaultConfig:
        """Client settings; loaded from the environment on first use.

        Raises:
            ConfigurationError: If an environment variable is invalid.
        """
        if self._config is None:
            self._config = VaultConfig.from_env()
        return self._config

    @property
    def address(self) -> Optional[str]:
        return self._address

    @property
    def initialized(self) -> bool:
        return self._adapter is not None

    @property
    def token(self) -> Optional[str]:
        """Current client token, ``None`` before any token is installed."""
        if self._adapter is None:
            return None
        return self._adapter.token

    def is_authenticated(self) -> bool:
        return self.token is not None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_adapter(self, operation: str) -> BackendAdapter:
        if self._adapter is None:
            raise UninitializedClientError(operation)
        return self._adapter

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1,
                thread_name_prefix=f"vault-{self.context_id}",
            )
        return self._executor

    def _call(self, operation: str, fn: Callable, *args, **kwargs) -> Any:
        """Run one blocking backend call, honouring context cancellation."""
        if self._context is None:
            return fn(*args, **kwargs)
        self._context.raise_if_cancelled(operation)
        future = self._get_executor().submit(fn, *args, **kwargs)
        while True:
            done, _ = wait([future], timeout=self._poll_interval)
            if done:
                return future.result()
            if self._context.cancelled:
                future.cancel()
                raise OperationCancelledError(
                    f"{operation} aborted: execution context "
                    f"{self.context_id} was cancelled",
                    operation=operation,
                )

    @staticmethod
    def _extract_data(response: Any) -> SecretData:
        """Return the ``data`` mapping of a response, or None when absent.

        hvac returns None for a 404 on read/list and the raw HTTP response
        for a 204 on write/delete; neither carries a result object.
        """
        if isinstance(response, dict):
            return response.get("data")
        return None

    # ------------------------------------------------------------------
    # Setup & authentication
    # ------------------------------------------------------------------

    def setup(self, address: str = "") -> None:
        """Build the backend client for ``address``.

        Replaces (and closes) any previous client. An empty address falls
        back to ``VAULT_ADDR``. The new client starts without a token.

        Raises:
            ConfigurationError: If no address is available, it is malformed,
                the environment configuration is invalid, or the client
                cannot be constructed.
        """
        try:
            config = self.config
        except ConfigurationError as err:
            err.operation = "setup"
            raise
        address = address or config.address
        if not address:
            raise ConfigurationError(
                "No Vault address given and VAULT_ADDR is not set",
                operation="setup",
            )
        try:
            address = validate_address(address)
        except ValueError as err:
            raise ConfigurationError(str(err), operation="setup") from err
        try:
            adapter = BackendAdapter(address, config, self._client_factory)
        except Exception as err:
            raise ConfigurationError(
                f"Cannot create Vault client for {address}: {err}",
                operation="setup",
            ) from err
        previous, self._adapter = self._adapter, adapter
        self._address = address
        if previous is not None:
            previous.close()
        logger.info(
            "Vault client ready: context=%s address=%s", self.context_id, address,
        )

    def set_token(self, token: str) -> None:
        """Install ``token`` as the session token, bypassing login."""
        adapter = self._require_adapter("set_token")
        adapter.token = token
        logger.debug("Vault token set: context=%s", self.context_id)

    def login(
        self,
        credential: Union[AppRoleCredential, KubernetesCredential, Mapping],
    ) -> None:
        """Authenticate with a credential variant and install the client token.

        Args:
            credential: A credential model, or a mapping with a ``method``
                key (``"approle"`` or ``"kubernetes"``).

        Raises:
            UninitializedClientError: If ``setup()`` was not called.
            ConfigurationError: If a credential mapping is invalid.
            CredentialSourceError: If the Kubernetes token file cannot be read.
                No login request is sent in this case.
            AuthenticationError: If the backend rejects the login or returns
                no client token. The current token is left unchanged.
        """
        adapter = self._require_adapter("login")
        if isinstance(credential, Mapping):
            try:
                credential = _CREDENTIAL_ADAPTER.validate_python(dict(credential))
            except ValidationError as err:
                raise ConfigurationError(
                    f"Invalid credential: {err}", operation="login",
                ) from err
        resolved = credential.resolve(self.config)
        try:
            response = self._call("login", resolved.authenticate, adapter)
        except VaultSessionError:
            raise
        except Exception as err:
            logger.warning(
                "Vault login failed: context=%s %s: %s",
                self.context_id, resolved.describe(), err,
            )
            raise AuthenticationError(str(err), operation="login") from err
        adapter.token = extract_client_token(response)
        logger.info(
            "Vault login succeeded: context=%s %s",
            self.context_id, resolved.describe(),
        )

    def approle_login(self, role_id: str, secret_id: str, mount: str = "") -> None:
        """AppRole login; an empty mount means ``approle``."""
        self._require_adapter("approle_login")
        self.login({
            "method": "approle",
            "role_id": role_id or "",
            "secret_id": secret_id or "",
            "mount": mount or "",
        })

    def kubernetes_login(self, jwt: str, role: str, mount: str = "") -> None:
        """Kubernetes login; an empty jwt is read from the service-account
        token file and an empty mount means ``kubernetes``."""
        self._require_adapter("kubernetes_login")
        self.login({
            "method": "kubernetes",
            "role": role or "",
            "jwt": jwt or "",
            "mount": mount or "",
        })

    # ------------------------------------------------------------------
    # Secret operations
    # ------------------------------------------------------------------

    def _operation(self, operation: str, path: str, *args) -> SecretData:
        adapter = self._require_adapter(operation)
        logger.debug(
            "Vault %s: context=%s path=%s", operation, self.context_id, path,
        )
        try:
            response = self._call(operation, getattr(adapter, operation), path, *args)
        except VaultSessionError:
            raise
        except Exception as err:
            logger.warning(
                "Vault %s failed: context=%s path=%s: %s",
                operation, self.context_id, path, err,
            )
            raise OperationError(str(err), operation=operation, path=path) from err
        return self._extract_data(response)

    def read(self, path: str) -> SecretData:
        """Read the secret at ``path``; None when nothing is stored there."""
        return self._operation("read", path)

    def list(self, path: str) -> SecretData:
        """List child keys under ``path`` (``{"keys": [...]}``) or None."""
        return self._operation("list", path)

    def write(self, path: str, body: Mapping) -> SecretData:
        """Write ``body`` to ``path`` and return the data the backend echoes.

        Raises:
            OperationError: If ``body`` is not a JSON-serializable mapping,
                before any request is sent, or if the backend call fails.
                Non-string keys are sent as strings; integers must fit in
                64 bits.
        """
        self._require_adapter("write")
        if not isinstance(body, Mapping):
            raise OperationError(
                f"write body must be a mapping, got {type(body).__name__}",
                operation="write",
                path=path,
            )
        try:
            payload = orjson.loads(
                orjson.dumps(dict(body), option=orjson.OPT_NON_STR_KEYS)
            )
        except TypeError as err:
            raise OperationError(
                f"write body is not JSON serializable: {err}",
                operation="write",
                path=path,
            ) from err
        return self._operation("write", path, payload)

    def delete(self, path: str) -> SecretData:
        """Delete ``path``; None when the backend returns no content."""
        return self._operation("delete", path)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the client. Runs automatically when the context ends."""
        adapter, self._adapter = self._adapter, None
        executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)
        if adapter is not None:
            adapter.close()
        logger.debug("Vault session closed: context=%s", self.context_id)
