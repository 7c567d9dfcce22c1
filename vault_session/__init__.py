"""Vault Session — a HashiCorp Vault client per script execution context.

Importing the package registers the module factory under ``MODULE_NAME``
in the process-wide ``registry``. The host then calls
``registry.create_binding(MODULE_NAME, context)`` for every execution
context and exposes ``exports()["default"]`` to the script.

Security Note:
    Tokens and secret payloads live in process memory for the lifetime of
    the execution context. Nothing is written to disk.
"""

from .version import __version__
from .exceptions import (
    VaultSessionError,
    ConfigurationError,
    UninitializedClientError,
    CredentialSourceError,
    AuthenticationError,
    OperationError,
    OperationCancelledError,
    RegistrationError,
)
from .config import VaultConfig
from .context import ExecutionContext
from .credentials import AppRoleCredential, KubernetesCredential, Credential
from .session import VaultSession
from .module import RootModule, ModuleInstance, ScriptVault
from .registry import ModuleRegistry, registry

MODULE_NAME = "x/hashicorp-vault"

registry.register(MODULE_NAME, RootModule())

__all__ = [
    "__version__",
    "MODULE_NAME",
    "registry",
    "ModuleRegistry",
    "RootModule",
    "ModuleInstance",
    "ScriptVault",
    "VaultSession",
    "ExecutionContext",
    "VaultConfig",
    "AppRoleCredential",
    "KubernetesCredential",
    "Credential",
    "VaultSessionError",
    "ConfigurationError",
    "UninitializedClientError",
    "CredentialSourceError",
    "AuthenticationError",
    "OperationError",
    "OperationCancelledError",
    "RegistrationError",
]
