"""
Vault Session Errors.

Every failure that crosses the session boundary is one of the
``VaultSessionError`` subclasses below, carrying the message of the
underlying cause (chained as ``__cause__``).
"""


class VaultSessionError(RuntimeError):
    """Base class for errors raised by a Vault session."""

    def __init__(self, message: str = "", *, operation: str = None, path: str = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.path = path


class ConfigurationError(VaultSessionError):
    """Missing or malformed address, or invalid client configuration."""


class UninitializedClientError(VaultSessionError):
    """An operation was called before ``setup``."""

    def __init__(self, operation: str = None):
        super().__init__(
            "Vault client is not initialized, call setup() first",
            operation=operation,
        )


class CredentialSourceError(VaultSessionError):
    """Credential material could not be read from its source."""


class AuthenticationError(VaultSessionError):
    """The backend rejected a login, or returned no client token."""


class OperationError(VaultSessionError):
    """A read/list/write/delete call failed."""


class OperationCancelledError(VaultSessionError):
    """The execution context owning the session was cancelled."""


class RegistrationError(RuntimeError):
    """A module name was registered twice. Fatal at process start."""
