"""
Module Registry — process-wide table of importable modules.

Populated once while the process starts (importing ``vault_session``
registers ``RootModule`` under ``MODULE_NAME``) and never torn down.
Registering a name twice is a startup bug and aborts with
``RegistrationError``.
"""
import logging
import threading
from typing import Any, Protocol

from .context import ExecutionContext
from .exceptions import RegistrationError

logger = logging.getLogger("vault_session")


class ModuleFactory(Protocol):
    def new_module_instance(self, context: ExecutionContext) -> Any: ...


class ModuleRegistry:
    """Maps module names to the factories the host instantiates per context."""

    def __init__(self) -> None:
        self._modules: dict[str, ModuleFactory] = {}
        self._lock = threading.Lock()

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def register(self, name: str, factory: ModuleFactory) -> None:
        """Register ``factory`` under ``name``.

        Raises:
            RegistrationError: If ``name`` is empty or already registered.
        """
        if not name:
            raise RegistrationError("Module name cannot be empty")
        with self._lock:
            if name in self._modules:
                logger.critical("Module %s registered twice", name)
                raise RegistrationError(f"Module {name!r} is already registered")
            self._modules[name] = factory
        logger.debug("Registered module %s", name)

    def get(self, name: str) -> ModuleFactory:
        """Return the factory for ``name``; KeyError if unknown."""
        try:
            return self._modules[name]
        except KeyError:
            raise KeyError(f"Unknown module: {name}") from None

    def names(self) -> list[str]:
        return sorted(self._modules)

    def create_binding(self, name: str, context: ExecutionContext) -> Any:
        """Ask the factory for a module instance bound to ``context``."""
        return self.get(name).new_module_instance(context)


# Singleton instance
registry = ModuleRegistry()
