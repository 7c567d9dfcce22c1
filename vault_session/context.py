"""
Execution Context — one isolated unit of script execution.

The host creates an ``ExecutionContext`` per worker (virtual user) and
hands it to the module registry. Everything bound to the context (its
Vault session included) is released by ``close()``.
"""
import uuid
import logging
import threading
from typing import Any, Callable, Optional

from .exceptions import OperationCancelledError

logger = logging.getLogger("vault_session")


class ExecutionContext:
    """Identity, cancellation signal and end-of-life hooks of a context.

    Args:
        id: Host supplied identity; a random uuid4 hex when omitted.
        throw: Optional host hook that converts a Python exception into
            the scripting runtime's own exception. Used by the script
            binding only, never by the session itself.
    """

    def __init__(
        self,
        id: Optional[str] = None,
        throw: Optional[Callable[[BaseException], Any]] = None,
    ) -> None:
        self._id_ = id or uuid.uuid4().hex
        self._cancelled = threading.Event()
        self._finalizers: list[Callable[[], None]] = []
        self._closed = False
        self.throw = throw

    def __repr__(self) -> str:
        return (
            f'<ExecutionContext [id:{self._id_}, '
            f'cancelled:{self.cancelled}, closed:{self._closed}]>'
        )

    @property
    def id(self) -> str:
        return self._id_

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def closed(self) -> bool:
        return self._closed

    def cancel(self) -> None:
        """Signal cancellation to every call bound to this context."""
        self._cancelled.set()

    def raise_if_cancelled(self, operation: str = None) -> None:
        if self._cancelled.is_set():
            raise OperationCancelledError(
                f"Execution context {self._id_} was cancelled",
                operation=operation,
            )

    def on_close(self, finalizer: Callable[[], None]) -> None:
        """Register a callable run once when the context ends."""
        self._finalizers.append(finalizer)

    def close(self) -> None:
        """End the context: cancel pending calls and run finalizers (LIFO)."""
        if self._closed:
            return
        self._closed = True
        self._cancelled.set()
        while self._finalizers:
            finalizer = self._finalizers.pop()
            try:
                finalizer()
            except Exception as err:
                logger.error(
                    "Finalizer failed for context=%s: %s", self._id_, err,
                )
        logger.debug("Execution context closed: %s", self._id_)

    def __enter__(self) -> "ExecutionContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
