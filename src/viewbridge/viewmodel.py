# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Base class for server-backed pages and components.

A view model lives for exactly one request: it is built, populated from the
client snapshot, has one action applied, and is discarded.  Subclasses declare
data fields as annotations and register actions with
:func:`viewbridge.action`::

    class Counter(ViewModel):
        count: int = 0

        @action()
        def increment(self, step: int = 1) -> None:
            self.count += step
            self.js.console_log(f"count is {self.count}")
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .schema import ViewModelSchema, resolve_schema
from .script import ScriptBuilder


if TYPE_CHECKING:  # pragma: no cover - typing only
    from types import TracebackType

    from .authorization import Principal


class ViewModel:
    """Server-side state of one page or component for a single request."""

    def __init__(self, *, identity: Principal | None = None) -> None:
        self._identity = identity
        self._js = ScriptBuilder()
        for name, spec in self.schema().fields.items():
            setattr(self, name, spec.info.make_default())

    @classmethod
    def schema(cls) -> ViewModelSchema:
        return resolve_schema(cls)

    # ------------------------------------------------------------------
    # Request-scoped state
    # ------------------------------------------------------------------

    @property
    def js(self) -> ScriptBuilder:
        """Script run on the client after this render or update."""
        return self._js

    @property
    def identity(self) -> Principal | None:
        """Caller identity supplied by the host, if any."""
        return self._identity

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    def on_init(self) -> None:
        """Called after construction, before any client state is applied."""

    def on_created(self) -> None:
        """Called before a page renders.

        Components call it from their client ``created`` hook through an
        update request, but only when a subclass overrides it.
        """

    def on_execute(self, method: Callable[..., Any], args: list[Any], kwargs: dict[str, Any]) -> None:
        """Invoke a resolved action.  Override to wrap every action call."""
        method(*args, **kwargs)

    def close(self) -> None:
        """Release request resources.  Always called at the end of an update."""

    def __enter__(self) -> ViewModel:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["ViewModel"]
