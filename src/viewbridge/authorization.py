# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Role checks for view-model actions.

ViewBridge never establishes identity itself.  The host passes a
:class:`Principal` (anything with a ``has_role`` predicate) into dispatch; an
action registered with roles runs only when that principal holds at least one
of them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from .errors import AuthorizationError
from .utils import get_logger


_logger = get_logger("viewbridge.authorization")


@runtime_checkable
class Principal(Protocol):
    def has_role(self, role: str) -> bool:
        """Return whether the caller holds ``role``."""


@dataclass(frozen=True, slots=True)
class Identity:
    """Simple :class:`Principal` backed by a fixed role set."""

    subject: str | None
    roles: frozenset[str] = frozenset()
    claims: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def of(cls, subject: str | None, *roles: str, **claims: Any) -> Identity:
        return cls(subject=subject, roles=frozenset(roles), claims=claims)

    def has_role(self, role: str) -> bool:
        return role in self.roles


def authorize(action: str, required_roles: Iterable[str], principal: Principal | None) -> None:
    """Raise :class:`AuthorizationError` unless ``principal`` may run ``action``.

    An empty ``required_roles`` allows everyone, including anonymous callers.
    """
    required = tuple(required_roles)
    if not required:
        return

    if principal is None:
        _logger.warning(
            "authorization failed",
            extra={"event": "auth.reject", "action": action, "reason": "anonymous"},
        )
        raise AuthorizationError(action, required)

    if any(principal.has_role(role) for role in required):
        return

    _logger.warning(
        "authorization failed",
        extra={"event": "auth.reject", "action": action, "reason": "missing role", "roles": list(required)},
    )
    raise AuthorizationError(action, required)


__all__ = ["Identity", "Principal", "authorize"]
