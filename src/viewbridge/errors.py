# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Error taxonomy for ViewBridge.

* :class:`DefinitionError` – static misconfiguration of a view-model type.
  Raised when the type is first resolved and never recoverable per request.
* :class:`AuthorizationError` – the caller lacks a role required by an action.
* :class:`CoercionError` – a client argument token cannot be converted into
  the declared parameter type.
* :class:`PayloadError` – the update request itself is malformed.
"""

from __future__ import annotations

from collections.abc import Iterable


class ViewBridgeError(Exception):
    """Base class for every error raised by ViewBridge."""


class DefinitionError(ViewBridgeError):
    """Raised when a view-model definition violates registration rules."""


class AuthorizationError(ViewBridgeError):
    """Raised when the caller may not invoke an action."""

    def __init__(self, action: str, roles: Iterable[str] = ()) -> None:
        self.action = action
        self.roles = tuple(roles)
        super().__init__(f"Access denied on {action} method")


class CoercionError(ViewBridgeError):
    """Raised when an argument token does not fit the target parameter."""

    def __init__(self, action: str, parameter: str, reason: str) -> None:
        self.action = action
        self.parameter = parameter
        self.reason = reason
        super().__init__(f"Invalid argument {parameter!r} for {action}: {reason}")


class PayloadError(ViewBridgeError):
    """Raised when an update request payload cannot be parsed."""


__all__ = [
    "ViewBridgeError",
    "DefinitionError",
    "AuthorizationError",
    "CoercionError",
    "PayloadError",
]
