# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Action and watcher registration for view models.

Methods become client-callable only through explicit registration.  The
decorators below attach a :class:`MethodMeta` side-table to the function;
:mod:`viewbridge.schema` reads it once per view-model type.

The metadata decorators stack in any order::

    class Admin(ViewModel):
        @action()
        @roles("Admin")
        @pre_script("this.busy = true;")
        @post_script("this.busy = false;")
        def purge(self) -> None: ...

        @watch("query")
        def refresh(self, value: str, old: str) -> None: ...
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar


MethodFn = TypeVar("MethodFn", bound=Callable[..., Any])


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class MethodMeta:
    """Registration data accumulated on a view-model method."""

    is_action: bool = False
    name: str | None = None
    roles: list[str] = field(default_factory=list)
    pre_scripts: list[str] = field(default_factory=list)
    post_scripts: list[str] = field(default_factory=list)
    watch_field: str | None = None


_META_ATTR = "__viewbridge_meta__"


def _meta_for(fn: Callable[..., Any]) -> MethodMeta:
    if not callable(fn):
        raise TypeError("view-model decorators apply to methods")
    meta = getattr(fn, _META_ATTR, None)
    if not isinstance(meta, MethodMeta):
        meta = MethodMeta()
        setattr(fn, _META_ATTR, meta)
    return meta


def _coerce_roles(roles: Iterable[str] | None) -> list[str]:
    if not roles:
        return []
    if isinstance(roles, str):
        roles = [roles]
    return [str(role).strip() for role in roles if str(role).strip()]


def _coerce_scripts(script: str | Iterable[str] | None) -> list[str]:
    if script is None:
        return []
    if isinstance(script, str):
        return [script] if script.strip() else []
    return [item for item in script if item and item.strip()]


# ---------------------------------------------------------------------------
# Decorators
# ---------------------------------------------------------------------------


def action(
    name: str | None = None,
    *,
    roles: Iterable[str] | None = None,
    pre_script: str | Iterable[str] | None = None,
    post_script: str | Iterable[str] | None = None,
) -> Callable[[MethodFn], MethodFn]:
    """Mark a view-model method as callable from the client.

    Args:
        name: Client-facing action name.  Defaults to the method name.
        roles: Roles of which the caller must hold at least one.
        pre_script: Client code run before the update request is sent.
        post_script: Client code run, bound to the component, after the
            update has been applied.
    """

    def decorator(fn: MethodFn) -> MethodFn:
        meta = _meta_for(fn)
        meta.is_action = True
        if name is not None:
            meta.name = name
        meta.roles.extend(_coerce_roles(roles))
        meta.pre_scripts.extend(_coerce_scripts(pre_script))
        meta.post_scripts.extend(_coerce_scripts(post_script))
        return fn

    return decorator


def roles(*names: str) -> Callable[[MethodFn], MethodFn]:
    """Restrict a method to callers holding any of ``names``."""

    def decorator(fn: MethodFn) -> MethodFn:
        _meta_for(fn).roles.extend(_coerce_roles(names))
        return fn

    return decorator


def pre_script(code: str) -> Callable[[MethodFn], MethodFn]:
    def decorator(fn: MethodFn) -> MethodFn:
        _meta_for(fn).pre_scripts.extend(_coerce_scripts(code))
        return fn

    return decorator


def post_script(code: str) -> Callable[[MethodFn], MethodFn]:
    def decorator(fn: MethodFn) -> MethodFn:
        _meta_for(fn).post_scripts.extend(_coerce_scripts(code))
        return fn

    return decorator


def watch(field_name: str) -> Callable[[MethodFn], MethodFn]:
    """Run the decorated method on the server whenever ``field_name`` changes.

    The method receives ``(value, old_value)``.
    """

    if not field_name:
        raise ValueError("watch() requires a field name")

    def decorator(fn: MethodFn) -> MethodFn:
        _meta_for(fn).watch_field = field_name
        return fn

    return decorator


def extract_method_meta(fn: Any) -> MethodMeta | None:
    """Return the attached :class:`MethodMeta` for *fn*, if present."""
    meta = getattr(fn, _META_ATTR, None)
    if not isinstance(meta, MethodMeta):
        return None
    return meta


__all__ = [
    "MethodMeta",
    "action",
    "roles",
    "pre_script",
    "post_script",
    "watch",
    "extract_method_meta",
]
