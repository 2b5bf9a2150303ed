# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Member declaration helpers for view models.

Data fields are plain class annotations on a :class:`~viewbridge.ViewModel`
subclass.  The helpers here attach the extra information a bare default cannot
carry::

    class Profile(ViewModel):
        tags: list[str] = field(default_factory=list)
        name: str | None = prop("title", default=None)
        label = computed("function(vm) { return vm.name + '!'; }")

        @action()
        def upload(self, caption: str, picture: UploadedFile) -> None: ...
"""

from __future__ import annotations

from collections.abc import Callable
import copy
from dataclasses import dataclass
import types
from typing import Any, Union, get_args, get_origin


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """Binary attachment submitted alongside an update request."""

    filename: str
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def strip_optional(annotation: Any) -> Any:
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def is_single_attachment(annotation: Any) -> bool:
    return strip_optional(annotation) is UploadedFile


def is_attachment_list(annotation: Any) -> bool:
    annotation = strip_optional(annotation)
    origin = get_origin(annotation)
    if origin not in (list, tuple):
        return False
    args = get_args(annotation)
    return bool(args) and args[0] is UploadedFile


def is_attachment(annotation: Any) -> bool:
    return is_single_attachment(annotation) or is_attachment_list(annotation)


# ---------------------------------------------------------------------------
# Computed expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Computed:
    """Client-evaluated expression.

    ``code`` must be a JavaScript function expression accepting the component
    instance, e.g. ``"function(vm) { return vm.count * 2; }"``.
    """

    code: str


def computed(code: str) -> Computed:
    return Computed(code)


# ---------------------------------------------------------------------------
# Data fields
# ---------------------------------------------------------------------------


class FieldInfo:
    """Class-level marker produced by :func:`field` and :func:`prop`."""

    __slots__ = ("default", "default_factory", "prop")

    def __init__(
        self,
        *,
        default: Any = MISSING,
        default_factory: Callable[[], Any] | None = None,
        prop: str | None = None,
    ) -> None:
        if default is not MISSING and default_factory is not None:
            raise ValueError("cannot specify both default and default_factory")
        self.default = default
        self.default_factory = default_factory
        self.prop = prop

    def make_default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is MISSING:
            return None
        return copy.deepcopy(self.default)

    def __repr__(self) -> str:
        return f"FieldInfo(default={self.default!r}, prop={self.prop!r})"


def field(*, default: Any = MISSING, default_factory: Callable[[], Any] | None = None) -> Any:
    """Declare a data field with an explicit default or factory."""
    return FieldInfo(default=default, default_factory=default_factory)


def prop(
    name: str,
    *,
    default: Any = MISSING,
    default_factory: Callable[[], Any] | None = None,
) -> Any:
    """Declare a data field sourced from the parent input called ``name``.

    The external name must differ from the field name; this is checked when
    the view-model type is resolved.
    """
    if not name:
        raise ValueError("prop name must be a non-empty string")
    return FieldInfo(default=default, default_factory=default_factory, prop=name)


__all__ = [
    "MISSING",
    "Computed",
    "FieldInfo",
    "UploadedFile",
    "computed",
    "field",
    "prop",
    "is_attachment",
    "is_attachment_list",
    "is_single_attachment",
    "strip_optional",
]
