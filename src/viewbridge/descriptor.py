# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Behavior descriptors consumed by the client reactive runtime.

:func:`build_descriptor` combines a view model's cached schema with its
current data into a frozen :class:`BehaviorDescriptor`.  Turning the
descriptor into script text is :mod:`viewbridge.render`'s job.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import types as pytypes
from typing import TYPE_CHECKING, Any

from .config import ViewBridgeConfig
from .fields import Computed
from .snapshot import serialize
from .utils import get_logger


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .viewmodel import ViewModel


_logger = get_logger("viewbridge.descriptor")


@dataclass(frozen=True, slots=True)
class MethodEntry:
    """Client wrapper for one action.

    ``parameters`` lists every declared parameter; ``arguments`` only those
    sent as tokens.  ``upload`` names the attachment parameter, if any.
    """

    name: str
    parameters: tuple[str, ...]
    arguments: tuple[str, ...]
    upload: str | None = None
    pre_script: str = ""
    post_script: str = ""


@dataclass(frozen=True, slots=True)
class WatchEntry:
    field: str
    method: str
    pre_script: str = ""


@dataclass(frozen=True, slots=True)
class PropEntry:
    field: str
    name: str


@dataclass(frozen=True, slots=True)
class BehaviorDescriptor:
    template: str
    data: Mapping[str, Any]
    methods: tuple[MethodEntry, ...]
    computed: Mapping[str, str]
    watch: tuple[WatchEntry, ...]
    props: tuple[PropEntry, ...] = ()
    style: str | None = None
    style_error: str | None = None
    mixin: str | None = None
    component: bool = False
    calls_created: bool = False


def build_descriptor(
    instance: ViewModel,
    *,
    template: str = "",
    style: str | None = None,
    mixin: str | None = None,
    component: bool = False,
    config: ViewBridgeConfig | None = None,
) -> BehaviorDescriptor:
    """Describe ``instance`` for the client runtime.

    Args:
        instance: View model whose current data seeds the ``data`` factory.
        template: Markup handed to the client runtime verbatim.
        style: Optional style text, passed through
            :attr:`ViewBridgeConfig.style_processor`.
        mixin: Optional script body returning a mixin object.
        component: Describe an embeddable component: prop-fed fields are
            dropped from ``data`` and props are listed.
        config: Rendering configuration.
    """
    config = config or ViewBridgeConfig()
    schema = instance.schema()

    methods = tuple(
        MethodEntry(
            name=spec.name,
            parameters=tuple(p.name for p in spec.parameters),
            arguments=tuple(p.name for p in spec.value_parameters),
            upload=spec.attachment_parameter.name if spec.attachment_parameter else None,
            pre_script=spec.pre_script,
            post_script=spec.post_script,
        )
        for spec in schema.actions.values()
    )

    computed: dict[str, str] = {}
    for name in schema.computed:
        value = getattr(instance, name)
        computed[name] = value.code if isinstance(value, Computed) else str(value)

    watch = tuple(WatchEntry(field=w.field, method=w.method_name, pre_script=w.pre_script) for w in schema.watchers)

    props: tuple[PropEntry, ...] = ()
    if component:
        props = tuple(PropEntry(field=spec.name, name=spec.prop) for spec in schema.props if spec.prop)

    processed_style, style_error = _process_style(style, config)

    return BehaviorDescriptor(
        template=template,
        data=pytypes.MappingProxyType(serialize(instance, include_props=not component)),
        methods=methods,
        computed=pytypes.MappingProxyType(computed),
        watch=watch,
        props=props,
        style=processed_style,
        style_error=style_error,
        mixin=mixin or None,
        component=component,
        calls_created=component and schema.has_created_hook,
    )


def _process_style(style: str | None, config: ViewBridgeConfig) -> tuple[str | None, str | None]:
    if not style or not style.strip():
        return None, None
    if config.style_processor is None:
        return style, None
    try:
        return config.style_processor(style), None
    except Exception as exc:  # degrade to a client-side alert instead of failing the render
        _logger.warning(
            "style processing failed",
            extra={"event": "descriptor.style_error", "reason": str(exc)},
        )
        return None, str(exc)


__all__ = ["BehaviorDescriptor", "MethodEntry", "PropEntry", "WatchEntry", "build_descriptor"]
