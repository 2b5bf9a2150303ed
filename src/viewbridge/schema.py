# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""One-time resolution of view-model types.

:func:`resolve_schema` turns a :class:`~viewbridge.ViewModel` subclass into a
:class:`ViewModelSchema`: its data fields (with their pydantic adapters),
declared props, computed entries, client actions and watchers.  Every
registration error is raised here as :class:`~viewbridge.errors.DefinitionError`
so misconfigured types fail on first use rather than mid-request.

Schemas depend only on the type, so they are cached process-wide.  Two
requests resolving the same type concurrently build equal schemas; whichever
lands in the cache first is kept.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
import inspect
import types as pytypes
from typing import TYPE_CHECKING, Any, ClassVar, Literal, Union, get_args, get_origin, get_type_hints

from pydantic import TypeAdapter
from pydantic.errors import PydanticSchemaGenerationError

from .action import MethodMeta, extract_method_meta
from .errors import DefinitionError
from .fields import (
    MISSING,
    Computed,
    FieldInfo,
    is_attachment,
    is_attachment_list,
    is_single_attachment,
    strip_optional,
)
from .utils import get_logger


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .viewmodel import ViewModel


WATCH_SUFFIX = "_watch"
CREATED_HOOK = "on_created"

ParameterKind = Literal["value", "file", "files"]

_logger = get_logger("viewbridge.schema")


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Resolved data field."""

    name: str
    annotation: Any
    info: FieldInfo
    adapter: TypeAdapter[Any] | None

    @property
    def prop(self) -> str | None:
        return self.info.prop

    @property
    def is_attachment(self) -> bool:
        return self.adapter is None


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    """One parameter of a dispatchable method, in declaration order."""

    name: str
    annotation: Any
    kind: ParameterKind
    default: Any = MISSING
    positional_only: bool = False
    adapter: TypeAdapter[Any] | None = None
    enum_type: type[Enum] | None = None
    text_target: bool = False

    @property
    def required(self) -> bool:
        return self.default is MISSING

    @property
    def is_attachment(self) -> bool:
        return self.kind != "value"


@dataclass(frozen=True, slots=True)
class ActionSpec:
    """Dispatch metadata for one client-callable method."""

    name: str
    method_name: str
    parameters: tuple[ParameterSpec, ...]
    roles: tuple[str, ...] = ()
    pre_script: str = ""
    post_script: str = ""

    @property
    def value_parameters(self) -> tuple[ParameterSpec, ...]:
        return tuple(p for p in self.parameters if not p.is_attachment)

    @property
    def attachment_parameter(self) -> ParameterSpec | None:
        return next((p for p in self.parameters if p.is_attachment), None)


@dataclass(frozen=True, slots=True)
class WatchSpec:
    field: str
    method_name: str
    pre_script: str = ""


@dataclass(frozen=True, slots=True)
class ViewModelSchema:
    """Registration data of one view-model type."""

    model: type
    fields: Mapping[str, FieldSpec]
    computed: tuple[str, ...]
    actions: Mapping[str, ActionSpec]
    watchers: tuple[WatchSpec, ...]
    handlers: Mapping[str, ActionSpec]
    has_created_hook: bool

    @property
    def props(self) -> tuple[FieldSpec, ...]:
        return tuple(spec for spec in self.fields.values() if spec.prop is not None)


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

_SCHEMA_CACHE: dict[type, ViewModelSchema] = {}


def resolve_schema(model: type[ViewModel]) -> ViewModelSchema:
    """Return the cached schema for ``model``, resolving it on first use."""
    cached = _SCHEMA_CACHE.get(model)
    if cached is not None:
        return cached
    schema = _build_schema(model)
    return _SCHEMA_CACHE.setdefault(model, schema)


def clear_schema_cache() -> None:
    _SCHEMA_CACHE.clear()


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _build_schema(model: type[ViewModel]) -> ViewModelSchema:
    from .viewmodel import ViewModel

    if not (inspect.isclass(model) and issubclass(model, ViewModel)):
        raise DefinitionError(f"{model!r} is not a ViewModel subclass")

    reserved = {name for name in dir(ViewModel) if not name.startswith("__")}
    members = _class_members(model, stop=ViewModel)

    try:
        hints = get_type_hints(model, include_extras=True)
    except Exception as exc:
        raise DefinitionError(f"Unable to resolve annotations of {model.__qualname__}: {exc}") from exc

    computed: list[str] = [name for name, value in members.items() if isinstance(value, Computed)]
    fields: dict[str, FieldSpec] = {}

    for name, annotation in hints.items():
        if name.startswith("_") or get_origin(annotation) is ClassVar or annotation is ClassVar:
            continue
        if annotation is Computed or isinstance(members.get(name), Computed):
            if name not in computed:
                raise DefinitionError(f"Computed field {model.__qualname__}.{name} needs a Computed(...) value")
            continue
        if name in reserved:
            raise DefinitionError(f"Field name {name!r} on {model.__qualname__} is reserved by ViewModel")
        fields[name] = _build_field(model, name, annotation, members.get(name, MISSING))

    _check_props(model, fields)

    actions: dict[str, ActionSpec] = {}
    handlers: dict[str, ActionSpec] = {}
    watchers: list[WatchSpec] = []

    for attr, value in members.items():
        if not inspect.isfunction(value) or attr.startswith("_"):
            continue
        meta = extract_method_meta(value)
        watch_field = _watch_field(attr, meta)
        is_action = meta is not None and meta.is_action
        if not is_action and watch_field is None:
            continue

        spec = _build_action(model, attr, value, meta or MethodMeta())
        if is_action:
            if spec.name.startswith("_"):
                raise DefinitionError(f"Action name {spec.name!r} on {model.__qualname__} must be public")
            if spec.name in actions:
                raise DefinitionError(
                    f"Action name {spec.name!r} is declared twice on {model.__qualname__};"
                    " action names must be unique per view model"
                )
            actions[spec.name] = spec
            _add_handler(model, handlers, spec.name, spec)
        if watch_field is not None:
            if watch_field not in fields:
                raise DefinitionError(
                    f"Watcher {model.__qualname__}.{attr} targets unknown data field {watch_field!r}"
                )
            watchers.append(WatchSpec(field=watch_field, method_name=attr, pre_script=spec.pre_script))
            if not is_action or spec.name != attr:
                _add_handler(model, handlers, attr, spec)

    has_created_hook = getattr(model, CREATED_HOOK) is not getattr(ViewModel, CREATED_HOOK)
    if has_created_hook and CREATED_HOOK not in handlers:
        hook = getattr(model, CREATED_HOOK)
        handlers[CREATED_HOOK] = _build_action(model, CREATED_HOOK, hook, extract_method_meta(hook) or MethodMeta())

    schema = ViewModelSchema(
        model=model,
        fields=pytypes.MappingProxyType(fields),
        computed=tuple(computed),
        actions=pytypes.MappingProxyType(actions),
        watchers=tuple(watchers),
        handlers=pytypes.MappingProxyType(handlers),
        has_created_hook=has_created_hook,
    )
    _logger.debug(
        "resolved view model %s",
        model.__qualname__,
        extra={
            "event": "schema.resolve",
            "fields": list(fields),
            "actions": list(actions),
            "watchers": [w.method_name for w in watchers],
        },
    )
    return schema


def _class_members(model: type, *, stop: type) -> dict[str, Any]:
    """Merge class namespaces of ``model``'s MRO, skipping ``stop`` and its bases."""
    skip = set(stop.__mro__)
    members: dict[str, Any] = {}
    for klass in reversed(model.__mro__):
        if klass in skip:
            continue
        members.update(vars(klass))
    return members


def _build_field(model: type, name: str, annotation: Any, default: Any) -> FieldSpec:
    if isinstance(default, FieldInfo):
        info = default
    elif default is MISSING or inspect.isfunction(default):
        info = FieldInfo()
    else:
        info = FieldInfo(default=default)

    if is_attachment(annotation):
        return FieldSpec(name=name, annotation=annotation, info=info, adapter=None)

    try:
        adapter: TypeAdapter[Any] = TypeAdapter(annotation)
    except PydanticSchemaGenerationError as exc:
        raise DefinitionError(
            f"Field {model.__qualname__}.{name} has a type that cannot be serialized: {annotation!r}"
        ) from exc
    return FieldSpec(name=name, annotation=annotation, info=info, adapter=adapter)


def _check_props(model: type, fields: Mapping[str, FieldSpec]) -> None:
    seen: dict[str, str] = {}
    for spec in fields.values():
        external = spec.prop
        if external is None:
            continue
        if external == spec.name:
            raise DefinitionError(
                f"Prop name {external!r} on {model.__qualname__} must be different from the view model field"
            )
        if external in fields:
            raise DefinitionError(f"Prop name {external!r} on {model.__qualname__} collides with a data field")
        if external in seen:
            raise DefinitionError(
                f"Prop name {external!r} on {model.__qualname__} is used by both {seen[external]!r} and {spec.name!r}"
            )
        seen[external] = spec.name


def _watch_field(attr: str, meta: MethodMeta | None) -> str | None:
    if meta is not None and meta.watch_field is not None:
        return meta.watch_field
    if len(attr) > len(WATCH_SUFFIX) and attr.lower().endswith(WATCH_SUFFIX):
        return attr[: -len(WATCH_SUFFIX)]
    return None


def _add_handler(model: type, handlers: dict[str, ActionSpec], name: str, spec: ActionSpec) -> None:
    existing = handlers.get(name)
    if existing is not None and existing.method_name != spec.method_name:
        raise DefinitionError(f"Handler name {name!r} on {model.__qualname__} is ambiguous")
    handlers[name] = spec


def _build_action(model: type, attr: str, fn: Any, meta: MethodMeta) -> ActionSpec:
    name = meta.name or attr
    signature = inspect.signature(fn)
    try:
        hints = get_type_hints(fn, include_extras=True)
    except Exception as exc:
        raise DefinitionError(f"Unable to resolve annotations of {model.__qualname__}.{attr}: {exc}") from exc

    parameters: list[ParameterSpec] = []
    attachments = 0
    for index, (pname, param) in enumerate(signature.parameters.items()):
        if index == 0:
            continue  # self
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            raise DefinitionError(f"Action {model.__qualname__}.{attr} cannot declare *args or **kwargs")

        annotation = hints.get(pname, param.annotation)
        default = MISSING if param.default is inspect.Parameter.empty else param.default
        positional_only = param.kind is inspect.Parameter.POSITIONAL_ONLY

        if is_single_attachment(annotation) or is_attachment_list(annotation):
            attachments += 1
            if attachments > 1:
                raise DefinitionError(f"Action {model.__qualname__}.{attr} declares more than one attachment parameter")
            kind: ParameterKind = "files" if is_attachment_list(annotation) else "file"
            parameters.append(
                ParameterSpec(
                    name=pname, annotation=annotation, kind=kind, default=default, positional_only=positional_only
                )
            )
            continue

        adapter = None
        if annotation is not inspect.Parameter.empty:
            try:
                adapter = TypeAdapter(annotation)
            except PydanticSchemaGenerationError as exc:
                raise DefinitionError(
                    f"Parameter {pname!r} of {model.__qualname__}.{attr} has an unsupported type {annotation!r}"
                ) from exc
        parameters.append(
            ParameterSpec(
                name=pname,
                annotation=annotation,
                kind="value",
                default=default,
                positional_only=positional_only,
                adapter=adapter,
                enum_type=_enum_target(annotation),
                text_target=strip_optional(annotation) is str,
            )
        )

    return ActionSpec(
        name=name,
        method_name=attr,
        parameters=tuple(parameters),
        roles=tuple(dict.fromkeys(meta.roles)),
        pre_script="\n".join(meta.pre_scripts),
        post_script="\n".join(meta.post_scripts),
    )


def _enum_target(annotation: Any) -> type[Enum] | None:
    """Return the enum type behind ``annotation`` (``E`` or ``E | None``)."""
    if inspect.isclass(annotation) and issubclass(annotation, Enum):
        return annotation
    if get_origin(annotation) in (Union, pytypes.UnionType):
        candidates = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(candidates) == 1:
            return _enum_target(candidates[0])
    return None


__all__ = [
    "WATCH_SUFFIX",
    "ActionSpec",
    "FieldSpec",
    "ParameterSpec",
    "ViewModelSchema",
    "WatchSpec",
    "clear_schema_cache",
    "resolve_schema",
]
