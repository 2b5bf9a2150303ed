# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Action dispatch: resolution, authorization, argument coercion, invocation.

Arguments arrive as JSON tokens matched positionally to the action's
non-attachment parameters.  Attachment parameters (``UploadedFile`` or
``list[UploadedFile]``) are filled from the uploaded files and never consume a
token.  Each token is classified (:class:`TokenKind`) and converted with the
parameter's pydantic adapter:

* objects and arrays validate into the declared type;
* strings aimed at an :class:`~enum.Enum` resolve by member name;
* numbers and booleans aimed at ``str`` are rendered with :func:`str`;
* everything else goes through pydantic's lax conversion rules.

Invocation happens only after every argument converted cleanly.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .authorization import Principal, authorize
from .errors import CoercionError, DefinitionError
from .fields import UploadedFile
from .schema import ActionSpec, ParameterSpec
from .utils import get_logger


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .viewmodel import ViewModel


_logger = get_logger("viewbridge.dispatch")


class TokenKind(Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def classify_token(token: Any) -> TokenKind:
    """Return the JSON kind of a decoded argument token."""
    if token is None:
        return TokenKind.NULL
    if isinstance(token, bool):
        return TokenKind.BOOLEAN
    if isinstance(token, (int, float)):
        return TokenKind.NUMBER
    if isinstance(token, str):
        return TokenKind.STRING
    if isinstance(token, (list, tuple)):
        return TokenKind.ARRAY
    if isinstance(token, dict):
        return TokenKind.OBJECT
    raise TypeError(f"{type(token).__name__} is not a JSON token")


def resolve_action(instance: ViewModel, name: str) -> ActionSpec:
    """Return the handler registered as ``name`` on the instance's type."""
    spec = instance.schema().handlers.get(name)
    if spec is None:
        raise DefinitionError(
            f"Method {name} does not exist on {type(instance).__qualname__} or is not registered as an action"
        )
    return spec


def coerce_arguments(
    spec: ActionSpec,
    tokens: Sequence[Any],
    attachments: Sequence[UploadedFile] = (),
) -> tuple[list[Any], dict[str, Any]]:
    """Bind ``tokens`` and ``attachments`` to the parameters of ``spec``.

    Returns:
        ``(args, kwargs)`` ready for the bound method.  Positional-only
        parameters go to ``args``; the rest are passed by name.

    Raises:
        CoercionError: If a token cannot be converted or a required
            argument is missing.
    """
    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    index = 0

    for param in spec.parameters:
        if param.kind == "file":
            value: Any = attachments[0] if attachments else None
        elif param.kind == "files":
            value = list(attachments)
        elif index < len(tokens):
            value = _coerce_token(spec.name, param, tokens[index])
            index += 1
        elif not param.required:
            value = param.default
        else:
            raise CoercionError(spec.name, param.name, "missing required argument")

        if param.positional_only:
            args.append(value)
        else:
            kwargs[param.name] = value

    if index < len(tokens):
        _logger.debug(
            "ignoring %d surplus argument(s) for %s",
            len(tokens) - index,
            spec.name,
            extra={"event": "dispatch.surplus_arguments"},
        )
    return args, kwargs


def _coerce_token(action: str, param: ParameterSpec, token: Any) -> Any:
    try:
        kind = classify_token(token)
    except TypeError as exc:
        raise CoercionError(action, param.name, str(exc)) from exc

    if param.adapter is None:
        return token

    if kind is TokenKind.STRING and param.enum_type is not None:
        try:
            return param.enum_type[token]
        except KeyError:
            raise CoercionError(
                action, param.name, f"{token!r} is not a member of {param.enum_type.__name__}"
            ) from None

    if param.text_target and kind in (TokenKind.NUMBER, TokenKind.BOOLEAN):
        return str(token)

    try:
        return param.adapter.validate_python(token)
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        reason = errors[0]["msg"] if errors else str(exc)
        raise CoercionError(action, param.name, f"{reason} (got {kind.value})") from exc


def dispatch(
    instance: ViewModel,
    name: str,
    tokens: Sequence[Any] = (),
    attachments: Sequence[UploadedFile] = (),
    *,
    principal: Principal | None = None,
) -> None:
    """Resolve, authorize, bind and invoke the action ``name`` on ``instance``.

    Raises:
        DefinitionError: If ``name`` is not registered on the type.
        AuthorizationError: If the action requires roles ``principal`` lacks.
        CoercionError: If the arguments do not fit; the action is not called.
    """
    spec = resolve_action(instance, name)
    authorize(spec.name, spec.roles, principal)
    args, kwargs = coerce_arguments(spec, tokens, attachments)

    _logger.debug(
        "dispatching %s.%s",
        type(instance).__qualname__,
        spec.method_name,
        extra={"event": "dispatch.invoke", "action": spec.name, "attachments": len(attachments)},
    )
    instance.on_execute(getattr(instance, spec.method_name), args, kwargs)


__all__ = ["TokenKind", "classify_token", "coerce_arguments", "dispatch", "resolve_action"]
