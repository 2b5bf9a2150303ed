# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Stateless update round trip.

The client posts its current snapshot together with an action name, argument
tokens and optional files.  :func:`run_update` rebuilds a fresh instance,
applies the snapshot, runs the action and returns the top-level fields that
changed along with any queued script.

If dispatch fails for any reason the error propagates and no change set is
produced, so state applied by :func:`~viewbridge.snapshot.populate` never
leaks back to the client.
"""

from __future__ import annotations

from collections.abc import Mapping
import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, InstanceOf, ValidationError, field_validator

from .authorization import Principal
from .config import ViewBridgeConfig
from .diff import ChangeSet, diff
from .dispatch import dispatch
from .errors import PayloadError
from .fields import UploadedFile
from .snapshot import populate, serialize
from .utils import get_logger
from .viewmodel import ViewModel


_logger = get_logger("viewbridge.update")


class UpdateRequest(BaseModel):
    """Payload of one update request.

    ``snapshot`` and ``parameters`` accept either decoded JSON or JSON text,
    matching what browsers send in multipart form fields.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    snapshot: dict[str, Any] = Field(default_factory=dict)
    method: str = Field(min_length=1)
    parameters: list[Any] = Field(default_factory=list)
    files: list[InstanceOf[UploadedFile]] = Field(default_factory=list)

    @field_validator("snapshot", "parameters", mode="before")
    @classmethod
    def _decode_json_text(cls, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            try:
                return json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError(f"invalid JSON: {exc.msg}") from exc
        return value

    @classmethod
    def parse(cls, payload: Mapping[str, Any]) -> UpdateRequest:
        """Validate ``payload``, raising :class:`PayloadError` on failure."""
        try:
            return cls.model_validate(dict(payload))
        except ValidationError as exc:
            raise PayloadError(f"invalid update request: {exc.errors(include_url=False)}") from exc


def run_update(
    model: type[ViewModel],
    request: UpdateRequest | Mapping[str, Any],
    *,
    principal: Principal | None = None,
    config: ViewBridgeConfig | None = None,
) -> ChangeSet:
    """Apply one client action to a fresh ``model`` instance.

    Raises:
        PayloadError: Malformed payload or oversized attachments.
        DefinitionError: ``model`` is misconfigured or the action is unknown.
        AuthorizationError: ``principal`` may not run the action.
        CoercionError: Argument tokens do not fit the action's parameters.
    """
    if not isinstance(request, UpdateRequest):
        request = UpdateRequest.parse(request)
    config = config or ViewBridgeConfig()

    if config.max_upload_bytes is not None:
        total = sum(item.size for item in request.files)
        if total > config.max_upload_bytes:
            raise PayloadError(f"attachments exceed {config.max_upload_bytes} bytes")

    with model(identity=principal) as instance:
        instance.on_init()
        populate(instance, request.snapshot)
        dispatch(instance, request.method, request.parameters, request.files, principal=principal)
        # Prop-fed fields stay in the posterior: an action that changes one
        # must reach the component's local copy.
        change = diff(request.snapshot, serialize(instance), instance.js)

    _logger.debug(
        "update applied",
        extra={
            "event": "update.applied",
            "model": model.__qualname__,
            "action": request.method,
            "changed": sorted(change.update),
        },
    )
    return change


__all__ = ["UpdateRequest", "run_update"]
