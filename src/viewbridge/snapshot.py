# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Snapshot serialization for view-model data fields.

A snapshot is the JSON-compatible mapping of every data field of an instance.
Fields holding ``None`` are kept as explicit ``null`` so the diff engine can
tell an absent key from an empty one.  Computed entries, actions and
attachment fields never appear.

:func:`populate` replaces each submitted field wholesale with a freshly
validated value; nothing from the server-side default survives inside a
nested object.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .errors import PayloadError
from .utils import get_logger


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .viewmodel import ViewModel


Snapshot = dict[str, Any]

_logger = get_logger("viewbridge.snapshot")


def serialize(instance: ViewModel, *, include_props: bool = True) -> Snapshot:
    """Return the data-field snapshot of ``instance``.

    Args:
        instance: View model to read.
        include_props: When ``False`` (component rendering), fields fed by a
            parent prop are left out because the parent supplies them.
    """
    snapshot: Snapshot = {}
    for name, spec in instance.schema().fields.items():
        if spec.adapter is None:
            continue
        if spec.prop is not None and not include_props:
            continue
        value = getattr(instance, name, None)
        snapshot[name] = spec.adapter.dump_python(value, mode="json")
    return snapshot


def populate(instance: ViewModel, snapshot: Mapping[str, Any]) -> None:
    """Overwrite the data fields of ``instance`` with values from ``snapshot``.

    Keys that are not data fields of the instance are ignored.

    Raises:
        PayloadError: If a submitted value does not validate against its
            field type.
    """
    if not isinstance(snapshot, Mapping):
        raise PayloadError("snapshot must be a JSON object")

    fields = instance.schema().fields
    for key, raw in snapshot.items():
        spec = fields.get(key)
        if spec is None or spec.adapter is None:
            _logger.debug("ignoring snapshot key %r", key, extra={"event": "snapshot.ignore"})
            continue
        try:
            value = spec.adapter.validate_python(raw)
        except ValidationError as exc:
            raise PayloadError(f"snapshot field {key!r} is invalid: {exc.errors(include_url=False)}") from exc
        setattr(instance, key, value)


__all__ = ["Snapshot", "serialize", "populate"]
