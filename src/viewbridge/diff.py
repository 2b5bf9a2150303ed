# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Top-level change detection between two snapshots."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .script import ScriptBuilder


@dataclass(slots=True)
class ChangeSet:
    """Fields the client must overwrite, plus script to run afterwards."""

    update: dict[str, Any] = field(default_factory=dict)
    js: str = ""

    def __bool__(self) -> bool:
        return bool(self.update) or bool(self.js)

    def to_payload(self) -> dict[str, Any]:
        return {"update": self.update, "js": self.js}


def is_empty(value: Any) -> bool:
    """``null`` and empty strings, arrays and objects count as empty."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def json_equal(left: Any, right: Any) -> bool:
    """Structural equality of JSON values.

    Unlike ``==``, booleans never equal numbers (``true != 1``).
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if left.keys() != right.keys():
            return False
        return all(json_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(json_equal(a, b) for a, b in zip(left, right))
    if type(left) is not type(right):
        return False
    return left == right


def diff(
    prior: Mapping[str, Any],
    posterior: Mapping[str, Any],
    script: str | ScriptBuilder = "",
) -> ChangeSet:
    """Return the top-level fields of ``posterior`` that differ from ``prior``.

    A key missing from ``prior`` is reported only when its new value is not
    empty.  Keys that exist only in ``prior`` are never reported.  Nested
    values are compared whole and sent whole.

    When ``script`` is a :class:`ScriptBuilder` it is flushed into the
    change set.
    """
    if isinstance(script, ScriptBuilder):
        script = script.flush()

    update: dict[str, Any] = {}
    for key, value in posterior.items():
        if key not in prior:
            if not is_empty(value):
                update[key] = value
            continue
        if not json_equal(prior[key], value):
            update[key] = value
    return ChangeSet(update=update, js=script)


__all__ = ["ChangeSet", "diff", "is_empty", "json_equal"]
