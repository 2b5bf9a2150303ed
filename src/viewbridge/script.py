# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Append-only accumulator of client-side statements.

Each view model owns one :class:`ScriptBuilder`.  Fragments are concatenated
in append order and handed to the client once per render or update cycle.
"""

from __future__ import annotations

import json
from typing import Any


def js_literal(value: Any) -> str:
    """Encode a JSON-compatible value as a JavaScript literal safe inside <script>."""
    return json.dumps(value, ensure_ascii=False).replace("</", "<\\/")


def js_string(value: Any) -> str:
    """Encode ``value`` as a JavaScript string literal."""
    return js_literal(str(value))


class ScriptBuilder:
    """Collects JavaScript fragments until :meth:`flush` is called."""

    __slots__ = ("_parts",)

    def __init__(self) -> None:
        self._parts: list[str] = []

    def __len__(self) -> int:
        return sum(len(part) for part in self._parts)

    def __str__(self) -> str:
        return "".join(self._parts)

    def __repr__(self) -> str:
        return f"ScriptBuilder({str(self)!r})"

    def code(self, fragment: str, *args: Any) -> ScriptBuilder:
        """Append a raw fragment, formatting it with ``args`` when given."""
        self._parts.append(fragment.format(*args) if args else fragment)
        return self

    def console_log(self, text: str) -> ScriptBuilder:
        return self.code(f"console.log({js_string(text)});")

    def alert(self, text: str) -> ScriptBuilder:
        return self.code(f"alert({js_string(text)});")

    def focus(self, element_id: str) -> ScriptBuilder:
        """Focus an element in the active page; errors are ignored client side."""
        selector = js_string(f".vue-page-active #{element_id}")
        return self.code(
            f"try {{ var f = document.querySelector({selector}); if (f) {{ f.focus(); }} }} catch (e) {{ }}"
        )

    def navigate_to(self, url: str) -> ScriptBuilder:
        return self.code(f"navToPage({js_string(url)});")

    def redirect_to(self, url: str) -> ScriptBuilder:
        return self.code(f"location.href = {js_string(url)};")

    def flush(self) -> str:
        """Return the accumulated script and clear the builder."""
        text = "".join(self._parts)
        self._parts.clear()
        return text


__all__ = ["ScriptBuilder", "js_literal", "js_string"]
