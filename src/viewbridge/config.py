# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Runtime configuration for ViewBridge."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


StyleProcessor = Callable[[str], str]


@dataclass(slots=True)
class ViewBridgeConfig:
    """Settings shared by rendering and the HTTP adapter.

    Attributes:
        update_path: Route prefix of the update endpoint; the view name is
            appended as the last path segment.
        component_path: Route prefix serving component scripts.
        register_page: Emit ``this.$registerPage(this)`` in page ``created``
            hooks so the client runtime can track the active page.
        style_processor: Transforms raw style text (e.g. a LESS compiler)
            before it is injected.  ``None`` injects the text unchanged.
        max_upload_bytes: Reject update requests whose attachments exceed
            this total size.  ``None`` disables the check.
    """

    update_path: str = "/_viewbridge/update"
    component_path: str = "/_viewbridge/component"
    register_page: bool = True
    style_processor: StyleProcessor | None = None
    max_upload_bytes: int | None = None


__all__ = ["StyleProcessor", "ViewBridgeConfig"]
