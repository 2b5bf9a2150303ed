# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""HTTP hosting surface for ViewBridge.

The heavy lifting lives in :mod:`viewbridge.update`; this package only adapts
it to Starlette routes.
"""

from __future__ import annotations

from .app import IdentityResolver, ViewBridgeApp, ViewEntry


__all__ = ["IdentityResolver", "ViewBridgeApp", "ViewEntry"]
