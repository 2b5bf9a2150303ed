# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""ViewBridge: stateless server-backed view models for reactive clients."""

from __future__ import annotations

from .action import action, post_script, pre_script, roles, watch
from .authorization import Identity, Principal
from .config import ViewBridgeConfig
from .descriptor import BehaviorDescriptor, build_descriptor
from .diff import ChangeSet, diff
from .dispatch import dispatch
from .errors import AuthorizationError, CoercionError, DefinitionError, PayloadError, ViewBridgeError
from .fields import Computed, UploadedFile, computed, field, prop
from .render import render_component, render_page
from .script import ScriptBuilder
from .snapshot import populate, serialize
from .update import UpdateRequest, run_update
from .viewmodel import ViewModel


__all__ = [
    "ViewModel",
    "action",
    "roles",
    "pre_script",
    "post_script",
    "watch",
    "field",
    "prop",
    "computed",
    "Computed",
    "UploadedFile",
    "Identity",
    "Principal",
    "ViewBridgeConfig",
    "BehaviorDescriptor",
    "build_descriptor",
    "render_page",
    "render_component",
    "ScriptBuilder",
    "serialize",
    "populate",
    "dispatch",
    "diff",
    "ChangeSet",
    "UpdateRequest",
    "run_update",
    "ViewBridgeError",
    "DefinitionError",
    "AuthorizationError",
    "CoercionError",
    "PayloadError",
]
