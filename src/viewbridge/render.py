# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""Script emission for pages and components.

Generated method wrappers call ``this.$update(name, args, files, vm)``, which
the client runtime implements as a POST to the update endpoint returning a
promise of the component.  Watch handlers return early while
``this.$updating`` is set so server-applied changes do not echo back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import ViewBridgeConfig
from .descriptor import BehaviorDescriptor, MethodEntry, WatchEntry, build_descriptor
from .schema import CREATED_HOOK
from .script import js_literal, js_string


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .viewmodel import ViewModel


JS_RESERVED = frozenset(
    {
        "arguments", "case", "catch", "const", "debugger", "default", "delete", "do", "enum",
        "eval", "export", "extends", "function", "instanceof", "let", "new", "switch", "this",
        "throw", "typeof", "var", "void", "super", "static", "implements", "interface",
        "package", "private", "protected", "public", "null", "true", "false",
    }
)  # fmt: skip


def _js_name(name: str) -> str:
    return f"{name}_" if name in JS_RESERVED else name


def render_method(entry: MethodEntry) -> str:
    params = ", ".join(_js_name(p) for p in entry.parameters)
    arguments = ", ".join(_js_name(a) for a in entry.arguments)
    upload = _js_name(entry.upload) if entry.upload else "null"
    pre = f"{entry.pre_script}\n      " if entry.pre_script else ""
    post = ""
    if entry.post_script:
        post = f".then(function(vm) {{ (function() {{ {entry.post_script} }}).call(vm); return vm; }})"
    return (
        f"{js_string(entry.name)}: function({params}) {{\n"
        f"      {pre}return this.$update({js_string(entry.name)}, [{arguments}], {upload}, this){post};\n"
        f"    }}"
    )


def render_watch(entry: WatchEntry) -> str:
    pre = f"{entry.pre_script}\n        " if entry.pre_script else ""
    return (
        f"{js_string(entry.field)}: {{\n"
        f"      handler: function(v, o) {{\n"
        f"        if (this.$updating) return false;\n"
        f"        {pre}this.$update({js_string(entry.method)}, [v, o], null, this);\n"
        f"      }},\n"
        f"      deep: true\n"
        f"    }}"
    )


def render_computed(name: str, code: str) -> str:
    return f"{js_string(name)}: function() {{\n      return ({code})(this);\n    }}"


def _block(key: str, entries: list[str]) -> str:
    return f"  {key}: {{\n    " + ",\n    ".join(entries) + "\n  }"


def render_body(descriptor: BehaviorDescriptor) -> list[str]:
    """Return the option entries shared by page and component scripts."""
    body = [
        f"  template: {js_string(descriptor.template)}",
        f"  data: function() {{ return {js_literal(dict(descriptor.data))}; }}",
    ]
    if descriptor.methods:
        body.append(_block("methods", [render_method(m) for m in descriptor.methods]))
    if descriptor.computed:
        body.append(_block("computed", [render_computed(n, c) for n, c in descriptor.computed.items()]))
    if descriptor.watch:
        body.append(_block("watch", [render_watch(w) for w in descriptor.watch]))
    if descriptor.style is not None:
        body.append(f"  beforeCreate: function() {{ this.$addStyle({js_string(descriptor.style)}); }}")
    elif descriptor.style_error is not None:
        body.append(f"  beforeCreate: function() {{ alert({js_string(descriptor.style_error)}); }}")
    if descriptor.mixin:
        body.append(f"  mixins: [(function() {{ {descriptor.mixin} }})() || {{}}]")
    return body


def render_page(
    instance: ViewModel,
    element_id: str,
    *,
    template: str = "",
    style: str | None = None,
    mixin: str | None = None,
    config: ViewBridgeConfig | None = None,
) -> str:
    """Render ``instance`` as a root instance mounted on ``#element_id``.

    ``on_created`` runs first so any script it queues lands in ``mounted``.
    """
    config = config or ViewBridgeConfig()
    instance.on_created()
    descriptor = build_descriptor(instance, template=template, style=style, mixin=mixin, config=config)
    script = instance.js.flush()

    entries: list[str] = []
    if config.register_page:
        entries.append("  created: function() {\n    this.$registerPage(this);\n  }")
    if script:
        entries.append(f"  mounted: function() {{\n{script}\n  }}")
    entries.extend(render_body(descriptor))

    return "new Vue({\n" + ",\n".join(entries) + f"\n}}).$mount({js_string('#' + element_id)});"


def render_component(
    instance: ViewModel,
    vpath: str,
    *,
    template: str = "",
    style: str | None = None,
    mixin: str | None = None,
    config: ViewBridgeConfig | None = None,
) -> str:
    """Render ``instance`` as a component options factory body.

    The ``created`` hook copies each prop into its backing field, runs queued
    script, and asks the server to run ``on_created`` when it is overridden.
    """
    descriptor = build_descriptor(
        instance, template=template, style=style, mixin=mixin, component=True, config=config
    )
    script = instance.js.flush()

    created = [f"    this.{p.field} = this.{p.name};" for p in descriptor.props]
    if script:
        created.append(script)
    if descriptor.calls_created:
        created.append(f"    this.$update({js_string(CREATED_HOOK)}, [], null, this);")

    entries = [
        f"  vpath: {js_string(vpath)}",
        f"  props: [{', '.join(js_string(p.name) for p in descriptor.props)}]",
        "  created: function() {\n" + "\n".join(created) + "\n  }",
    ]
    entries.extend(render_body(descriptor))

    return "return {\n" + ",\n".join(entries) + "\n}\n"


__all__ = ["render_body", "render_component", "render_computed", "render_method", "render_page", "render_watch"]
