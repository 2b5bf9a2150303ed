# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/viewbridge-python/LICENSE
# ==============================================================================

"""HTTP hosting for registered view models.

:class:`ViewBridgeApp` keeps a name → view-model registry and exposes two
Starlette routes:

* ``POST {update_path}/{name}`` – the update round trip.  Accepts a multipart
  form (``snapshot``, ``method``, ``parameters`` as JSON text plus ``files``)
  or a JSON body with the same keys, and answers ``{"update", "js"}``.
* ``GET {component_path}/{name}`` – the component script for lazy loading.

Routing, identity and hosting stay with the application; the update itself
runs synchronously in a worker thread.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass
from functools import partial
import inspect
from typing import Any, TypeVar

import anyio.to_thread
from starlette.applications import Starlette
from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from ..authorization import Principal
from ..config import ViewBridgeConfig
from ..diff import ChangeSet
from ..errors import AuthorizationError, CoercionError, DefinitionError, PayloadError
from ..fields import UploadedFile
from ..render import render_component, render_page
from ..update import run_update
from ..utils import get_logger
from ..viewmodel import ViewModel


ModelT = TypeVar("ModelT", bound=type[ViewModel])
IdentityResolver = Callable[[Request], "Principal | None | Awaitable[Principal | None]"]

_FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@dataclass(frozen=True, slots=True)
class ViewEntry:
    """A registered view model and the markup it renders with."""

    name: str
    model: type[ViewModel]
    template: str = ""
    style: str | None = None
    mixin: str | None = None


class ViewBridgeApp:
    """Registry of view models plus their Starlette routes."""

    def __init__(
        self,
        *,
        config: ViewBridgeConfig | None = None,
        identity_resolver: IdentityResolver | None = None,
    ) -> None:
        self.config = config or ViewBridgeConfig()
        self._identity_resolver = identity_resolver
        self._views: dict[str, ViewEntry] = {}
        self._logger = get_logger("viewbridge.server")

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register(
        self,
        name: str,
        model: type[ViewModel],
        *,
        template: str = "",
        style: str | None = None,
        mixin: str | None = None,
    ) -> ViewEntry:
        """Register ``model`` under ``name``.

        The model's schema is resolved immediately so definition errors
        surface at startup.
        """
        if name in self._views:
            raise DefinitionError(f"A view named {name!r} is already registered")
        model.schema()
        entry = ViewEntry(name=name, model=model, template=template, style=style, mixin=mixin)
        self._views[name] = entry
        return entry

    def view(
        self,
        name: str,
        *,
        template: str = "",
        style: str | None = None,
        mixin: str | None = None,
    ) -> Callable[[ModelT], ModelT]:
        """Class decorator form of :meth:`register`."""

        def decorator(model: ModelT) -> ModelT:
            self.register(name, model, template=template, style=style, mixin=mixin)
            return model

        return decorator

    def get(self, name: str) -> ViewEntry:
        try:
            return self._views[name]
        except KeyError:
            raise LookupError(f"No view registered as {name!r}") from None

    @property
    def view_names(self) -> list[str]:
        return sorted(self._views)

    # ------------------------------------------------------------------
    # Rendering and updates
    # ------------------------------------------------------------------

    def render_page(self, name: str, element_id: str, *, principal: Principal | None = None) -> str:
        entry = self.get(name)
        with entry.model(identity=principal) as instance:
            instance.on_init()
            return render_page(
                instance,
                element_id,
                template=entry.template,
                style=entry.style,
                mixin=entry.mixin,
                config=self.config,
            )

    def render_component(self, name: str, *, principal: Principal | None = None) -> str:
        entry = self.get(name)
        with entry.model(identity=principal) as instance:
            instance.on_init()
            return render_component(
                instance,
                name,
                template=entry.template,
                style=entry.style,
                mixin=entry.mixin,
                config=self.config,
            )

    def update(
        self,
        name: str,
        payload: Mapping[str, Any],
        *,
        principal: Principal | None = None,
    ) -> ChangeSet:
        return run_update(self.get(name).model, payload, principal=principal, config=self.config)

    # ------------------------------------------------------------------
    # Starlette integration
    # ------------------------------------------------------------------

    def routes(self) -> list[Route]:
        update_path = self.config.update_path.rstrip("/")
        component_path = self.config.component_path.rstrip("/")
        return [
            Route(f"{update_path}/{{name}}", self._update_endpoint, methods=["POST"]),
            Route(f"{component_path}/{{name}}", self._component_endpoint, methods=["GET"]),
        ]

    def asgi(self, *, debug: bool = False) -> Starlette:
        return Starlette(debug=debug, routes=self.routes())

    async def serve(
        self,
        *,
        host: str = "127.0.0.1",
        port: int = 8000,
        log_level: str = "info",
        **uvicorn_options: Any,
    ) -> None:
        from uvicorn import Config, Server

        config = Config(app=self.asgi(), host=host, port=port, log_level=log_level, **uvicorn_options)
        await Server(config).serve()

    async def _update_endpoint(self, request: Request) -> Response:
        name = request.path_params["name"]
        if name not in self._views:
            return _error_response(404, "not_found", f"No view registered as {name!r}")

        try:
            payload = await self._read_payload(request)
            principal = await self._resolve_identity(request)
            change = await anyio.to_thread.run_sync(partial(self.update, name, payload, principal=principal))
        except (PayloadError, CoercionError) as exc:
            self._logger.info(
                "rejected update",
                extra={"event": "server.bad_request", "view": name, "reason": str(exc)},
            )
            return _error_response(400, "bad_request", str(exc))
        except AuthorizationError as exc:
            return _error_response(403, "forbidden", str(exc))
        except DefinitionError as exc:
            self._logger.error(
                "view definition error",
                extra={"event": "server.definition_error", "view": name},
                exc_info=exc,
            )
            return _error_response(500, "definition_error", str(exc))

        return JSONResponse(change.to_payload())

    async def _component_endpoint(self, request: Request) -> Response:
        name = request.path_params["name"]
        if name not in self._views:
            return _error_response(404, "not_found", f"No view registered as {name!r}")
        principal = await self._resolve_identity(request)
        script = await anyio.to_thread.run_sync(partial(self.render_component, name, principal=principal))
        return Response(script, media_type="application/javascript")

    async def _read_payload(self, request: Request) -> dict[str, Any]:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(_FORM_TYPES):
            form = await request.form()
            payload: dict[str, Any] = {
                key: form[key] for key in ("snapshot", "method", "parameters") if key in form
            }
            payload["files"] = [await _to_uploaded_file(item) for item in _iter_uploads(form.getlist("files"))]
            return payload

        try:
            body = await request.json()
        except ValueError as exc:
            raise PayloadError("request body is not valid JSON") from exc
        if not isinstance(body, dict):
            raise PayloadError("request body must be a JSON object")
        if "files" in body:
            raise PayloadError("attachments require a multipart request")
        return body

    async def _resolve_identity(self, request: Request) -> Principal | None:
        if self._identity_resolver is None:
            return None
        result = self._identity_resolver(request)
        if inspect.isawaitable(result):
            result = await result
        return result


def _iter_uploads(items: list[Any]) -> Iterator[UploadFile]:
    for item in items:
        if isinstance(item, UploadFile):
            yield item


async def _to_uploaded_file(upload: UploadFile) -> UploadedFile:
    data = await upload.read()
    return UploadedFile(filename=upload.filename or "", content_type=upload.content_type, data=data)


def _error_response(status_code: int, error: str, detail: str) -> JSONResponse:
    return JSONResponse({"error": error, "detail": detail}, status_code=status_code)


__all__ = ["IdentityResolver", "ViewBridgeApp", "ViewEntry"]
