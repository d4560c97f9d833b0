"""swbundle application class.

Mutable during setup (contributors, identity provider, lifecycle hooks).
Frozen when ``__call__()`` or ``compile()`` is first invoked.

Each request runs the two-phase protocol on fresh state: a ``Registrar``
is built for the validated scope, every matching contributor runs against
it in registration order, and only then is the bundle compiled::

    app = App(BundleConfig(site_url="https://example.com", root_dir="/srv/www"))

    @app.contributor(scope=Scope.FRONT)
    def images(sw: Registrar) -> None:
        sw.register_route(r"\\.(?:png|jpg)$", "cache-first", {"cache_name": "images"})
"""

import inspect
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, overload

from kida import Environment

from swbundle._internal.asgi import ASGIScope, Receive, Send
from swbundle.compiler.assembler import BundleAssembler, CompiledBundle
from swbundle.compiler.environment import create_environment
from swbundle.compiler.identity import SiteIdentity
from swbundle.config import BundleConfig
from swbundle.errors import (
    ConfigurationError,
    HTTPError,
    InvalidScopeError,
    MethodNotAllowed,
    NotFound,
)
from swbundle.http.request import Request
from swbundle.http.response import Response
from swbundle.registrar import Registrar
from swbundle.scope import SERVABLE_SCOPES, Scope, coerce_scope, parse_scope
from swbundle.security.paths import PathValidator
from swbundle.server.conditional import ConditionalResponseServer, banner_for
from swbundle.server.sender import send_response

logger = logging.getLogger("swbundle.app")

type Contribution = Callable[[Registrar], Any]
type IdentityProvider = Callable[[Request | None], SiteIdentity]

ALLOWED_METHODS: frozenset[str] = frozenset({"GET", "HEAD"})
INTERNAL_ERROR_BODY = "/* internal_error */"


@dataclass(frozen=True, slots=True)
class _Contributor:
    """A registered contribution function and the scopes it applies to."""

    func: Contribution
    scope: Scope

    @property
    def name(self) -> str:
        return getattr(self.func, "__qualname__", repr(self.func))


class App:
    """The service worker application.

    Thread safety:
        Setup is single-threaded (decorators at import time). The freeze
        transition uses a Lock + double-check so exactly one thread builds
        the shared template environment and path validator, even when
        several workers take their first request at once. Per-request
        state never leaves the request.
    """

    __slots__ = (
        "_contributors",
        "_custom_kida_env",
        "_freeze_lock",
        "_frozen",
        "_identity_provider",
        "_kida_env",
        "_shutdown_hooks",
        "_startup_hooks",
        "_validator",
        "config",
    )

    def __init__(
        self,
        config: BundleConfig | None = None,
        *,
        kida_env: Environment | None = None,
    ) -> None:
        self.config: BundleConfig = config or BundleConfig()
        self._contributors: list[_Contributor] = []
        self._identity_provider: IdentityProvider | None = None
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._custom_kida_env: Environment | None = kida_env

        # Compiled state — set during _freeze()
        self._kida_env: Environment | None = None
        self._validator: PathValidator | None = None

    # -- Registration --

    @overload
    def contributor(self, func: Contribution, /) -> Contribution: ...

    @overload
    def contributor(
        self, *, scope: Scope | int = Scope.ALL
    ) -> Callable[[Contribution], Contribution]: ...

    def contributor(
        self,
        func: Contribution | None = None,
        /,
        *,
        scope: Scope | int = Scope.ALL,
    ) -> Contribution | Callable[[Contribution], Contribution]:
        """Register a contribution function via decorator.

        Contributors run in registration order, once per request, and only
        when *scope* intersects the requested scope::

            @app.contributor
            def everywhere(sw: Registrar) -> None: ...

            @app.contributor(scope=Scope.ADMIN)
            def admin_only(sw: Registrar) -> None: ...
        """
        resolved = coerce_scope(scope)
        if resolved is None:
            msg = f"Contributor scope must be FRONT, ADMIN or ALL, got {scope!r}"
            raise ConfigurationError(msg)

        def decorator(fn: Contribution) -> Contribution:
            self._check_not_frozen()
            self._contributors.append(_Contributor(fn, resolved))
            return fn

        if func is not None:
            return decorator(func)
        return decorator

    def identity(self, func: IdentityProvider) -> IdentityProvider:
        """Register the site identity provider via decorator.

        Called once per compile with the current request (``None`` outside
        HTTP, e.g. from the CLI). Its ``SiteIdentity`` feeds the revision
        of the precached error pages.
        """
        self._check_not_frozen()
        self._identity_provider = func
        return func

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook, run during ASGI lifespan startup."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook, run during ASGI lifespan shutdown."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Two-phase protocol --

    def registrar(self, scope: Scope) -> Registrar:
        """Run the registration phase for *scope* and return its state."""
        self._ensure_frozen()
        registrar = Registrar(self.config, scope)
        for contributor in self._contributors:
            if not contributor.scope & scope:
                continue
            logger.debug("Running contributor %s for %s", contributor.name, scope.name)
            contributor.func(registrar)
        return registrar

    def prepare(self, scope: Scope, request: Request | None = None) -> BundleAssembler:
        """Registration phase plus assembler construction."""
        registrar = self.registrar(scope)
        identity = self._identity_provider(request) if self._identity_provider else None
        return registrar.assembler(identity, env=self._kida_env, validator=self._validator)

    def compile(self, scope: Scope | int) -> CompiledBundle:
        """Compile the bundle for *scope* without going through HTTP.

        Raises ``InvalidScopeError`` unless *scope* is ``FRONT`` or ``ADMIN``.
        """
        resolved = coerce_scope(scope)
        if resolved is None or resolved not in SERVABLE_SCOPES:
            msg = f"Bundles are compiled for FRONT or ADMIN only, got {scope!r}"
            raise InvalidScopeError(msg)
        return self.prepare(resolved).compile(resolved)

    def server(self, request: Request | None = None) -> ConditionalResponseServer:
        """A conditional server whose registration phase sees *request*."""
        self._ensure_frozen()
        return ConditionalResponseServer(
            lambda scope: self.prepare(scope, request),
            banner=banner_for(self.config.version),
        )

    # -- ASGI interface --

    async def __call__(self, scope: ASGIScope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            msg = f"Unsupported ASGI scope type {scope['type']!r}"
            raise RuntimeError(msg)

        self._ensure_frozen()
        request = Request.from_asgi(scope)

        try:
            response = self._dispatch(request)
        except HTTPError as exc:
            response = Response(
                body=exc.detail,
                status=exc.status,
                content_type="text/plain; charset=utf-8",
                headers=exc.headers,
            )
        except Exception:
            logger.exception("Unhandled error serving %s %s", request.method, request.url)
            response = (
                Response(body=INTERNAL_ERROR_BODY, status=500)
                .with_header("Cache-Control", "no-cache")
            )

        await send_response(response, send, head=request.method == "HEAD")

    def _dispatch(self, request: Request) -> Response:
        if request.path != self.config.path:
            raise NotFound()
        if request.method not in ALLOWED_METHODS:
            raise MethodNotAllowed(ALLOWED_METHODS)

        scope = parse_scope(request.query.get(self.config.scope_query_var))
        return self.server(request).serve(scope, request.if_none_match)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup, before the first HTTP request, so a
        configuration error fails startup instead of the first request.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Validate configuration and build shared read-only state.

        MUST only be called while holding _freeze_lock.
        """
        self.config.validate()
        self._kida_env = self._custom_kida_env or create_environment(debug=self.config.debug)
        self._validator = PathValidator.from_config(self.config)
        self._frozen = True
        logger.debug(
            "App frozen: %d contributors, endpoint %s?%s=<scope>",
            len(self._contributors),
            self.config.path,
            self.config.scope_query_var,
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register contributors and hooks before the first request."
            )
            raise RuntimeError(msg)
