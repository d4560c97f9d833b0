"""Bundle assembler — compiles registries into one service worker script.

Sections are emitted in a fixed order; each one may call into anything
an earlier section set up:

1. Runtime import, runtime configuration, navigation preload directive.
2. Error-response handling (offline and server-error pages, navigation
   blacklist).
3. Registered scripts for the scope, in dependency order.
4. Precache registration for every precache entry.
5. One route registration block per caching route.

Compilation is pure over the registries' contents and the scope: the
registries are never written to, so two compiles of the same state
produce byte-identical text. A failing contribution becomes a
``console.warn(...)`` statement and a ``Diagnostic``; it never aborts the
compile or leaves the script syntactically broken.
"""

import hashlib
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlsplit

from kida import Environment

from swbundle.compiler.encoding import js_comment_text, js_literal
from swbundle.compiler.environment import (
    BASE_TEMPLATE,
    ERROR_RESPONSE_TEMPLATE,
    PRECACHE_TEMPLATE,
    ROUTE_TEMPLATE,
    create_environment,
    render,
)
from swbundle.compiler.identity import SiteIdentity, default_error_entries
from swbundle.config import BundleConfig
from swbundle.errors import InvalidScopeError
from swbundle.registry.caching import CachingRoute, CachingRouteRegistry, PrecacheEntry
from swbundle.registry.scripts import ScriptEntry, ScriptRegistry
from swbundle.scope import SERVABLE_SCOPES, Scope, coerce_scope
from swbundle.security.paths import PathValidator

logger = logging.getLogger("swbundle.compiler")

# Sentinel for "use the computed default error entry".
DEFAULT_ENTRY = object()


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A contribution that was degraded during compile."""

    code: str
    message: str
    handle: str | None = None


@dataclass(frozen=True, slots=True)
class NavigationOptions:
    """Per-request navigation settings contributed during registration.

    ``preload`` is ``True``/``False`` or a header value string; ``None``
    defers to ``BundleConfig.navigation_preload``. ``blacklist_patterns``
    are extra regular expressions (without delimiters) whose navigations
    never receive offline or server-error substitution.
    """

    preload: bool | str | None = None
    blacklist_patterns: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CompiledBundle:
    """The assembled script text, its fingerprint, and compile diagnostics."""

    scope: Scope
    text: str
    fingerprint: str
    diagnostics: tuple[Diagnostic, ...] = ()

    def __str__(self) -> str:
        return self.text


def fingerprint(text: str) -> str:
    """Content hash used as the bundle's ETag."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class _Compilation:
    scope: Scope
    sections: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def degrade(self, code: str, message: str, handle: str | None = None) -> None:
        logger.warning("%s", message)
        self.diagnostics.append(Diagnostic(code, message, handle))
        self.sections.append(f"console.warn( {js_literal(message)} );\n")


class BundleAssembler:
    """Compiles a ``ScriptRegistry`` and a ``CachingRouteRegistry`` for a scope.

    Both registries are injected and only read. The assembler itself holds
    no per-compile state, so one instance may compile repeatedly.
    """

    __slots__ = (
        "_caching",
        "_config",
        "_env",
        "_identity",
        "_navigation",
        "_offline_entry",
        "_scripts",
        "_server_error_entry",
        "_validator",
    )

    def __init__(
        self,
        config: BundleConfig,
        scripts: ScriptRegistry,
        caching: CachingRouteRegistry,
        *,
        identity: SiteIdentity | None = None,
        navigation: NavigationOptions | None = None,
        offline_entry: PrecacheEntry | None | object = DEFAULT_ENTRY,
        server_error_entry: PrecacheEntry | None | object = DEFAULT_ENTRY,
        validator: PathValidator | None = None,
        env: Environment | None = None,
    ) -> None:
        self._config = config
        self._scripts = scripts
        self._caching = caching
        self._identity = identity or SiteIdentity()
        self._navigation = navigation or NavigationOptions()
        self._offline_entry = offline_entry
        self._server_error_entry = server_error_entry
        self._validator = validator or PathValidator.from_config(config)
        self._env = env or create_environment(debug=config.debug)

    def compile(self, scope: Scope) -> CompiledBundle:
        """Assemble the bundle for *scope* (``FRONT`` or ``ADMIN``)."""
        resolved = coerce_scope(scope)
        if resolved is None or resolved not in SERVABLE_SCOPES:
            msg = f"Bundles are compiled for FRONT or ADMIN only, got {scope!r}"
            raise InvalidScopeError(msg)
        scope = resolved

        compilation = _Compilation(scope)
        compilation.sections.append(self._base_section(scope))
        error_entries = self._error_section(compilation)
        self._script_sections(compilation)
        precache = [*self._caching.get_precache_entries(), *error_entries]
        if precache:
            compilation.sections.append(self._precache_section(precache))
        for route in self._caching.get_routes():
            self._emit_route(route, compilation)

        text = "".join(compilation.sections)
        logger.debug(
            "Compiled %s bundle: %d bytes, %d diagnostics",
            scope.name,
            len(text),
            len(compilation.diagnostics),
        )
        return CompiledBundle(scope, text, fingerprint(text), tuple(compilation.diagnostics))

    # -- Sections --

    def _base_section(self, scope: Scope) -> str:
        config = self._config
        preload = self._navigation.preload
        if preload is None:
            preload = config.navigation_preload

        return render(
            self._env,
            BASE_TEMPLATE,
            runtime_script_url=js_literal(config.resolved_runtime_url + config.runtime_script),
            runtime_config=js_literal(
                {"debug": config.debug, "modulePathPrefix": config.resolved_runtime_url}
            ),
            cache_name_details=js_literal(
                {"prefix": config.cache_name_prefix, "suffix": config.cache_name_suffix}
            ),
            preload_enabled=preload is not False,
            preload_header=js_literal(preload) if isinstance(preload, str) and preload else "",
        )

    def _error_section(self, compilation: _Compilation) -> list[PrecacheEntry]:
        scope = compilation.scope
        default_offline, default_server_error = default_error_entries(
            self._config, self._identity, scope
        )
        offline = default_offline if self._offline_entry is DEFAULT_ENTRY else self._offline_entry
        server_error = (
            default_server_error
            if self._server_error_entry is DEFAULT_ENTRY
            else self._server_error_entry
        )

        entries = [e for e in (offline, server_error) if isinstance(e, PrecacheEntry)]

        patterns: list[str] = []
        if scope == Scope.FRONT:
            patterns.append(admin_blacklist_pattern(self._config.resolved_admin_url))
        patterns.extend(self._navigation.blacklist_patterns)

        compilation.sections.append(
            render(
                self._env,
                ERROR_RESPONSE_TEMPLATE,
                offline_url=js_literal(offline.url if isinstance(offline, PrecacheEntry) else None),
                server_error_url=js_literal(
                    server_error.url if isinstance(server_error, PrecacheEntry) else None
                ),
                blacklist_patterns=js_literal(patterns),
            )
        )
        return entries

    def _script_sections(self, compilation: _Compilation) -> None:
        resolution = self._scripts.resolve(compilation.scope)
        for handle, reason in resolution.skipped.items():
            compilation.degrade(
                "unresolved_dependency",
                f'Service worker script "{handle}" was skipped: {reason}.',
                handle,
            )
        for handle in resolution.handles:
            entry = self._scripts.get(handle)
            if entry is not None:
                self._emit_script(entry, compilation)

    def _emit_script(self, entry: ScriptEntry, compilation: _Compilation) -> None:
        invalid = f'Service worker src is invalid for handle "{entry.handle}".'
        label = js_comment_text(entry.handle)

        if callable(entry.source):
            try:
                body = entry.source()
            except Exception:
                logger.exception("Inline service worker script %r raised", entry.handle)
                compilation.degrade("generator_failed", invalid, entry.handle)
                return
            if body is None:
                body = ""
            if not isinstance(body, str):
                compilation.degrade("invalid_source", invalid, entry.handle)
                return
            compilation.sections.append(f"\n/* Source {label}: */\n{body}\n")
            return

        if not isinstance(entry.source, str):
            compilation.degrade("invalid_source", invalid, entry.handle)
            return

        result = self._validator.validate(entry.source)
        if not result:
            logger.warning("Script %r rejected (%s): %s", entry.handle, result.reason, result.message)
            compilation.degrade(str(result.reason), invalid, entry.handle)
            return

        path: Path = result.value
        try:
            body = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read script %r from %s: %s", entry.handle, path, exc)
            compilation.degrade("file_unreadable", invalid, entry.handle)
            return

        source = js_comment_text(entry.source)
        compilation.sections.append(f"\n/* Source {label} <{source}>: */\n{body}\n")

    def _precache_section(self, entries: Sequence[PrecacheEntry]) -> str:
        return render(
            self._env,
            PRECACHE_TEMPLATE,
            precache_entries=js_literal([entry.to_manifest() for entry in entries]),
        )

    def _emit_route(self, route: CachingRoute, compilation: _Compilation) -> None:
        try:
            section = self._route_section(route)
        except (TypeError, ValueError) as exc:
            logger.warning("Cannot encode options of caching route %r: %s", route.pattern, exc)
            compilation.degrade(
                "invalid_options",
                f'Caching route "{route.pattern}" has options that cannot be encoded.',
            )
            return
        compilation.sections.append(section)

    def _route_section(self, route: CachingRoute) -> str:
        plugins = ", ".join(
            f"new wp.serviceWorker[ {js_literal(plugin.name)} ].Plugin( {js_literal(plugin.options)} )"
            for plugin in route.plugins
        )
        return render(
            self._env,
            ROUTE_TEMPLATE,
            strategy_args=js_literal(route.options),
            plugins=plugins,
            pattern=js_literal(route.pattern),
            strategy=js_literal(route.strategy.value),
        )


def admin_blacklist_pattern(admin_url: str) -> str:
    """Pattern matching the admin path and anything below it."""
    path = urlsplit(admin_url).path.rstrip("/")
    return "^" + re.escape(path).replace("/", "\\/") + r"($|\?.*|/.*)"
