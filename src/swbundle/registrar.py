"""Request-scoped registration phase.

A ``Registrar`` is built for one request after its scope has been
validated. Contributors receive it and call its write methods; once every
contributor has run, ``assembler()`` hands the collected state to a
``BundleAssembler``. Nothing here is shared between requests::

    @app.contributor(scope=Scope.FRONT)
    def offline_banner(sw: Registrar) -> None:
        sw.register_script("offline-banner", "/wp-content/sw/offline-banner.js")
        sw.register_route(r"/wp-content/uploads/.*", "cache-first",
                          {"cache_name": "uploads"})
"""

from collections.abc import Iterable, Mapping
from typing import Any

from kida import Environment

from swbundle.compiler.assembler import DEFAULT_ENTRY, BundleAssembler, NavigationOptions
from swbundle.compiler.identity import SiteIdentity
from swbundle.config import BundleConfig
from swbundle.outcome import Outcome
from swbundle.registry.caching import CachingRoute, CachingRouteRegistry, PrecacheEntry, Strategy
from swbundle.registry.scripts import ScriptEntry, ScriptRegistry, ScriptSource
from swbundle.scope import Scope
from swbundle.security.paths import PathValidator


class Registrar:
    """Write API handed to contributors for one scope."""

    __slots__ = (
        "_blacklist",
        "_caching",
        "_config",
        "_offline_entry",
        "_preload",
        "_scripts",
        "_server_error_entry",
        "scope",
    )

    def __init__(self, config: BundleConfig, scope: Scope) -> None:
        self._config = config
        self.scope = scope
        self._scripts = ScriptRegistry()
        self._caching = CachingRouteRegistry()
        self._preload: bool | str | None = None
        self._blacklist: list[str] = []
        self._offline_entry: PrecacheEntry | None | object = DEFAULT_ENTRY
        self._server_error_entry: PrecacheEntry | None | object = DEFAULT_ENTRY

    @property
    def config(self) -> BundleConfig:
        return self._config

    @property
    def scripts(self) -> ScriptRegistry:
        return self._scripts

    @property
    def caching(self) -> CachingRouteRegistry:
        return self._caching

    # -- Scripts and routes --

    def register_script(
        self,
        handle: str,
        source: ScriptSource,
        dependencies: Iterable[str] = (),
        scope: Scope | int = Scope.ALL,
    ) -> Outcome[ScriptEntry]:
        return self._scripts.register(handle, source, dependencies, scope)

    def register_route(
        self,
        pattern: str,
        strategy: Strategy | str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Outcome[CachingRoute]:
        return self._caching.register_route(pattern, strategy, options)

    def register_precache(
        self,
        url: str,
        revision_or_options: str | Mapping[str, Any] | None = None,
    ) -> Outcome[PrecacheEntry]:
        return self._caching.register_precache(url, revision_or_options)

    def register_precache_many(
        self, entries: Iterable[Mapping[str, Any]]
    ) -> list[Outcome[PrecacheEntry]]:
        return self._caching.register_precache_many(entries)

    # -- Navigation --

    def set_navigation_preload(self, value: bool | str) -> None:
        """Override ``BundleConfig.navigation_preload`` for this request.

        ``True`` enables preload, ``False`` disables it, and a string
        enables it with that ``Service-Worker-Navigation-Preload`` value.
        """
        if not isinstance(value, (bool, str)):
            msg = f"Navigation preload must be a bool or a header value, got {value!r}"
            raise TypeError(msg)
        self._preload = value

    def add_navigation_blacklist_pattern(self, pattern: str) -> None:
        """Exclude navigations matching *pattern* from error-page substitution."""
        if pattern and pattern not in self._blacklist:
            self._blacklist.append(pattern)

    def set_offline_error_entry(self, entry: PrecacheEntry | None) -> None:
        """Replace the default offline page entry; ``None`` disables it."""
        self._offline_entry = entry

    def set_server_error_entry(self, entry: PrecacheEntry | None) -> None:
        """Replace the default server-error page entry; ``None`` disables it."""
        self._server_error_entry = entry

    # -- Compile phase --

    def assembler(
        self,
        identity: SiteIdentity | None = None,
        *,
        env: Environment | None = None,
        validator: PathValidator | None = None,
    ) -> BundleAssembler:
        """Build a ``BundleAssembler`` over everything registered so far."""
        return BundleAssembler(
            self._config,
            self._scripts,
            self._caching,
            identity=identity,
            navigation=NavigationOptions(self._preload, tuple(self._blacklist)),
            offline_entry=self._offline_entry,
            server_error_entry=self._server_error_entry,
            validator=validator,
            env=env,
        )
