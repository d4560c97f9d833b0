"""swbundle — a service worker bundle compiler and caching-route registry.

Contributors register script fragments, caching routes and precache
entries for a scope; the app compiles them into one script and serves it
with an ETag so unchanged bundles answer 304.

Basic usage::

    from swbundle import App, BundleConfig, Registrar, Scope

    app = App(BundleConfig(site_url="https://example.com", root_dir="/srv/www"))

    @app.contributor(scope=Scope.FRONT)
    def offline(sw: Registrar) -> None:
        sw.register_script("offline-form", "/wp-content/sw/offline-form.js")
        sw.register_route(r"\\.css$", "stale-while-revalidate")

Serve ``app`` with any ASGI server, or compile without one::

    swbundle build mysite.sw:app --scope front -o sw.js
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "BundleAssembler",
    "BundleConfig",
    "CachingRouteRegistry",
    "CompiledBundle",
    "ConditionalResponseServer",
    "ConfigurationError",
    "InvalidScopeError",
    "Ok",
    "PathValidator",
    "PrecacheEntry",
    "Registrar",
    "Rejected",
    "SWBundleError",
    "Scope",
    "ScriptRegistry",
    "SiteIdentity",
    "Strategy",
    "Warned",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import swbundle`` fast and lets ``swbundle.config`` read
    ``__version__`` without an import cycle.
    """
    if name == "App":
        from swbundle.app import App

        return App

    if name == "BundleConfig":
        from swbundle.config import BundleConfig

        return BundleConfig

    if name == "Registrar":
        from swbundle.registrar import Registrar

        return Registrar

    if name == "Scope":
        from swbundle.scope import Scope

        return Scope

    if name in ("Ok", "Warned", "Rejected"):
        from swbundle import outcome as _outcome

        return getattr(_outcome, name)

    if name in ("BundleAssembler", "CompiledBundle", "SiteIdentity"):
        from swbundle import compiler as _compiler

        return getattr(_compiler, name)

    if name in ("CachingRouteRegistry", "PrecacheEntry", "ScriptRegistry", "Strategy"):
        from swbundle import registry as _registry

        return getattr(_registry, name)

    if name == "PathValidator":
        from swbundle.security.paths import PathValidator

        return PathValidator

    if name == "ConditionalResponseServer":
        from swbundle.server.conditional import ConditionalResponseServer

        return ConditionalResponseServer

    if name in ("SWBundleError", "ConfigurationError", "InvalidScopeError"):
        from swbundle import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
