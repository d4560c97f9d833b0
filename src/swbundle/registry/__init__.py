"""Request-scoped registries for script fragments, caching routes, and precache entries."""

from swbundle.registry.caching import (
    RECOGNIZED_PLUGINS,
    CachingRoute,
    CachingRouteRegistry,
    PluginConfig,
    PrecacheEntry,
    Strategy,
)
from swbundle.registry.naming import camelize, camelize_keys
from swbundle.registry.scripts import Resolution, ScriptEntry, ScriptRegistry

__all__ = [
    "RECOGNIZED_PLUGINS",
    "CachingRoute",
    "CachingRouteRegistry",
    "PluginConfig",
    "PrecacheEntry",
    "Resolution",
    "ScriptEntry",
    "ScriptRegistry",
    "Strategy",
    "camelize",
    "camelize_keys",
]
