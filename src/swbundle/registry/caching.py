"""Caching-route and precache registry.

Stores the runtime caching rules and precache entries a compiled bundle
will install. Both lists are append-only and keep registration order:

- Routes are never de-duplicated. Every registration applies, and the
  runtime's own router picks between overlapping patterns (first match
  in registration order).
- Precache entries are keyed by URL, but re-registering a URL appends
  another entry rather than replacing the first one. The precache runtime
  keeps the last one it sees at install time.

Strategy options are normalized at registration. Keys are camelized
(header maps inside plugin options are left as written), plugins are
split out, and unrecognized plugin names are dropped with a ``Warned``
outcome so they never reach the emitted script.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from swbundle.outcome import Ok, Outcome, Rejected, Warned
from swbundle.registry.naming import camelize, camelize_keys

logger = logging.getLogger("swbundle.registry")


class Strategy(StrEnum):
    """Caching strategies the runtime library exposes, by runtime name."""

    CACHE_FIRST = "cacheFirst"
    NETWORK_FIRST = "networkFirst"
    STALE_WHILE_REVALIDATE = "staleWhileRevalidate"
    CACHE_ONLY = "cacheOnly"
    NETWORK_ONLY = "networkOnly"

    @classmethod
    def parse(cls, value: object) -> Strategy | None:
        """Accept a member or any spelling of its name.

        ``"stale-while-revalidate"``, ``"stale_while_revalidate"`` and
        ``"staleWhileRevalidate"`` all map to ``STALE_WHILE_REVALIDATE``.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        name = camelize(value.strip())
        for member in cls:
            if member.value.lower() == name.lower():
                return member
        return None


RECOGNIZED_PLUGINS: frozenset[str] = frozenset(
    {
        "backgroundSync",
        "broadcastUpdate",
        "cacheableResponse",
        "expiration",
        "rangeRequests",
    }
)

# Option keys with a documented meaning; anything else is passed through.
STRATEGY_OPTION_KEYS: frozenset[str] = frozenset(
    {"cacheName", "plugins", "fetchOptions", "matchOptions"}
)

# Plugin options whose values are data (header name -> value), not options.
VERBATIM_PLUGIN_KEYS: frozenset[str] = frozenset({"headers"})


@dataclass(frozen=True, slots=True)
class PluginConfig:
    """One recognized strategy plugin and its camelized configuration."""

    name: str
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CachingRoute:
    """A runtime caching rule: URL pattern, strategy, and strategy options.

    ``pattern`` is a regular expression without delimiters, handed to the
    runtime's ``RegExp`` constructor as-is. ``options`` excludes plugins,
    which live in ``plugins`` in their original order.
    """

    pattern: str
    strategy: Strategy
    options: dict[str, Any] = field(default_factory=dict)
    plugins: tuple[PluginConfig, ...] = ()


@dataclass(frozen=True, slots=True)
class PrecacheEntry:
    """A URL fetched at install time. ``revision=None`` means immutable content."""

    url: str
    revision: str | None = None

    def to_manifest(self) -> dict[str, str | None]:
        return {"url": self.url, "revision": self.revision}


def normalize_strategy_options(
    options: Mapping[str, Any] | None,
) -> tuple[dict[str, Any], tuple[PluginConfig, ...], tuple[str, ...]]:
    """Split *options* into camelized options, plugins, and dropped-item notes.

    Top-level keys are camelized. Plugin names and the keys inside plugin
    configuration are camelized recursively, except below the keys in
    ``VERBATIM_PLUGIN_KEYS``, whose header names must reach the runtime as
    written. Plugins outside
    ``RECOGNIZED_PLUGINS`` are dropped and reported.
    """
    camelized = camelize_keys(options or {})
    camelized.pop("strategy", None)
    raw_plugins = camelized.pop("plugins", None)
    for key in camelized.keys() - STRATEGY_OPTION_KEYS:
        logger.debug("Passing through unrecognized strategy option %r", key)

    notes: list[str] = []
    plugins: list[PluginConfig] = []

    if raw_plugins is None:
        pass
    elif not isinstance(raw_plugins, Mapping):
        notes.append("Plugins must be a mapping of plugin name to configuration.")
    else:
        for raw_name, plugin_options in raw_plugins.items():
            name = camelize(str(raw_name))
            if name not in RECOGNIZED_PLUGINS:
                notes.append(f"Unrecognized plugin {raw_name!r}.")
                continue
            if plugin_options and not isinstance(plugin_options, Mapping):
                notes.append(f"Configuration for plugin {raw_name!r} must be a mapping.")
                continue
            config = camelize_keys(
                plugin_options or {}, recursive=True, verbatim=VERBATIM_PLUGIN_KEYS
            )
            plugins.append(PluginConfig(name, config))

    return camelized, tuple(plugins), tuple(notes)


class CachingRouteRegistry:
    """Append-only lists of caching routes and precache entries."""

    __slots__ = ("_precache", "_routes")

    def __init__(self) -> None:
        self._routes: list[CachingRoute] = []
        self._precache: list[PrecacheEntry] = []

    # -- Routes --

    def register_route(
        self,
        pattern: str,
        strategy: Strategy | str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Outcome[CachingRoute]:
        """Append a caching route.

        *strategy* may be omitted when *options* carries a ``strategy`` key.
        Returns ``Rejected`` for an empty pattern or an unknown strategy,
        and ``Warned`` when plugins were dropped from *options*.
        """
        if not isinstance(pattern, str) or not pattern:
            return Rejected("invalid_route", "Route pattern must be a non-empty string.")
        if options is not None and not isinstance(options, Mapping):
            return Rejected("invalid_options", "Strategy options must be a mapping.")

        if strategy is None and options is not None:
            strategy = options.get("strategy")
        parsed = Strategy.parse(strategy)
        if parsed is None:
            allowed = ", ".join(s.value for s in Strategy)
            logger.warning("Rejected caching route %r: unknown strategy %r", pattern, strategy)
            return Rejected("invalid_strategy", f"Strategy must be one of {allowed}, got {strategy!r}.")

        normalized, plugins, notes = normalize_strategy_options(options)
        route = CachingRoute(pattern, parsed, normalized, plugins)
        self._routes.append(route)

        if notes:
            for note in notes:
                logger.warning("Caching route %r: %s", pattern, note)
            return Warned("unrecognized_plugin", route, notes)
        return Ok(route)

    def get_routes(self) -> tuple[CachingRoute, ...]:
        return tuple(self._routes)

    # -- Precache --

    def register_precache(
        self,
        url: str,
        revision_or_options: str | Mapping[str, Any] | None = None,
    ) -> Outcome[PrecacheEntry]:
        """Append a precache entry for *url*.

        A bare string is shorthand for ``{"revision": value}``.
        """
        if not isinstance(url, str) or not url:
            return Rejected("missing_url", "Precache entry requires a URL.")

        if isinstance(revision_or_options, Mapping):
            revision = revision_or_options.get("revision")
        else:
            revision = revision_or_options

        if revision is not None and not isinstance(revision, str):
            revision = str(revision)

        entry = PrecacheEntry(url, revision or None)
        self._precache.append(entry)
        return Ok(entry)

    def register_precache_many(
        self, entries: Iterable[Mapping[str, Any]]
    ) -> list[Outcome[PrecacheEntry]]:
        """Register several ``{"url": ..., "revision": ...}`` mappings in order."""
        outcomes: list[Outcome[PrecacheEntry]] = []
        for options in entries:
            if not isinstance(options, Mapping):
                outcomes.append(Rejected("invalid_entry", "Precache entries must be mappings."))
                continue
            outcomes.append(self.register_precache(options.get("url", ""), options))
        return outcomes

    def get_precache_entries(self) -> tuple[PrecacheEntry, ...]:
        return tuple(self._precache)
