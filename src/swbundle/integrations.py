"""Ready-made runtime-caching contributions.

Each helper takes the request's ``Registrar`` and registers the rules one
common integration needs, so a site can opt in with a one-line
contributor::

    @app.contributor(scope=Scope.FRONT)
    def caching(sw: Registrar) -> None:
        register_image_caching(sw)
        register_cdn_caching(sw, "https://cdn.ampproject.org")
"""

import logging
import re
from collections.abc import Iterable, Mapping
from urllib.parse import urlsplit

from swbundle.outcome import Outcome, Rejected
from swbundle.registrar import Registrar
from swbundle.registry.caching import CachingRoute, PrecacheEntry, Strategy

logger = logging.getLogger("swbundle.registry")

MONTH_IN_SECONDS = 30 * 24 * 60 * 60
IMAGE_EXTENSIONS: tuple[str, ...] = ("png", "gif", "jpg", "jpeg", "svg", "webp")


def register_image_caching(
    registrar: Registrar,
    *,
    cache_name: str = "images",
    max_entries: int = 60,
    max_age_seconds: int = MONTH_IN_SECONDS,
    extensions: Iterable[str] = IMAGE_EXTENSIONS,
) -> Outcome[CachingRoute]:
    """Serve uploaded images cache-first, keeping at most *max_entries*.

    Opaque (status 0) and 200 responses are cacheable.
    """
    content_path = urlsplit(registrar.config.resolved_content_url).path
    alternatives = "|".join(re.escape(ext) for ext in extensions)
    pattern = f"{re.escape(content_path)}/.*\\.(?:{alternatives})(\\?.*)?$"
    return registrar.register_route(
        pattern,
        Strategy.CACHE_FIRST,
        {
            "cache_name": cache_name,
            "plugins": {
                "cacheable_response": {"statuses": [0, 200]},
                "expiration": {"max_entries": max_entries, "max_age_seconds": max_age_seconds},
            },
        },
    )


def register_cdn_caching(
    registrar: Registrar,
    origin: str,
    *,
    strategy: Strategy | str = Strategy.STALE_WHILE_REVALIDATE,
    cache_name: str | None = None,
) -> Outcome[CachingRoute]:
    """Serve everything under the CDN *origin* from cache, revalidating in the background."""
    parts = urlsplit(origin)
    if not parts.scheme or not parts.netloc:
        return Rejected("invalid_route", f"CDN origin must be an absolute URL, got {origin!r}.")
    prefix = f"{parts.scheme}://{parts.netloc}"
    pattern = "^" + re.escape(prefix).replace("/", "\\/") + "\\/.*"
    options = {"cache_name": cache_name} if cache_name else None
    return registrar.register_route(pattern, strategy, options)


def register_asset_precache(
    registrar: Registrar,
    assets: Mapping[str, str],
    handles: Iterable[str],
) -> list[Outcome[PrecacheEntry]]:
    """Precache the URLs of *handles* from an asset-discovery mapping.

    *assets* maps script handles to URLs, as whatever discovers the site's
    assets reports them. Handles missing from *assets* are skipped.
    """
    outcomes: list[Outcome[PrecacheEntry]] = []
    for handle in handles:
        url = assets.get(handle)
        if not url:
            logger.debug("Asset %r is not registered; not precaching it", handle)
            continue
        outcomes.append(registrar.register_precache(url))
    return outcomes
