"""Site identity and error-page revisions.

The offline and server-error pages are precached per theme and per user,
so their revision token is built from the active template and stylesheet
versions and the current user id. A theme update or a different login
changes the token, and the runtime re-fetches the pages.
"""

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from swbundle.config import BundleConfig
from swbundle.registry.caching import PrecacheEntry
from swbundle.scope import Scope

logger = logging.getLogger("swbundle.compiler")


@dataclass(frozen=True, slots=True)
class SiteIdentity:
    """Theme and user identity supplied by the host for one request."""

    template: str = "default"
    template_version: str = ""
    stylesheet: str | None = None
    stylesheet_version: str = ""
    user_id: int = 0

    @property
    def revision(self) -> str:
        """``"<template>-v<ver>[;<stylesheet>-v<ver>];user-<id>"``."""
        revision = f"{self.template}-v{self.template_version}"
        if self.stylesheet and self.stylesheet != self.template:
            revision += f";{self.stylesheet}-v{self.stylesheet_version}"
        return revision + f";user-{self.user_id}"


def add_query_arg(url: str, name: str, value: str) -> str:
    """Return *url* with ``name=value`` set in its query string."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != name]
    query.append((name, value))
    return urlunsplit(parts._replace(query=urlencode(query)))


def template_digest(template: str | Path | None) -> str | None:
    """MD5 of a template's path followed by its contents, or ``None``.

    Unreadable templates are logged and contribute nothing, so the
    revision stays stable instead of failing the compile.
    """
    if template is None:
        return None
    path = Path(template)
    try:
        contents = path.read_bytes()
    except OSError as exc:
        logger.warning("Cannot read error template %s: %s", path, exc)
        return None
    return hashlib.md5(str(path).encode("utf-8") + contents).hexdigest()


def default_error_entries(
    config: BundleConfig,
    identity: SiteIdentity,
    scope: Scope,
) -> tuple[PrecacheEntry, PrecacheEntry]:
    """Default offline and server-error precache entries for *scope*."""
    if scope == Scope.FRONT:
        entries = []
        for code, template in (
            ("offline", config.offline_template),
            ("500", config.server_error_template),
        ):
            revision = identity.revision
            digest = template_digest(template)
            if digest:
                revision += f";{digest}"
            url = add_query_arg(config.home_url, config.error_template_query_var, code)
            entries.append(PrecacheEntry(url, revision))
        return entries[0], entries[1]

    endpoint = add_query_arg(
        config.resolved_admin_url + "/admin-ajax.php", "action", config.error_template_query_var
    )
    return (
        PrecacheEntry(add_query_arg(endpoint, "code", "offline"), config.version),
        PrecacheEntry(add_query_arg(endpoint, "code", "500"), config.version),
    )
