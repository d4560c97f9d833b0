"""Script-source path validation.

Resolves a script reference (absolute URL, protocol-relative URL, or a
path relative to the site URL) to a file inside one of the three trusted
asset roots, or rejects it with a specific reason.

Host comparison ignores the scheme and the host's letter case, so an
``http`` reference still matches an ``https`` site behind a
TLS-terminating proxy. Three checks run in order, each with its own
rejection code:

1. ``external_file_url`` — host is not the core, content, or admin host.
2. ``file_path_not_allowed`` — no remainder path, a parent-directory
   segment (raw or percent-encoded), or a resolved path that escapes its
   root through a symlink.
3. ``file_path_not_found`` — the resolved path is not a regular file.

Usage::

    validator = PathValidator.from_config(config)
    result = validator.validate("/wp-content/plugins/foo/sw.js")
    if result:
        text = result.value.read_text()
    else:
        print(result.reason, result.message)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from urllib.parse import unquote, urlsplit

from swbundle.config import BundleConfig
from swbundle.outcome import Ok, Outcome, Rejected

logger = logging.getLogger("swbundle.security")

_ABSOLUTE = re.compile(r"^(https?:)?//", re.IGNORECASE)
_SCHEME = re.compile(r"^\w+:(?=//)")
_QUERY_OR_FRAGMENT = re.compile(r"[?#].*$", re.DOTALL)


class RejectionCode(StrEnum):
    """Why a script reference was refused."""

    EXTERNAL_FILE_URL = "external_file_url"
    FILE_PATH_NOT_ALLOWED = "file_path_not_allowed"
    FILE_PATH_NOT_FOUND = "file_path_not_found"


@dataclass(frozen=True, slots=True)
class AssetRoot:
    """A trusted URL prefix and the directory it is served from.

    ``url`` is stored scheme-less, with a lower-case host and a trailing slash
    (``//example.com/wp-content/``).
    """

    url: str
    directory: Path

    @property
    def host(self) -> str | None:
        return _host_of(self.url)


def strip_scheme(url: str) -> str:
    """Drop a leading ``scheme:`` that is followed by ``//``."""
    return _SCHEME.sub("", url)


def fold_host(url: str) -> str:
    """Lowercase the authority of a scheme-less ``//host/path`` URL.

    Host names are case-insensitive; paths are not, so only the part
    before the first path slash changes.
    """
    if not url.startswith("//"):
        return url
    authority, slash, path = url[2:].partition("/")
    return "//" + authority.lower() + slash + path


def _root_url(url: str) -> str:
    return fold_host(strip_scheme(url)) + "/"


def _host_of(url: str) -> str | None:
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return None
    return host or None


def _has_traversal(remainder: str) -> bool:
    """True if any decoding of *remainder* contains a ``..`` segment.

    Decodes repeatedly so double-encoded sequences (``%252e%252e``) are
    caught too, and treats backslashes as separators.
    """
    seen: set[str] = set()
    candidate = remainder
    while candidate not in seen:
        seen.add(candidate)
        normalized = candidate.replace("\\", "/")
        if ".." in normalized.split("/"):
            return True
        candidate = unquote(candidate)
    return False


class PathValidator:
    """Maps trusted asset URLs onto the filesystem.

    Total by construction: every string yields an ``Ok(Path)`` or a
    ``Rejected`` whose ``reason`` is a ``RejectionCode`` value.
    """

    __slots__ = ("_base_url", "_content_url", "_roots")

    def __init__(self, base_url: str, roots: tuple[AssetRoot, ...], content_url: str = "") -> None:
        self._base_url = base_url.rstrip("/")
        self._roots = roots
        self._content_url = content_url

    @classmethod
    def from_config(cls, config: BundleConfig) -> PathValidator:
        """Build the validator for the content, includes, and admin roots.

        Content is checked first so a content directory nested under the
        site root still wins over a broader prefix.
        """
        roots = (
            AssetRoot(_root_url(config.resolved_content_url), config.resolved_content_dir),
            AssetRoot(_root_url(config.resolved_includes_url), config.resolved_includes_dir),
            AssetRoot(_root_url(config.resolved_admin_url), config.resolved_admin_dir),
        )
        return cls(config.site_url, roots, content_url=config.resolved_content_url)

    @property
    def allowed_hosts(self) -> frozenset[str]:
        return frozenset(h for h in (root.host for root in self._roots) if h)

    def validate(self, reference: str) -> Outcome[Path]:
        """Resolve *reference* to a safe filesystem path or reject it."""
        if not isinstance(reference, str) or not reference:
            return Rejected(RejectionCode.FILE_PATH_NOT_ALLOWED, "Empty script reference.")

        url = reference
        needs_base = not _ABSOLUTE.match(url) and not (
            self._content_url and url.startswith(self._content_url)
        )
        if needs_base:
            url = self._base_url + ("" if url.startswith("/") else "/") + url

        url = fold_host(strip_scheme(_QUERY_OR_FRAGMENT.sub("", url)))

        host = _host_of(url)
        if host is None or host not in self.allowed_hosts:
            return Rejected(
                RejectionCode.EXTERNAL_FILE_URL,
                f"URL is located on an external domain: {host}.",
            )

        root, remainder = self._match_root(url)
        if root is None or not remainder.strip("/") or _has_traversal(remainder):
            return Rejected(
                RejectionCode.FILE_PATH_NOT_ALLOWED,
                f"Disallowed URL filesystem path for {url}.",
            )

        relative = unquote(remainder).lstrip("/").replace("\\", "/")
        try:
            resolved = (root.directory / relative).resolve()
        except (OSError, ValueError):
            return Rejected(
                RejectionCode.FILE_PATH_NOT_ALLOWED,
                f"Disallowed URL filesystem path for {url}.",
            )

        # Symlinks may still point outside the root.
        if not resolved.is_relative_to(root.directory):
            logger.warning("Script reference %s resolves outside %s", reference, root.directory)
            return Rejected(
                RejectionCode.FILE_PATH_NOT_ALLOWED,
                f"Disallowed URL filesystem path for {url}.",
            )

        if not resolved.is_file():
            return Rejected(
                RejectionCode.FILE_PATH_NOT_FOUND,
                f"Unable to locate filesystem path for {url}.",
            )

        return Ok(resolved)

    def _match_root(self, url: str) -> tuple[AssetRoot | None, str]:
        for root in self._roots:
            if url.startswith(root.url):
                # Keep the leading slash, as in "/plugins/x/sw.js".
                return root, url[len(root.url) - 1 :]
        return None, ""
