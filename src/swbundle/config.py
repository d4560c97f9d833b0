"""Bundle configuration.

BundleConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups. Derived URLs and directories are exposed as
properties so an override of ``site_url`` or ``root_dir`` carries through.
"""

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

from swbundle import __version__
from swbundle.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class BundleConfig:
    """Bundle configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = BundleConfig(site_url="https://example.com", root_dir="/srv/www")
    """

    # Site URLs (empty string = derive from site_url)
    site_url: str = "http://localhost"
    content_url: str = ""
    includes_url: str = ""
    admin_url: str = ""

    # Filesystem roots (None = derive from root_dir)
    root_dir: str | Path = "."
    content_dir: str | Path | None = None
    includes_dir: str | Path | None = None
    admin_dir: str | Path | None = None

    # Caching-strategy runtime library
    runtime_url: str = ""  # Module path prefix; derived from content_url when empty
    runtime_script: str = "workbox-sw.js"
    debug: bool = False
    cache_name_prefix: str = "wordpress"
    cache_name_suffix: str = "v1"

    # True, False, or a Service-Worker-Navigation-Preload header value
    navigation_preload: bool | str = True

    # HTTP surface
    path: str = "/"
    scope_query_var: str = "wp_service_worker"
    error_template_query_var: str = "wp_error_template"

    # Front-end error templates, digested into the error-page revision
    offline_template: str | Path | None = None
    server_error_template: str | Path | None = None

    version: str = __version__

    # -- Derived URLs --

    @property
    def home_url(self) -> str:
        """Site URL with exactly one trailing slash."""
        return self.site_url.rstrip("/") + "/"

    @property
    def resolved_content_url(self) -> str:
        return (self.content_url or self.home_url + "wp-content").rstrip("/")

    @property
    def resolved_includes_url(self) -> str:
        return (self.includes_url or self.home_url + "wp-includes").rstrip("/")

    @property
    def resolved_admin_url(self) -> str:
        return (self.admin_url or self.home_url + "wp-admin").rstrip("/")

    @property
    def resolved_runtime_url(self) -> str:
        """Module path prefix for the runtime library, with a trailing slash."""
        if self.runtime_url:
            return self.runtime_url.rstrip("/") + "/"
        return self.resolved_content_url + "/plugins/pwa/wp-includes/js/workbox-v3.6.1/"

    # -- Derived directories --

    @property
    def resolved_content_dir(self) -> Path:
        return Path(self.content_dir or Path(self.root_dir) / "wp-content").resolve()

    @property
    def resolved_includes_dir(self) -> Path:
        return Path(self.includes_dir or Path(self.root_dir) / "wp-includes").resolve()

    @property
    def resolved_admin_dir(self) -> Path:
        return Path(self.admin_dir or Path(self.root_dir) / "wp-admin").resolve()

    # -- Validation --

    def validate(self) -> None:
        """Raise ``ConfigurationError`` if any URL is not absolute.

        Called once when the app freezes, so misconfiguration surfaces at
        startup rather than as rejected script sources on every request.
        """
        urls = {
            "site_url": self.site_url,
            "content_url": self.resolved_content_url,
            "includes_url": self.resolved_includes_url,
            "admin_url": self.resolved_admin_url,
            "runtime_url": self.resolved_runtime_url,
        }
        for name, url in urls.items():
            parts = urlsplit(url)
            if not parts.scheme or not parts.netloc:
                msg = f"{name} must be an absolute URL, got {url!r}"
                raise ConfigurationError(msg)
        if not self.path.startswith("/"):
            msg = f"path must start with '/', got {self.path!r}"
            raise ConfigurationError(msg)
        if not self.scope_query_var:
            msg = "scope_query_var must not be empty"
            raise ConfigurationError(msg)
