"""Tests for swbundle.compiler.identity — error-page revisions."""

import hashlib
from pathlib import Path

from swbundle.compiler.identity import (
    SiteIdentity,
    add_query_arg,
    default_error_entries,
    template_digest,
)
from swbundle.config import BundleConfig
from swbundle.scope import Scope


class TestRevision:
    def test_template_only(self) -> None:
        identity = SiteIdentity(template="twentynineteen", template_version="1.4", user_id=3)
        assert identity.revision == "twentynineteen-v1.4;user-3"

    def test_child_theme(self) -> None:
        identity = SiteIdentity(
            template="parent",
            template_version="1.0",
            stylesheet="child",
            stylesheet_version="2.1",
        )
        assert identity.revision == "parent-v1.0;child-v2.1;user-0"

    def test_stylesheet_same_as_template(self) -> None:
        identity = SiteIdentity(template="t", template_version="1", stylesheet="t")
        assert identity.revision == "t-v1;user-0"

    def test_user_changes_revision(self) -> None:
        assert SiteIdentity(user_id=1).revision != SiteIdentity(user_id=2).revision


class TestAddQueryArg:
    def test_adds(self) -> None:
        assert add_query_arg("https://example.com/", "a", "1") == "https://example.com/?a=1"

    def test_replaces_existing(self) -> None:
        assert add_query_arg("https://example.com/?a=1&b=2", "a", "3") == (
            "https://example.com/?b=2&a=3"
        )


class TestTemplateDigest:
    def test_digest_of_path_and_contents(self, tmp_path: Path) -> None:
        template = tmp_path / "offline.php"
        template.write_bytes(b"<p>offline</p>")
        expected = hashlib.md5(str(template).encode("utf-8") + b"<p>offline</p>").hexdigest()
        assert template_digest(template) == expected

    def test_missing_file(self, tmp_path: Path) -> None:
        assert template_digest(tmp_path / "nope.php") is None

    def test_none(self) -> None:
        assert template_digest(None) is None


class TestDefaultErrorEntries:
    def test_front(self, config: BundleConfig) -> None:
        identity = SiteIdentity(template="t", template_version="1", user_id=5)
        offline, server_error = default_error_entries(config, identity, Scope.FRONT)

        assert offline.url == "https://example.com/?wp_error_template=offline"
        assert server_error.url == "https://example.com/?wp_error_template=500"
        assert offline.revision == "t-v1;user-5"

    def test_front_with_template_digest(self, site: Path) -> None:
        template = site / "offline.php"
        template.write_text("offline", encoding="utf-8")
        config = BundleConfig(site_url="https://example.com", root_dir=site, offline_template=template)

        offline, server_error = default_error_entries(config, SiteIdentity(), Scope.FRONT)
        assert offline.revision == f"{SiteIdentity().revision};{template_digest(template)}"
        assert server_error.revision == SiteIdentity().revision

    def test_admin(self, config: BundleConfig) -> None:
        offline, server_error = default_error_entries(config, SiteIdentity(), Scope.ADMIN)

        assert offline.url == (
            "https://example.com/wp-admin/admin-ajax.php?action=wp_error_template&code=offline"
        )
        assert server_error.url.endswith("code=500")
        assert offline.revision == config.version
