"""Tests for swbundle.compiler.assembler — bundle compilation."""

import hashlib
import re
from pathlib import Path

import pytest

from swbundle.compiler.assembler import (
    BundleAssembler,
    NavigationOptions,
    admin_blacklist_pattern,
)
from swbundle.compiler.encoding import js_literal
from swbundle.config import BundleConfig
from swbundle.errors import InvalidScopeError
from swbundle.registry.caching import CachingRouteRegistry, PrecacheEntry
from swbundle.registry.scripts import ScriptRegistry
from swbundle.scope import Scope


@pytest.fixture
def scripts() -> ScriptRegistry:
    return ScriptRegistry()


@pytest.fixture
def caching() -> CachingRouteRegistry:
    return CachingRouteRegistry()


def _assembler(
    config: BundleConfig,
    scripts: ScriptRegistry,
    caching: CachingRouteRegistry,
    **kwargs: object,
) -> BundleAssembler:
    return BundleAssembler(config, scripts, caching, **kwargs)  # type: ignore[arg-type]


def _invalid(handle: str) -> str:
    return f'console.warn( "Service worker src is invalid for handle \\"{handle}\\"." );'


class TestSectionOrder:
    def test_fixed_order(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("inline", lambda: "inlineMarker();")
        caching.register_precache("/a.css", "1")
        caching.register_route("/uploads/.*", "cacheFirst")

        text = _assembler(config, scripts, caching).compile(Scope.FRONT).text

        positions = [
            text.index("importScripts("),
            text.index("workbox.setConfig("),
            text.index("workbox.core.setCacheNameDetails("),
            text.index("workbox.navigationPreload"),
            text.index("self.wp.serviceWorker = workbox;"),
            text.index("NavigationRoute"),
            text.index("inlineMarker();"),
            text.index("precacheAndRoute("),
            text.index("registerRoute( new RegExp("),
        ]
        assert positions == sorted(positions)

    def test_runtime_configuration(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        text = _assembler(config, scripts, caching).compile(Scope.FRONT).text
        runtime = "https://example.com/wp-content/plugins/pwa/wp-includes/js/workbox-v3.6.1/"

        assert f'importScripts( "{runtime}workbox-sw.js" );' in text
        assert f'"modulePathPrefix": "{runtime}"' in text
        assert '"prefix": "wordpress"' in text
        assert '"suffix": "v1"' in text
        assert '"debug": false' in text


class TestDeterminism:
    def test_identical_text_and_fingerprint(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("forms", "/wp-content/plugins/forms/sw.js")
        caching.register_route("/uploads/.*", "cacheFirst", {"cache_name": "up"})
        assembler = _assembler(config, scripts, caching)

        first = assembler.compile(Scope.FRONT)
        second = assembler.compile(Scope.FRONT)
        assert first.text == second.text
        assert first.fingerprint == second.fingerprint

    def test_fingerprint_is_md5_of_text(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        bundle = _assembler(config, scripts, caching).compile(Scope.ADMIN)
        assert bundle.fingerprint == hashlib.md5(bundle.text.encode("utf-8")).hexdigest()

    def test_registries_not_mutated(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        caching.register_precache("/a.css", "1")
        _assembler(config, scripts, caching).compile(Scope.FRONT)
        assert caching.get_precache_entries() == (PrecacheEntry("/a.css", "1"),)
        assert caching.get_routes() == ()

    def test_content_change_changes_fingerprint(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry, site: Path
    ) -> None:
        scripts.register("forms", "/wp-content/plugins/forms/sw.js")
        assembler = _assembler(config, scripts, caching)
        before = assembler.compile(Scope.FRONT).fingerprint

        (site / "wp-content/plugins/forms/sw.js").write_text("changed();", encoding="utf-8")
        assert assembler.compile(Scope.FRONT).fingerprint != before


class TestScripts:
    def test_file_source_embedded(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("forms", "/wp-content/plugins/forms/sw.js")
        bundle = _assembler(config, scripts, caching).compile(Scope.FRONT)

        assert "/* Source forms </wp-content/plugins/forms/sw.js>: */" in bundle.text
        assert "self.formsReady = true;" in bundle.text
        assert bundle.diagnostics == ()

    def test_inline_source_embedded(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("inline", lambda: "inlineMarker();")
        text = _assembler(config, scripts, caching).compile(Scope.FRONT).text
        assert "\n/* Source inline: */\ninlineMarker();\n" in text

    def test_scope_filtering(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("front", lambda: "frontOnly();", scope=Scope.FRONT)
        scripts.register("admin", lambda: "adminOnly();", scope=Scope.ADMIN)
        scripts.register("both", lambda: "everywhere();", scope=Scope.ALL)
        assembler = _assembler(config, scripts, caching)

        front = assembler.compile(Scope.FRONT).text
        admin = assembler.compile(Scope.ADMIN).text
        assert "frontOnly();" in front
        assert "adminOnly();" not in front
        assert "adminOnly();" in admin
        assert "frontOnly();" not in admin
        assert "everywhere();" in front
        assert "everywhere();" in admin

    def test_first_write_wins(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("x", lambda: "sourceA();")
        scripts.register("x", lambda: "sourceB();")
        text = _assembler(config, scripts, caching).compile(Scope.FRONT).text
        assert "sourceA();" in text
        assert "sourceB();" not in text

    def test_dependency_order(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("app", lambda: "appMarker();", ["lib"])
        scripts.register("lib", lambda: "libMarker();")
        text = _assembler(config, scripts, caching).compile(Scope.FRONT).text
        assert text.index("libMarker();") < text.index("appMarker();")

    def test_generators_for_other_scopes_not_called(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        calls: list[str] = []

        def admin_script() -> str:
            calls.append("admin")
            return "admin();"

        scripts.register("admin", admin_script, scope=Scope.ADMIN)
        _assembler(config, scripts, caching).compile(Scope.FRONT)
        assert calls == []

    def test_generator_returning_none(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("empty", lambda: None)
        bundle = _assembler(config, scripts, caching).compile(Scope.FRONT)
        assert "/* Source empty: */" in bundle.text
        assert bundle.diagnostics == ()

    def test_comment_text_sanitized(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("evil*/alert(1)/*", lambda: "")
        text = _assembler(config, scripts, caching).compile(Scope.FRONT).text
        assert "/* Source evil* /alert(1)/*: */" in text


class TestDegradation:
    def test_external_source(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("evil", "https://evil.example/x.js")
        bundle = _assembler(config, scripts, caching).compile(Scope.FRONT)

        assert _invalid("evil") in bundle.text
        assert [(d.code, d.handle) for d in bundle.diagnostics] == [("external_file_url", "evil")]

    def test_traversal_source(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("passwd", "/wp-content/../../etc/passwd")
        bundle = _assembler(config, scripts, caching).compile(Scope.FRONT)
        assert bundle.diagnostics[0].code == "file_path_not_allowed"
        assert "root:" not in bundle.text

    def test_missing_file(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("ghost", "/wp-content/plugins/ghost.js")
        bundle = _assembler(config, scripts, caching).compile(Scope.FRONT)
        assert bundle.diagnostics[0].code == "file_path_not_found"
        assert _invalid("ghost") in bundle.text

    def test_generator_raises(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        def broken() -> str:
            raise RuntimeError("boom")

        scripts.register("broken", broken)
        scripts.register("after", lambda: "stillHere();")
        bundle = _assembler(config, scripts, caching).compile(Scope.FRONT)

        assert _invalid("broken") in bundle.text
        assert "stillHere();" in bundle.text
        assert bundle.diagnostics[0].code == "generator_failed"

    def test_generator_returns_non_string(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("number", lambda: 42)  # type: ignore[arg-type, return-value]
        bundle = _assembler(config, scripts, caching).compile(Scope.FRONT)
        assert bundle.diagnostics[0].code == "invalid_source"

    def test_undecodable_file(
        self,
        config: BundleConfig,
        scripts: ScriptRegistry,
        caching: CachingRouteRegistry,
        site: Path,
    ) -> None:
        (site / "wp-content" / "binary.js").write_bytes(b"\xff\xfe\xfa")
        scripts.register("binary", "/wp-content/binary.js")
        bundle = _assembler(config, scripts, caching).compile(Scope.FRONT)
        assert bundle.diagnostics[0].code == "file_unreadable"

    def test_unresolved_dependency(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        scripts.register("app", lambda: "appMarker();", ["ghost"])
        bundle = _assembler(config, scripts, caching).compile(Scope.FRONT)

        assert "appMarker();" not in bundle.text
        assert bundle.diagnostics[0].code == "unresolved_dependency"
        assert "console.warn(" in bundle.text


class TestRoutes:
    def test_camel_cased_options_and_plugins(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        caching.register_route(
            "/uploads/.*",
            "cache-first",
            {"cache_name": "images", "plugins": {"expiration": {"max_entries": 60}}},
        )
        text = _assembler(config, scripts, caching).compile(Scope.FRONT).text

        assert '"cacheName": "images"' in text
        assert '"maxEntries": 60' in text
        assert "cache_name" not in text
        assert 'new wp.serviceWorker[ "expiration" ].Plugin(' in text
        assert 'registerRoute( new RegExp( "/uploads/.*" ),' in text
        assert 'wp.serviceWorker.strategies[ "cacheFirst" ]( strategyArgs )' in text

    def test_unknown_plugin_absent(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        caching.register_route("/x", "networkFirst", {"plugins": {"totallyUnknownPlugin": {}}})
        text = _assembler(config, scripts, caching).compile(Scope.FRONT).text
        assert "totallyUnknownPlugin" not in text
        assert "strategyArgs.plugins = [];" in text

    def test_one_block_per_route(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        caching.register_route("/a", "cacheFirst")
        caching.register_route("/b", "networkOnly")
        text = _assembler(config, scripts, caching).compile(Scope.ADMIN).text
        assert text.count("const strategyArgs =") == 2
        assert text.index('"/a"') < text.index('"/b"')

    def test_plugin_header_names_emitted_as_written(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        caching.register_route(
            "/api/.*",
            "networkFirst",
            {"plugins": {"cacheable_response": {"headers": {"X-Is-Cacheable": "true"}}}},
        )
        text = _assembler(config, scripts, caching).compile(Scope.FRONT).text
        assert '"X-Is-Cacheable": "true"' in text
        assert "XIsCacheable" not in text

    @pytest.mark.parametrize(
        "options",
        [
            {"plugins": {"cacheable_response": {"statuses": {0, 200}}}},
            {"cache_name": Path("images")},
        ],
    )
    def test_unencodable_options_degrade(
        self,
        config: BundleConfig,
        scripts: ScriptRegistry,
        caching: CachingRouteRegistry,
        options: dict[str, object],
    ) -> None:
        caching.register_route("/bad", "cacheFirst", options)
        caching.register_route("/good", "cacheFirst")

        bundle = _assembler(config, scripts, caching).compile(Scope.FRONT)

        assert [d.code for d in bundle.diagnostics] == ["invalid_options"]
        assert (
            'console.warn( "Caching route \\"/bad\\" has options that cannot be encoded." );'
            in bundle.text
        )
        assert 'registerRoute( new RegExp( "/good" ),' in bundle.text
        assert '"/bad"' not in bundle.text


class TestPrecacheSection:
    def test_error_entries_follow_registered(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        caching.register_precache("/a.css", "1")
        text = _assembler(config, scripts, caching).compile(Scope.FRONT).text
        precache = text[text.index("precacheAndRoute(") :]

        assert precache.index('"/a.css"') < precache.index("?wp_error_template=offline")
        assert precache.index("?wp_error_template=offline") < precache.index("?wp_error_template=500")

    def test_omitted_without_entries(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        assembler = _assembler(
            config, scripts, caching, offline_entry=None, server_error_entry=None
        )
        text = assembler.compile(Scope.FRONT).text
        assert "precacheAndRoute" not in text
        assert "const offlineUrl = null;" in text

    def test_custom_offline_entry(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        assembler = _assembler(
            config, scripts, caching, offline_entry=PrecacheEntry("/offline/", "r1")
        )
        text = assembler.compile(Scope.FRONT).text
        assert 'const offlineUrl = "/offline/";' in text
        assert '"revision": "r1"' in text

    def test_revision_null_when_absent(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        caching.register_precache("/immutable.css")
        text = _assembler(config, scripts, caching).compile(Scope.ADMIN).text
        assert '"revision": null' in text


class TestNavigation:
    def test_preload_enabled_by_default(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        text = _assembler(config, scripts, caching).compile(Scope.FRONT).text
        assert "workbox.navigationPreload.enable();" in text

    def test_preload_disabled(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        assembler = _assembler(config, scripts, caching, navigation=NavigationOptions(False))
        text = assembler.compile(Scope.FRONT).text
        assert "/* Navigation preload disabled. */" in text
        assert "navigationPreload.enable" not in text

    def test_preload_header(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        assembler = _assembler(
            config, scripts, caching, navigation=NavigationOptions("partial")
        )
        text = assembler.compile(Scope.FRONT).text
        assert 'workbox.navigationPreload.enable( "partial" );' in text

    def test_preload_from_config(self, site: Path) -> None:
        config = BundleConfig(site_url="https://example.com", root_dir=site, navigation_preload=False)
        text = _assembler(config, ScriptRegistry(), CachingRouteRegistry()).compile(Scope.FRONT).text
        assert "/* Navigation preload disabled. */" in text

    def test_admin_blacklisted_on_front_only(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        assembler = _assembler(config, scripts, caching)
        pattern = js_literal(admin_blacklist_pattern(config.resolved_admin_url))
        # Encoded inside a JSON array, so compare the escaped body only.
        body = pattern.strip('"')

        assert body in assembler.compile(Scope.FRONT).text
        assert body not in assembler.compile(Scope.ADMIN).text

    def test_extra_blacklist_patterns(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        assembler = _assembler(
            config, scripts, caching, navigation=NavigationOptions(None, ("^/api/",))
        )
        assert '"^/api/"' in assembler.compile(Scope.ADMIN).text


class TestAdminBlacklistPattern:
    def test_pattern(self) -> None:
        assert admin_blacklist_pattern("https://example.com/wp-admin") == (
            r"^\/wp\-admin($|\?.*|/.*)"
        )

    @pytest.mark.parametrize("path", ["/wp-admin", "/wp-admin/", "/wp-admin/edit.php", "/wp-admin?x=1"])
    def test_matches_admin_paths(self, path: str) -> None:
        assert re.match(admin_blacklist_pattern("https://example.com/wp-admin/"), path)

    @pytest.mark.parametrize("path", ["/wp-administrator", "/blog/wp-admin", "/"])
    def test_ignores_other_paths(self, path: str) -> None:
        assert not re.match(admin_blacklist_pattern("https://example.com/wp-admin"), path)


class TestScopeValidation:
    @pytest.mark.parametrize("scope", [Scope.ALL, 0, 7, None])
    def test_invalid_scope_raises(
        self,
        config: BundleConfig,
        scripts: ScriptRegistry,
        caching: CachingRouteRegistry,
        scope: object,
    ) -> None:
        calls: list[str] = []
        scripts.register("x", lambda: calls.append("x") or "")
        with pytest.raises(InvalidScopeError):
            _assembler(config, scripts, caching).compile(scope)  # type: ignore[arg-type]
        assert calls == []

    def test_invalid_scope_is_value_error(
        self, config: BundleConfig, scripts: ScriptRegistry, caching: CachingRouteRegistry
    ) -> None:
        with pytest.raises(ValueError):
            _assembler(config, scripts, caching).compile(Scope.ALL)
