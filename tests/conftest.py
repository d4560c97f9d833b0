"""Shared fixtures: a throwaway site tree and a config pointing at it."""

from pathlib import Path

import pytest

from swbundle.config import BundleConfig

FORMS_JS = "self.formsReady = true;\n"
CORE_JS = "self.coreReady = true;\n"
ADMIN_JS = "self.adminReady = true;\n"


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A minimal document root with content, includes and admin scripts."""
    root = tmp_path / "site"
    forms = root / "wp-content" / "plugins" / "forms"
    forms.mkdir(parents=True)
    (forms / "sw.js").write_text(FORMS_JS, encoding="utf-8")

    includes = root / "wp-includes" / "js"
    includes.mkdir(parents=True)
    (includes / "core-sw.js").write_text(CORE_JS, encoding="utf-8")

    admin = root / "wp-admin" / "js"
    admin.mkdir(parents=True)
    (admin / "admin-sw.js").write_text(ADMIN_JS, encoding="utf-8")
    return root


@pytest.fixture
def config(site: Path) -> BundleConfig:
    return BundleConfig(site_url="https://example.com", root_dir=site)
