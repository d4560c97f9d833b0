"""Bundle compilation: section templates, script assembly, fingerprints."""

from swbundle.compiler.assembler import (
    BundleAssembler,
    CompiledBundle,
    Diagnostic,
    NavigationOptions,
    admin_blacklist_pattern,
    fingerprint,
)
from swbundle.compiler.environment import create_environment
from swbundle.compiler.identity import SiteIdentity, default_error_entries

__all__ = [
    "BundleAssembler",
    "CompiledBundle",
    "Diagnostic",
    "NavigationOptions",
    "SiteIdentity",
    "admin_blacklist_pattern",
    "create_environment",
    "default_error_entries",
    "fingerprint",
]
