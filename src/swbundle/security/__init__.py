"""Security utilities for swbundle.

Script-source validation::

    from swbundle.security import PathValidator, RejectionCode

    validator = PathValidator.from_config(config)
    result = validator.validate("https://cdn.example/x.js")
    assert result.reason == RejectionCode.EXTERNAL_FILE_URL
"""

from swbundle.security.paths import (
    AssetRoot,
    PathValidator,
    RejectionCode,
    fold_host,
    strip_scheme,
)

__all__ = [
    "AssetRoot",
    "PathValidator",
    "RejectionCode",
    "fold_host",
    "strip_scheme",
]
