"""Word-separated to camel-case key rewriting.

The compiled script configures a JavaScript library, so option keys must
be camel-case identifiers. Integrators may write either form; both
``cache_name`` and ``cache-name`` become ``cacheName``, and keys already
in camel case pass through unchanged.
"""

import re
from collections.abc import Collection, Mapping
from typing import Any

_SEPARATOR = re.compile(r"(?<=[A-Za-z0-9])[_-]+([A-Za-z])")


def camelize(name: str) -> str:
    """Uppercase the letter after each separator and drop the separator.

    >>> camelize("max_age_seconds")
    'maxAgeSeconds'
    >>> camelize("background-sync")
    'backgroundSync'
    >>> camelize("cacheName")
    'cacheName'
    """
    return _SEPARATOR.sub(lambda m: m.group(1).upper(), name)


def camelize_keys(
    options: Mapping[str, Any],
    *,
    recursive: bool = False,
    verbatim: Collection[str] = (),
) -> dict[str, Any]:
    """Return a copy of *options* with every key camelized.

    With ``recursive=True`` nested mappings (including those inside lists)
    are rewritten too, except the values of keys named in *verbatim*
    (matched after camelizing). Those hold data such as header names and
    are copied unchanged. Later keys win when two spellings collapse to
    the same name.
    """
    result: dict[str, Any] = {}
    for key, value in options.items():
        name = camelize(key) if isinstance(key, str) else key
        if recursive and name not in verbatim:
            value = _rewrite(value, verbatim)
        result[name] = value
    return result


def _rewrite(value: Any, verbatim: Collection[str]) -> Any:
    if isinstance(value, Mapping):
        return camelize_keys(value, recursive=True, verbatim=verbatim)
    if isinstance(value, (list, tuple)):
        return [_rewrite(item, verbatim) for item in value]
    return value
