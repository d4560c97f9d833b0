"""Navigation scopes a bundle and its rules apply to.

Scopes are bit flags: ``ALL`` is the union of ``FRONT`` and ``ADMIN``, and
eligibility is always tested with a bitwise AND::

    >>> bool(Scope.ALL & Scope.FRONT)
    True
    >>> bool(Scope.ADMIN & Scope.FRONT)
    False
"""

from enum import IntFlag


class Scope(IntFlag):
    """Front-end site, administrative area, or both."""

    FRONT = 1
    ADMIN = 2
    ALL = 3


REGISTRABLE_SCOPES: frozenset[int] = frozenset({Scope.FRONT, Scope.ADMIN, Scope.ALL})
SERVABLE_SCOPES: frozenset[int] = frozenset({Scope.FRONT, Scope.ADMIN})

_NAMES = {"front": Scope.FRONT, "admin": Scope.ADMIN, "all": Scope.ALL}


def coerce_scope(value: object) -> Scope | None:
    """Return *value* as a registrable ``Scope``, or ``None`` if it is not one.

    Accepts ``Scope`` members and the plain integers 1, 2 and 3. Booleans
    are rejected even though they are ints.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value not in REGISTRABLE_SCOPES:
        return None
    return Scope(value)


def parse_scope(raw: str | None) -> Scope | None:
    """Parse a request or CLI scope value into a servable scope.

    Numeric strings (``"1"``, ``"2"``) and names (``"front"``, ``"admin"``)
    are understood. Anything else, including ``ALL``, yields ``None``.
    """
    if raw is None:
        return None
    text = raw.strip().lower()
    if text in _NAMES:
        scope = _NAMES[text]
    else:
        try:
            scope = coerce_scope(int(text))
        except ValueError:
            return None
    if scope is None or scope not in SERVABLE_SCOPES:
        return None
    return scope
