"""Tagged results for registration and resolution.

Every registration call and every path validation returns one of three
immutable variants, so callers can branch on the outcome instead of
scraping log output:

- ``Ok(value)`` — accepted as given.
- ``Warned(reason, value)`` — accepted with a fallback or with parts dropped.
- ``Rejected(reason, message)`` — nothing was stored.

``Ok`` and ``Warned`` are truthy and ``Rejected`` is falsy, which keeps
the plain ``register(...) -> bool`` contract::

    if not registry.register("offline", source):
        ...
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Accepted without changes."""

    value: T

    @property
    def reason(self) -> None:
        return None

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Warned[T]:
    """Accepted, but with a fallback applied or parts of the input dropped.

    ``details`` carries one human-readable line per dropped or replaced item.
    """

    reason: str
    value: T
    details: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Rejected:
    """Refused; nothing was stored or produced."""

    reason: str
    message: str = ""

    @property
    def value(self) -> None:
        return None

    def __bool__(self) -> bool:
        return False


type Outcome[T] = Ok[T] | Warned[T] | Rejected
