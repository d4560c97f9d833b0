"""swbundle exception hierarchy.

Only programmer and protocol errors are raised. Degradable outcomes from
registration and path validation are returned as values (see
``swbundle.outcome``) so a single bad contribution never aborts a compile.
"""

from dataclasses import dataclass


class SWBundleError(Exception):
    """Base for all swbundle-specific errors."""


class ConfigurationError(SWBundleError):
    """Raised when bundle configuration is invalid.

    Typically caught during ``App._freeze()`` at startup.
    """


class InvalidScopeError(SWBundleError, ValueError):
    """Raised when a compile is requested for a scope other than FRONT or ADMIN."""


@dataclass(frozen=True, slots=True)
class HTTPError(SWBundleError):
    """An error that maps directly to an HTTP status code.

    The ASGI app catches these and answers with the status, the detail as
    body, and any extra headers.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — the request path is not the service worker endpoint."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """405 — the endpoint only answers GET and HEAD."""

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        super().__init__(
            status=405,
            detail=detail or f"Method not allowed. Allowed methods: {allow_value}",
            headers=(("Allow", allow_value),),
        )
