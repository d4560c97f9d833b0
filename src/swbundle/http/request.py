"""Immutable HTTP request.

The service worker endpoint never reads a body, so a request is only its
frozen metadata.
"""

from __future__ import annotations

from dataclasses import dataclass

from swbundle._internal.asgi import ASGIScope
from swbundle.http.headers import Headers
from swbundle.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request, frozen at creation."""

    method: str
    path: str
    headers: Headers
    query: QueryParams
    http_version: str = "1.1"
    client: tuple[str, int] | None = None

    @property
    def if_none_match(self) -> str | None:
        """The conditional-request token, or ``None`` when absent."""
        return self.headers.get("if-none-match")

    @property
    def url(self) -> str:
        """Request path plus query string."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    @classmethod
    def from_asgi(cls, scope: ASGIScope) -> Request:
        """Create a Request from an ASGI HTTP scope."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
        )
