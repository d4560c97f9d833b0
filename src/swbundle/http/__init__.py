"""Immutable request and response types for the service worker endpoint."""

from swbundle.http.headers import Headers
from swbundle.http.query import QueryParams
from swbundle.http.request import Request
from swbundle.http.response import Response

__all__ = ["Headers", "QueryParams", "Request", "Response"]
