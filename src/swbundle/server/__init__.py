"""Conditional serving of compiled bundles and ASGI response sending."""

from swbundle.server.conditional import (
    INVALID_SCOPE_BODY,
    ConditionalResponseServer,
    Served,
    ServeState,
    banner_for,
)
from swbundle.server.sender import send_response

__all__ = [
    "INVALID_SCOPE_BODY",
    "ConditionalResponseServer",
    "ServeState",
    "Served",
    "banner_for",
    "send_response",
]
