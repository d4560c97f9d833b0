"""Conditional serving of a compiled bundle.

Every request recompiles; the fingerprint only saves bandwidth. A request
moves through a fixed set of states and ends either at the 400
short-circuit or at a 200/304 response::

    AWAITING_REQUEST -> SCOPE_VALIDATED -> COMPILED -> NEGOTIATED -> RESPONDED
            \\-> REJECTED (400, nothing compiled)
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from swbundle.compiler.assembler import BundleAssembler, CompiledBundle
from swbundle.http.response import JAVASCRIPT, Response
from swbundle.scope import SERVABLE_SCOPES, Scope, coerce_scope

logger = logging.getLogger("swbundle.server")

INVALID_SCOPE_BODY = "/* invalid_scope_requested */"


class ServeState(Enum):
    AWAITING_REQUEST = "awaiting_request"
    SCOPE_VALIDATED = "scope_validated"
    COMPILED = "compiled"
    NEGOTIATED = "negotiated"
    RESPONDED = "responded"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class Served:
    """Outcome of one ``negotiate`` call."""

    state: ServeState
    response: Response
    bundle: CompiledBundle | None = None

    @property
    def not_modified(self) -> bool:
        return self.response.status == 304


class ConditionalResponseServer:
    """Validates the scope, compiles, and answers 200, 304 or 400.

    ``prepare`` is called with a validated scope and returns the assembler
    for it; this is where the registration phase runs. It is never called
    for an invalid scope, so a bad request reads no files and leaves every
    registry untouched.
    """

    __slots__ = ("_banner", "_prepare")

    def __init__(
        self,
        prepare: Callable[[Scope], BundleAssembler],
        *,
        banner: str = "",
    ) -> None:
        self._prepare = prepare
        self._banner = banner

    def serve(self, scope: Scope | int | None, if_none_match: str | None = None) -> Response:
        """Answer a bundle request for *scope*."""
        return self.negotiate(scope, if_none_match).response

    def negotiate(self, scope: Scope | int | None, if_none_match: str | None = None) -> Served:
        """Like ``serve``, but also report the terminal state and the bundle."""
        _enter(ServeState.AWAITING_REQUEST, scope)
        resolved = coerce_scope(scope)
        if resolved is None or resolved not in SERVABLE_SCOPES:
            _enter(ServeState.REJECTED, scope)
            response = _base_response(INVALID_SCOPE_BODY).with_status(400)
            return Served(ServeState.REJECTED, response)

        _enter(ServeState.SCOPE_VALIDATED, resolved)
        bundle = self._prepare(resolved).compile(resolved)
        _enter(ServeState.COMPILED, resolved)

        response = _base_response().with_header("ETag", bundle.fingerprint)
        token = if_none_match.strip() if if_none_match else ""
        _enter(ServeState.NEGOTIATED, resolved)

        if token and token == bundle.fingerprint:
            logger.debug("%s bundle not modified (%s)", resolved.name, bundle.fingerprint)
            response = response.with_status(304)
        else:
            response = response.with_body(self._banner + bundle.text)

        logger.debug(
            "Served %s bundle: status=%d etag=%s", resolved.name, response.status, bundle.fingerprint
        )
        return Served(ServeState.RESPONDED, response, bundle)


def banner_for(version: str) -> str:
    """Comment line placed before the bundle in a 200 body."""
    return f"/* swbundle v{version} */\n"


def _base_response(body: str = "") -> Response:
    return Response(body=body, content_type=JAVASCRIPT).with_header("Cache-Control", "no-cache")


def _enter(state: ServeState, scope: object) -> None:
    label = scope.name if isinstance(scope, Scope) else repr(scope)
    logger.debug("%s bundle request: %s", label, state.value)
