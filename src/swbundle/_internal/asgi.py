"""Raw ASGI callable types.

``ASGIScope`` is the connection scope dict, not ``swbundle.scope.Scope``
(the front/admin navigation flag).
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

ASGIScope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]
