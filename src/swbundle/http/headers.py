"""Request headers, decoded once from the ASGI scope."""

from swbundle._internal.multimap import MultiValueMapping


class Headers(MultiValueMapping):
    """Case-insensitive request headers.

    Keeps the raw byte pairs for logging and re-sending.
    """

    __slots__ = ("_raw",)

    _fold_case = True

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        super().__init__((name.decode("latin-1"), value.decode("latin-1")) for name, value in raw)
        self._raw = raw

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        return self._raw
