"""Query string parameters. Blank values are kept, so ``?x=`` yields ``""``."""

from urllib.parse import parse_qsl

from swbundle._internal.multimap import MultiValueMapping


class QueryParams(MultiValueMapping):
    __slots__ = ("_raw",)

    def __init__(self, query_string: bytes = b"") -> None:
        super().__init__(parse_qsl(query_string.decode("latin-1"), keep_blank_values=True))
        self._raw = query_string

    @property
    def raw(self) -> bytes:
        return self._raw
