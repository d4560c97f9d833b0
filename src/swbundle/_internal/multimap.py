"""Read-only multi-valued string mapping shared by Headers and QueryParams.

``__getitem__`` returns the first value for a key; ``get_list`` returns
all of them in the order they arrived.
"""

from collections.abc import Iterable, Iterator, Mapping


class MultiValueMapping(Mapping[str, str]):
    """Decoded ``(name, value)`` pairs grouped by name.

    Subclasses set ``_fold_case`` to compare names case-insensitively;
    folded names are stored and iterated in lower case.
    """

    __slots__ = ("_data",)

    _fold_case: bool = False

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        data: dict[str, list[str]] = {}
        for name, value in pairs:
            data.setdefault(self._key(name), []).append(value)
        self._data = data

    def _key(self, name: str) -> str:
        return name.lower() if self._fold_case else name

    def __getitem__(self, key: str) -> str:
        return self._data[self._key(key)][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._key(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self._data.items())
        return f"{type(self).__name__}({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._data.get(self._key(key))
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        return list(self._data.get(self._key(key), ()))
