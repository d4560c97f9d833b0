"""Script registry — the idempotent store of service worker script fragments.

Each entry is either an inline generator (a zero-argument callable that
returns script text at compile time) or a reference to a file under one
of the trusted asset roots. Entries carry a scope bitmask and the handles
they depend on.

Handles are unique and the first registration wins: re-registering an
existing handle is a silent no-op, so the order contributors run in
decides which definition sticks.
"""

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field

from swbundle.outcome import Ok, Outcome, Rejected, Warned
from swbundle.scope import Scope, coerce_scope

logger = logging.getLogger("swbundle.registry")

type ScriptSource = Callable[[], str | None] | str


@dataclass(frozen=True, slots=True)
class ScriptEntry:
    """A registered script fragment. Read-only once stored."""

    handle: str
    source: ScriptSource
    dependencies: tuple[str, ...] = ()
    scope: Scope = Scope.ALL

    @property
    def is_inline(self) -> bool:
        return callable(self.source)


@dataclass(frozen=True, slots=True)
class Resolution:
    """Scope-filtered handles in dependency order, plus what was left out.

    ``skipped`` maps each omitted handle to the reason it could not be
    placed (missing dependency, out-of-scope dependency, or a cycle).
    """

    handles: tuple[str, ...]
    skipped: dict[str, str] = field(default_factory=dict)


class ScriptRegistry:
    """Ordered, first-writer-wins store of ``ScriptEntry`` values."""

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[str, ScriptEntry] = {}

    def register(
        self,
        handle: str,
        source: ScriptSource,
        dependencies: Iterable[str] = (),
        scope: Scope | int = Scope.ALL,
    ) -> Outcome[ScriptEntry]:
        """Store a script fragment under *handle*.

        Returns ``Rejected`` for an empty handle or a handle that is already
        registered. An unknown *scope* is replaced by ``Scope.ALL`` and the
        entry is stored with a ``Warned`` outcome.
        """
        if not isinstance(handle, str) or not handle:
            return Rejected("invalid_handle", "Script handle must be a non-empty string.")
        if handle in self._entries:
            return Rejected("duplicate_handle", f"Script handle {handle!r} is already registered.")

        resolved_scope = coerce_scope(scope)
        deps = tuple(dict.fromkeys(d for d in dependencies if d != handle))
        if resolved_scope is None:
            valid = ", ".join(str(int(s)) for s in (Scope.FRONT, Scope.ADMIN, Scope.ALL))
            message = f"Scope must be one out of {valid}."
            logger.warning("Script %r registered with invalid scope %r: %s", handle, scope, message)
            entry = ScriptEntry(handle, source, deps, Scope.ALL)
            self._entries[handle] = entry
            return Warned("invalid_scope", entry, (message,))

        entry = ScriptEntry(handle, source, deps, resolved_scope)
        self._entries[handle] = entry
        return Ok(entry)

    def get(self, handle: str) -> ScriptEntry | None:
        """Look up an entry by handle. Returns ``None`` if not registered."""
        return self._entries.get(handle)

    def resolve(self, scope: Scope) -> Resolution:
        """Order every entry whose scope intersects *scope*.

        Dependencies come before their dependents; otherwise registration
        order is kept. A dependency must itself be registered and in scope,
        or the dependent (and anything depending on it) is skipped.
        """
        eligible = {h: e for h, e in self._entries.items() if e.scope & scope}
        ordered: list[str] = []
        placed: set[str] = set()
        skipped: dict[str, str] = {}

        for handle in eligible:
            if handle not in placed and handle not in skipped:
                self._place(handle, eligible, ordered, placed, skipped)

        for handle, reason in skipped.items():
            logger.warning("Skipping service worker script %r: %s", handle, reason)

        return Resolution(tuple(ordered), skipped)

    def _place(
        self,
        root: str,
        eligible: dict[str, ScriptEntry],
        ordered: list[str],
        placed: set[str],
        skipped: dict[str, str],
    ) -> None:
        """Place *root* after its dependencies, depth-first on an explicit stack.

        ``trail`` mirrors the stack's handles. When a dependency fails,
        every handle on the trail is skipped, innermost first.
        """
        stack: list[tuple[str, Iterator[str]]] = [(root, iter(eligible[root].dependencies))]
        trail: list[str] = [root]

        while stack:
            handle, pending = stack[-1]
            failure: str | None = None
            descend: str | None = None
            for dep in pending:
                if dep in placed:
                    continue
                if dep not in self._entries:
                    failure = f"missing dependency {dep!r}"
                elif dep not in eligible:
                    failure = f"dependency {dep!r} is not registered for this scope"
                elif dep in trail:
                    skipped[dep] = f"circular dependency: {' -> '.join((*trail, dep))}"
                    failure = f"dependency {dep!r} could not be resolved"
                elif dep in skipped:
                    failure = f"dependency {dep!r} could not be resolved"
                else:
                    descend = dep
                break

            if descend is not None:
                stack.append((descend, iter(eligible[descend].dependencies)))
                trail.append(descend)
                continue

            stack.pop()
            trail.pop()
            if failure is None:
                placed.add(handle)
                ordered.append(handle)
                continue

            skipped.setdefault(handle, failure)
            child = handle
            while stack:
                parent, _ = stack.pop()
                trail.pop()
                skipped.setdefault(parent, f"dependency {child!r} could not be resolved")
                child = parent

    def resolve_for_scope(self, scope: Scope) -> list[str]:
        """Handles for *scope* in dependency order."""
        return list(self.resolve(scope).handles)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, handle: object) -> bool:
        return handle in self._entries

    def __iter__(self) -> Iterator[ScriptEntry]:
        return iter(self._entries.values())
