"""Key-based redaction of arbitrary log payloads.

This module masks the values stored under sensitive keys before a payload
reaches any local sink. Matching is exact on mapping keys, applies at every
depth, and never looks at sequence positions or at the values themselves.

Payloads form a closed union of three shapes:
- mappings (any ``collections.abc.Mapping``)
- ordered sequences (``list`` and ``tuple``)
- primitives (everything else, passed through untouched)
"""

import threading
from collections.abc import Iterable, Iterator, Mapping
from functools import singledispatch
from typing import Any

DEFAULT_MASK = "*"


class Blacklist:
    """Thread-safe set of field names whose values must be masked.

    Writers swap an immutable snapshot under a lock, so sanitize calls that
    are already running keep using the snapshot they started with.
    """

    def __init__(self, names: Iterable[str] | None = None) -> None:
        self._lock = threading.Lock()
        self._names: tuple[str, ...] = tuple(names or ())
        self._snapshot: frozenset[str] = frozenset(self._names)

    def get(self) -> list[str]:
        """Return the current names in insertion order."""
        with self._lock:
            return list(self._names)

    def snapshot(self) -> frozenset[str]:
        """Return an immutable view for membership tests."""
        with self._lock:
            return self._snapshot

    def replace(self, names: Iterable[str]) -> None:
        with self._lock:
            self._set(tuple(names))

    def extend(self, names: Iterable[str]) -> None:
        with self._lock:
            self._set(self._names + tuple(names))

    def remove(self, name: str) -> None:
        """Remove every entry equal to ``name``. Unknown names are ignored."""
        with self._lock:
            self._set(tuple(n for n in self._names if n != name))

    def _set(self, names: tuple[str, ...]) -> None:
        self._names = names
        self._snapshot = frozenset(names)

    def __contains__(self, name: object) -> bool:
        return name in self.snapshot()

    def __iter__(self) -> Iterator[str]:
        return iter(self.get())

    def __len__(self) -> int:
        return len(self.snapshot())

    def __repr__(self) -> str:
        return f"Blacklist({self.get()!r})"


def sanitize(payload: Any, blacklist: Iterable[str], mask: str = DEFAULT_MASK) -> Any:
    """Return a copy of ``payload`` with blacklisted values replaced by ``mask``.

    The result has the same shape as the input: same keys, same container
    kinds, same primitives. Subclasses of ``dict``, ``list`` and ``tuple``
    (``OrderedDict``, named tuples) keep their type when they can be rebuilt
    from their items; any other mapping comes back as a ``dict``.

    A value found under a blacklisted key is replaced as a whole and not
    traversed further. A container that refers back to one of its ancestors
    is replaced by ``mask``.

    Args:
        payload: Any value to log
        blacklist: Field names to mask (exact match)
        mask: Replacement token

    Returns:
        The sanitized payload

    Example:
        >>> sanitize({"user": "a", "password": "secret"}, ["password"], "*")
        {'user': 'a', 'password': '*'}
    """
    names = blacklist if isinstance(blacklist, frozenset) else frozenset(blacklist)
    return _sanitize(payload, names, mask, set())


@singledispatch
def _sanitize(value: Any, names: frozenset, mask: str, path: set[int]) -> Any:
    # Primitives and unknown objects
    return value


@_sanitize.register(Mapping)
def _sanitize_mapping(value: Mapping, names: frozenset, mask: str, path: set[int]) -> Any:
    if id(value) in path:
        return mask

    path.add(id(value))
    try:
        sanitized: dict[Any, Any] = {}
        for key, item in value.items():
            if _is_blacklisted(key, names):
                sanitized[key] = mask
            else:
                sanitized[key] = _sanitize(item, names, mask, path)
        return _rebuild(value, sanitized, dict)
    finally:
        path.discard(id(value))


@_sanitize.register(list)
@_sanitize.register(tuple)
def _sanitize_sequence(value: list | tuple, names: frozenset, mask: str, path: set[int]) -> Any:
    if id(value) in path:
        return mask

    path.add(id(value))
    try:
        items = [_sanitize(item, names, mask, path) for item in value]
    finally:
        path.discard(id(value))

    if isinstance(value, list):
        return _rebuild(value, items, list)
    if hasattr(value, "_make"):
        # Named tuples take their fields positionally
        return _rebuild(value, items, tuple, type(value)._make)
    return _rebuild(value, items, tuple)


def _rebuild(original: Any, items: Any, base: type, factory: Any = None) -> Any:
    """Rebuild ``items`` as ``type(original)`` when it subclasses ``base``.

    Other mapping types, and subclasses whose constructor rejects the items
    (``defaultdict`` for one), come back as a plain ``base``.
    """
    if type(original) is base or not isinstance(original, base):
        return items if type(items) is base else base(items)
    try:
        return (factory or type(original))(items)
    except (TypeError, ValueError):
        return base(items)


def _is_blacklisted(key: Any, names: frozenset) -> bool:
    try:
        return key in names
    except TypeError:
        # Unhashable keys cannot be in the blacklist
        return False
