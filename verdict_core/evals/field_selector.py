"""
Field selection for result records.

FieldSelector keeps the ordered list of dotted field paths a definition
evaluates, the aliases that rename them, and extracts their values from
nested result records. Extraction is fail-fast: a missing segment raises
FieldNotFoundError instead of producing None.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Any, Mapping, Sequence

from verdict_core.domain.exceptions import (
    DuplicateAliasError,
    FieldNotFoundError,
    InvalidPathError,
)

_MISSING = object()


def validate_path(path: Any) -> str:
    """Raise InvalidPathError unless `path` is a well-formed dotted path."""
    if path is None:
        raise InvalidPathError(path, "path is None")
    if not isinstance(path, str):
        raise InvalidPathError(path, f"expected a string, got {type(path).__name__}")
    if not path.strip():
        raise InvalidPathError(path, "path is empty")
    if path.startswith("."):
        raise InvalidPathError(path, "leading dot")
    if path.endswith("."):
        raise InvalidPathError(path, "trailing dot")
    if ".." in path:
        raise InvalidPathError(path, "consecutive dots")
    return path


@lru_cache(maxsize=4096)
def _split_path(path: str) -> tuple[str, ...]:
    return tuple(path.split("."))


def parse_path(path: str) -> tuple[str, ...]:
    """Split a dotted path into segments. Cached per path string."""
    return _split_path(validate_path(path))


def key_name(key: Any) -> str:
    """Canonical string form of a mapping key."""
    if isinstance(key, str):
        return key
    if isinstance(key, Enum):
        return str(key.value)
    if isinstance(key, bytes):
        return key.decode("utf-8", errors="replace")
    return str(key)


def _lookup(container: Any, segment: str) -> Any:
    if isinstance(container, Mapping):
        if segment in container:
            return container[segment]
        for key, value in container.items():
            if key_name(key) == segment:
                return value
        return _MISSING

    if isinstance(container, Sequence) and not isinstance(container, (str, bytes)):
        try:
            index = int(segment)
        except ValueError:
            return _MISSING
        try:
            return container[index]
        except IndexError:
            return _MISSING

    return _MISSING


def extract_value(path: str, result: Any) -> Any:
    """
    Walk `path` through `result`.

    String, enum and bytes keys are interchangeable; list elements are
    addressed with integer segments.

    Raises:
        FieldNotFoundError: as soon as a segment is absent.
    """
    current = result
    for segment in parse_path(path):
        current = _lookup(current, segment)
        if current is _MISSING:
            raise FieldNotFoundError(path, segment)
    return current


def field_exists(path: str, result: Any) -> bool:
    """Check whether `path` resolves in `result` without raising."""
    try:
        extract_value(path, result)
    except FieldNotFoundError:
        return False
    return True


class FieldSelector:
    """
    Ordered registry of selected field paths and their aliases.

    Usage:
        selector = FieldSelector()
        selector.add_field("output")
        selector.add_field("usage.total_tokens", as_="tokens")
        selector.extract_all(record)  # {"output": ..., "tokens": ...}
    """

    def __init__(self):
        self._fields: list[str] = []
        self._aliases: dict[str, str] = {}

    @property
    def fields(self) -> list[str]:
        return list(self._fields)

    @property
    def aliases(self) -> dict[str, str]:
        return dict(self._aliases)

    def add_field(self, path: str, as_: str | None = None) -> str:
        """
        Register a field path, optionally under an alias.

        Args:
            path: Dotted path into the result record.
            as_: Optional alias used as the field's name in results.

        Returns:
            The name the field will be reported under.

        Raises:
            InvalidPathError: If the path is malformed.
            DuplicateAliasError: If the alias already maps to another path.
        """
        validate_path(path)

        if as_ is not None:
            existing = self._aliases.get(as_)
            if existing is not None and existing != path:
                raise DuplicateAliasError(as_, existing, path)
            self._aliases[as_] = path

        if path not in self._fields:
            self._fields.append(path)

        return as_ or self.name_for(path)

    def parse_path(self, path: str) -> tuple[str, ...]:
        return parse_path(path)

    def extract_value(self, path: str, result: Any) -> Any:
        return extract_value(self.resolve_alias(path), result)

    def resolve_alias(self, name: str) -> str:
        """Return the path an alias points to; unknown names are returned as-is."""
        return self._aliases.get(name, name)

    def name_for(self, path: str) -> str:
        """Return the alias bound to `path`, or the path itself."""
        for alias, target in self._aliases.items():
            if target == path:
                return alias
        return path

    def is_selected(self, name: str) -> bool:
        return self.resolve_alias(name) in self._fields

    def extract_all(self, result: Any) -> dict[str, Any]:
        """Extract every selected field, keyed by alias (or path)."""
        return {self.name_for(path): extract_value(path, result) for path in self._fields}
