"""ErrorReport — multi-valued findings keyed by field path.

A path may collect several messages; adding a finding never replaces an
earlier one at the same path. Paths use dotted/indexed notation such as
``fulfillments[0].vehicle.category``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any


def format_path(parts: Iterable[Any]) -> str:
    """Join path segments into dotted/indexed notation.

    Examples:
        >>> format_path(["message", "order", "items", 0, "price"])
        'message.order.items[0].price'
        >>> format_path([])
        ''
    """
    out = ""
    for part in parts:
        if isinstance(part, int):
            out += f"[{part}]"
        elif out:
            out += f".{part}"
        else:
            out = str(part)
    return out


def join_path(prefix: str, suffix: str) -> str:
    """Append *suffix* to *prefix*, handling index suffixes and empties."""
    if not prefix:
        return suffix
    if not suffix:
        return prefix
    if suffix.startswith("["):
        return f"{prefix}{suffix}"
    return f"{prefix}.{suffix}"


class ErrorReport:
    """Ordered path → messages mapping.

    Insertion order of paths is preserved. Duplicate messages at the
    same path are collapsed so repeated rules don't inflate the report.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, str | Sequence[str]] | None = None) -> None:
        self._entries: dict[str, list[str]] = {}
        if entries:
            for path, messages in entries.items():
                if isinstance(messages, str):
                    self.add(path, messages)
                else:
                    for message in messages:
                        self.add(path, message)

    def add(self, path: str, message: str) -> None:
        """Record *message* at *path*."""
        bucket = self._entries.setdefault(path, [])
        if message not in bucket:
            bucket.append(message)

    def merge(self, other: ErrorReport, *, prefix: str = "") -> None:
        """Merge every finding of *other*, optionally re-rooted under *prefix*."""
        for path, messages in other.items():
            target = join_path(prefix, path)
            for message in messages:
                self.add(target, message)

    def items(self) -> Iterator[tuple[str, list[str]]]:
        for path, messages in self._entries.items():
            yield path, list(messages)

    def paths(self) -> list[str]:
        return list(self._entries)

    def messages(self, path: str) -> list[str]:
        """Messages recorded at *path* (empty list if none)."""
        return list(self._entries.get(path, []))

    def count(self) -> int:
        """Total number of findings across all paths."""
        return sum(len(m) for m in self._entries.values())

    def as_dict(self) -> dict[str, list[str]]:
        return {path: list(messages) for path, messages in self._entries.items()}

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ErrorReport):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"ErrorReport({self._entries!r})"
