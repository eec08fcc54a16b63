"""Ordered header mapping supporting bare (valueless) entries."""

from __future__ import annotations

from typing import Iterator, Mapping

from ..settings import load_default_headers


class HeaderSet:
    """Mapping of header name to an optional value.

    Names are unique and compared case-insensitively; setting an existing name
    replaces its value and takes the new spelling. A ``None`` value marks a
    bare header, rendered as the name alone.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, str | None] | None = None) -> None:
        # lowercased name -> (name as written, value)
        self._entries: dict[str, tuple[str, str | None]] = {}
        if entries:
            for name, value in entries.items():
                self.set(name, value)

    def set(self, name: str, value: object | None = None) -> "HeaderSet":
        key = str(name).strip()
        if not key:
            raise ValueError("Header name cannot be empty")
        text = None if value is None else str(value)
        if _has_line_break(key) or (text is not None and _has_line_break(text)):
            raise ValueError(f"Header {key!r} contains a line break")
        self._entries[key.lower()] = (key, text)
        return self

    def unset(self, name: str) -> "HeaderSet":
        self._entries.pop(str(name).strip().lower(), None)
        return self

    def get(self, name: str, default: str | None = None) -> str | None:
        entry = self._entries.get(str(name).strip().lower())
        return default if entry is None else entry[1]

    def find(self, name: str) -> tuple[str, str | None] | None:
        """Case-insensitive lookup returning the stored ``(name, value)``."""

        return self._entries.get(str(name).strip().lower())

    def lines(self) -> list[str]:
        return [key if value is None else f"{key}: {value}" for key, value in self._entries.values()]

    def pairs(self) -> list[tuple[str, str]]:
        """Name/value pairs for clients that cannot emit bare header lines.

        A bare entry written in compact form (``"X-Id: 42"``) is split on its
        first colon; other bare entries get an empty value.
        """

        result: list[tuple[str, str]] = []
        for key, value in self._entries.values():
            if value is not None:
                result.append((key, value))
                continue
            name, sep, rest = key.partition(":")
            result.append((name.strip(), rest.strip() if sep else ""))
        return result

    def copy(self) -> "HeaderSet":
        clone = HeaderSet()
        clone._entries = dict(self._entries)
        return clone

    def clear(self) -> None:
        self._entries.clear()

    def as_dict(self) -> dict[str, str | None]:
        return dict(self._entries.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._entries

    def __getitem__(self, name: str) -> str | None:
        return self._entries[str(name).strip().lower()][1]

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HeaderSet):
            return self.as_dict() == other.as_dict()
        if isinstance(other, Mapping):
            return self.as_dict() == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"HeaderSet({self.as_dict()!r})"


def _has_line_break(text: str) -> bool:
    return "\r" in text or "\n" in text


def default_headers(overrides: Mapping[str, str | None] | None = None) -> HeaderSet:
    """Return a fresh header set seeded with the packaged defaults."""

    headers = HeaderSet(load_default_headers())
    if overrides:
        for name, value in overrides.items():
            headers.set(name, value)
    return headers


__all__ = ["HeaderSet", "default_headers"]
