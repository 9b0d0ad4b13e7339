"""Read-only, case-insensitive access to a loaded INF descriptor."""

from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from types import TracebackType
from typing import Self

from ..exceptions import (
    FormatError,
    NoMoreItemsError,
    NotFoundError,
    OutOfRangeError,
    PlatformError,
)
from ..models import MAX_SECTION_NAME_LENGTH, Cursor, Line
from .reader import RawSection, parse_sections, read_text


def _matches_key(line: Line, key: str | None) -> bool:
    if key is None:
        return True
    return line.key is not None and line.key.casefold() == key.casefold()


class Descriptor:
    """
    A loaded descriptor: named sections of ordered lines.

    Lookups mirror the SetupAPI INF primitives: find the first line of a
    section (optionally filtered by key), step to the next matching line,
    read a field by 1-based index, and enumerate section names by index.
    """

    def __init__(self, sections: Sequence[RawSection], source: str = "<string>") -> None:
        self.source = source
        self._names: list[str] = [section.name for section in sections]
        self._sections: dict[str, list[Line]] | None = {
            section.name.casefold(): list(section.lines) for section in sections
        }

    @classmethod
    def open(cls, path: Path | str) -> Self:
        path = Path(path)
        return cls(parse_sections(read_text(path), source=str(path)), source=str(path))

    @classmethod
    def from_text(cls, text: str, source: str = "<string>") -> Self:
        return cls(parse_sections(text, source=source), source=source)

    @classmethod
    def from_sections(cls, sections: Mapping[str, Sequence[Sequence[str]]]) -> Self:
        """
        Builds a descriptor from pre-split lines.

        Each line is a sequence whose first element is field 0 (the key, or an
        empty string for a keyless line) followed by the value fields.
        """
        raw = []
        for name, lines in sections.items():
            section = RawSection(name=name)
            for lineno, values in enumerate(lines, start=1):
                if not values:
                    raise FormatError(f"{name}:{lineno}: a line needs at least field 0")
                section.lines.append(
                    Line(key=values[0] or None, fields=values[1:], lineno=lineno)
                )
            raw.append(section)
        return cls(raw)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"{len(self._names)} sections"
        return f"<Descriptor {self.source!r} {state}>"

    @property
    def closed(self) -> bool:
        return self._sections is None

    def close(self) -> None:
        self._sections = None

    def _lines(self, section: str) -> list[Line] | None:
        if self._sections is None:
            raise ValueError("I/O operation on closed descriptor.")
        return self._sections.get(section.casefold())

    def has_section(self, section: str) -> bool:
        return self._lines(section) is not None

    def line(self, cursor: Cursor) -> Line:
        lines = self._lines(cursor.section)
        if lines is None or not 0 <= cursor.index < len(lines):
            raise NotFoundError(f"No line {cursor.index} in section [{cursor.section}]")
        return lines[cursor.index]

    def _scan(self, section: str, start: int, key: str | None) -> Cursor | None:
        lines = self._lines(section) or []
        for index in range(start, len(lines)):
            if _matches_key(lines[index], key):
                return Cursor(section=section, index=index)
        return None

    def first_line(self, section: str, key: str | None = None) -> Cursor:
        if self._lines(section) is None:
            raise NotFoundError(f"Section [{section}] not found in {self.source}")
        cursor = self._scan(section, 0, key)
        if cursor is None:
            what = f"'{key}' line" if key else "line"
            raise NotFoundError(f"No {what} in section [{section}] of {self.source}")
        return cursor

    def next_matching_line(self, cursor: Cursor, key: str | None = None) -> Cursor | None:
        return self._scan(cursor.section, cursor.index + 1, key)

    def iter_lines(self, section: str, key: str | None = None) -> Iterator[Cursor]:
        """Yields cursors for each matching line; nothing if the section is absent."""
        try:
            cursor: Cursor | None = self.first_line(section, key)
        except NotFoundError:
            return
        while cursor is not None:
            yield cursor
            cursor = self.next_matching_line(cursor, key)

    def field_count(self, cursor: Cursor) -> int:
        return self.line(cursor).field_count

    def field(self, cursor: Cursor, index: int) -> str:
        line = self.line(cursor)
        try:
            return line.field(index)
        except IndexError as e:
            raise OutOfRangeError(
                f"Field {index} out of range in [{cursor.section}] line {line.lineno} "
                f"({line.field_count} fields)"
            ) from e

    def enumerate_sections(self, index: int) -> str:
        if self._sections is None:
            raise ValueError("I/O operation on closed descriptor.")
        if index < 0 or index >= len(self._names):
            raise NoMoreItemsError(index)
        name = self._names[index]
        if len(name) > MAX_SECTION_NAME_LENGTH:
            raise PlatformError(
                f"Section name at index {index} exceeds {MAX_SECTION_NAME_LENGTH} characters"
            )
        return name
