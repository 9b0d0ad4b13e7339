"""Decoding and tokenizing of INF descriptor text."""

from pathlib import Path
import re

from attrs import define, field

from ..exceptions import FormatError
from ..models import STRINGS_SECTION, Line

_SECTION_HEADER = re.compile(r"^\[(?P<name>[^\]]*)\]")
_STRING_TOKEN = re.compile(r"%([^%]*)%")


@define(slots=True)
class RawSection:
    name: str
    lines: list[Line] = field(factory=list)


def read_text(path: Path) -> str:
    """Best-effort INF text decoding (UTF-8/ASCII, UTF-16LE/BE with or without BOM)."""
    try:
        data = path.read_bytes()
    except OSError as e:
        raise FormatError(f"Cannot open descriptor '{path}': {e}") from e

    if data.startswith(b"\xff\xfe") or data.startswith(b"\xfe\xff"):
        return data.decode("utf-16", errors="replace").lstrip("\ufeff")
    if data.startswith(b"\xef\xbb\xbf"):
        return data.decode("utf-8-sig", errors="replace")

    try:
        utf8_text = data.decode("utf-8")
    except UnicodeDecodeError:
        utf8_text = None
    else:
        if "\x00" not in utf8_text:
            return utf8_text

    # UTF-16 without a BOM shows up as NULs on every other byte.
    sample = data[:4096]
    even_zeros = sum(1 for i, b in enumerate(sample) if b == 0 and i % 2 == 0)
    odd_zeros = sum(1 for i, b in enumerate(sample) if b == 0 and i % 2 == 1)
    if odd_zeros > even_zeros * 4 + 10:
        return data.decode("utf-16-le", errors="replace")
    if even_zeros > odd_zeros * 4 + 10:
        return data.decode("utf-16-be", errors="replace")

    if utf8_text is not None:
        return utf8_text.replace("\x00", "")
    # Legacy ANSI descriptors.
    return data.decode("cp1252", errors="replace")


def strip_comment(raw: str) -> str:
    """Strip an INF comment (`;` outside a quoted string) from one physical line."""
    in_quotes = False
    for i, ch in enumerate(raw):
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == ";" and not in_quotes:
            return raw[:i]
    return raw


def _logical_lines(text: str) -> list[tuple[int, str]]:
    """Joins `\\`-continued physical lines, returning (first line number, text) pairs."""
    out: list[tuple[int, str]] = []
    pending: list[str] = []
    start = 0
    for lineno, raw in enumerate(text.splitlines(), start=1):
        active = strip_comment(raw).strip()
        if not pending:
            start = lineno
        if active.endswith("\\") and active.count('"') % 2 == 0:
            pending.append(active[:-1])
            continue
        pending.append(active)
        joined = " ".join(part for part in pending if part)
        pending = []
        if joined:
            out.append((start, joined))
    if pending:
        joined = " ".join(part for part in pending if part)
        if joined:
            out.append((start, joined))
    return out


def _finish_field(chars: list[tuple[str, bool]]) -> str:
    # Only unquoted whitespace at either end is insignificant.
    begin, end = 0, len(chars)
    while begin < end and not chars[begin][1] and chars[begin][0].isspace():
        begin += 1
    while end > begin and not chars[end - 1][1] and chars[end - 1][0].isspace():
        end -= 1
    return "".join(ch for ch, _ in chars[begin:end])


def tokenize_line(
    text: str, *, lineno: int = 0, source: str = "<string>", split_commas: bool = True
) -> Line:
    """Splits one logical line into its key and value fields."""
    key: str | None = None
    fields: list[str] = []
    chars: list[tuple[str, bool]] = []
    in_quotes = False
    saw_quote = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_quotes:
            if ch == '"':
                if text[i + 1 : i + 2] == '"':
                    chars.append(('"', True))
                    i += 2
                    continue
                in_quotes = False
            else:
                chars.append((ch, True))
        elif ch == '"':
            in_quotes = True
            saw_quote = True
        elif ch == "=" and key is None and not fields:
            key = _finish_field(chars)
            chars = []
            saw_quote = False
        elif ch == "," and split_commas:
            fields.append(_finish_field(chars))
            chars = []
        else:
            chars.append((ch, False))
        i += 1

    if in_quotes:
        raise FormatError(f"{source}:{lineno}: unterminated quoted string")

    last = _finish_field(chars)
    if key is not None and not fields and not last and not saw_quote:
        # `key =` with an empty right-hand side carries no value fields.
        return Line(key=key, fields=(), lineno=lineno)
    fields.append(last)
    return Line(key=key, fields=fields, lineno=lineno)


def is_strings_section(name: str) -> bool:
    """True for [Strings] and its localized variants such as [Strings.0409]."""
    name_cf, base_cf = name.casefold(), STRINGS_SECTION.casefold()
    return name_cf == base_cf or name_cf.startswith(base_cf + ".")


def _strings_table(sections: list[RawSection]) -> dict[str, str]:
    """
    Builds the case-folded token table.

    Entries in [Strings] take precedence; localized sections only supply
    tokens it does not define, earlier sections first.
    """
    base_cf = STRINGS_SECTION.casefold()
    ordered = sorted(
        (s for s in sections if is_strings_section(s.name)),
        key=lambda s: s.name.casefold() != base_cf,
    )
    table: dict[str, str] = {}
    for section in ordered:
        for line in section.lines:
            if line.key:
                table.setdefault(
                    line.key.casefold(), line.field(1) if line.field_count else ""
                )
    return table


def parse_sections(text: str, source: str = "<string>") -> list[RawSection]:
    """
    Parses INF text into sections in file order.

    Repeated section headers are merged into the first occurrence.
    """
    sections: dict[str, RawSection] = {}
    current: RawSection | None = None
    for lineno, logical in _logical_lines(text):
        if logical.startswith("["):
            match = _SECTION_HEADER.match(logical)
            if match is None:
                raise FormatError(f"{source}:{lineno}: missing ']' in section header")
            name = match.group("name").strip()
            if not name:
                raise FormatError(f"{source}:{lineno}: empty section name")
            current = sections.setdefault(name.casefold(), RawSection(name=name))
            continue
        if current is None:
            raise FormatError(f"{source}:{lineno}: line outside of any section")
        split_commas = not is_strings_section(current.name)
        current.lines.append(
            tokenize_line(
                logical, lineno=lineno, source=source, split_commas=split_commas
            )
        )

    result = list(sections.values())
    table = _strings_table(result)
    for section in result:
        if not is_strings_section(section.name):
            section.lines = [_substitute_line(line, table) for line in section.lines]
    return result


def substitute(value: str, strings: dict[str, str]) -> str:
    """Replaces `%token%` references from a case-folded [Strings] table."""

    def _replace(match: re.Match[str]) -> str:
        token = match.group(1)
        if not token:
            return "%"
        return strings.get(token.casefold(), match.group(0))

    return _STRING_TOKEN.sub(_replace, value)


def _substitute_line(line: Line, strings: dict[str, str]) -> Line:
    return Line(
        key=substitute(line.key, strings) if line.key is not None else None,
        fields=tuple(substitute(value, strings) for value in line.fields),
        lineno=line.lineno,
    )
