"""Tests for the cursor-based descriptor store."""

from pathlib import Path
from typing import Callable

import pytest

from catgen.exceptions import (
    FormatError,
    NoMoreItemsError,
    NotFoundError,
    OutOfRangeError,
    PlatformError,
)
from catgen.inf.descriptor import Descriptor

INF = """
[Version]
Signature = "$WINDOWS NT$"

[Install]
CopyFiles = Files.A
AddReg = Reg.A
copyfiles = @extra.sys
Flag =

[Files.A]
a.sys
b.sys
"""


@pytest.fixture
def inf() -> Descriptor:
    return Descriptor.from_text(INF, source="test.inf")


def test_first_line_missing_section(inf: Descriptor) -> None:
    with pytest.raises(NotFoundError, match=r"Section \[Nope\] not found"):
        inf.first_line("Nope")


def test_first_line_is_case_insensitive(inf: Descriptor) -> None:
    cursor = inf.first_line("install")
    assert inf.field(cursor, 0) == "CopyFiles"
    assert inf.field(cursor, 1) == "Files.A"


def test_key_filter_walks_only_matching_lines(inf: Descriptor) -> None:
    """Tests that the optional key selects CopyFiles lines among other directives."""
    cursor = inf.first_line("Install", "COPYFILES")
    assert inf.field(cursor, 1) == "Files.A"
    cursor = inf.next_matching_line(cursor, "CopyFiles")
    assert cursor is not None
    assert inf.field(cursor, 1) == "@extra.sys"
    assert inf.next_matching_line(cursor, "CopyFiles") is None


def test_first_line_without_matching_key(inf: Descriptor) -> None:
    with pytest.raises(NotFoundError, match="No 'DelFiles' line"):
        inf.first_line("Install", "DelFiles")


def test_iter_lines(inf: Descriptor) -> None:
    assert [inf.field(c, 1) for c in inf.iter_lines("Files.A")] == ["a.sys", "b.sys"]
    assert list(inf.iter_lines("Missing")) == []


def test_field_bounds(inf: Descriptor) -> None:
    cursor = next(c for c in inf.iter_lines("Install") if inf.field(c, 0) == "Flag")
    assert inf.field_count(cursor) == 0
    with pytest.raises(OutOfRangeError, match="Field 1 out of range"):
        inf.field(cursor, 1)

    keyless = inf.first_line("Files.A")
    assert inf.field(keyless, 0) == ""
    with pytest.raises(IndexError):
        inf.field(keyless, 2)


def test_enumerate_sections(inf: Descriptor) -> None:
    names = []
    index = 0
    while True:
        try:
            names.append(inf.enumerate_sections(index))
        except NoMoreItemsError:
            break
        index += 1
    assert names == ["Version", "Install", "Files.A"]


def test_enumerate_sections_rejects_overlong_names() -> None:
    long_name = "Install." + "x" * 300
    inf = Descriptor.from_text(f"[Install]\n[{long_name}]\n[After]\n")
    assert inf.enumerate_sections(0) == "Install"
    with pytest.raises(PlatformError, match="exceeds 255 characters"):
        inf.enumerate_sections(1)
    assert inf.enumerate_sections(2) == "After"
    assert inf.has_section(long_name)


def test_closed_descriptor(inf: Descriptor) -> None:
    with inf as opened:
        assert not opened.closed
    assert inf.closed
    with pytest.raises(ValueError, match="closed descriptor"):
        inf.first_line("Install")
    with pytest.raises(ValueError, match="closed descriptor"):
        inf.enumerate_sections(0)
    assert "closed" in repr(inf)


def test_open_from_file(write_inf: Callable[[str, str], Path]) -> None:
    path = write_inf(INF, "pkg.inf")
    with Descriptor.open(path) as inf:
        assert inf.source == str(path)
        assert inf.has_section("FILES.A")


def test_open_utf16_file(tmp_path: Path) -> None:
    path = tmp_path / "wide.inf"
    path.write_text(INF, encoding="utf-16")
    with Descriptor.open(path) as inf:
        assert inf.field(inf.first_line("Files.A"), 1) == "a.sys"


def test_open_missing_file() -> None:
    with pytest.raises(FormatError):
        Descriptor.open("/tmp/non-existent-catgen.inf")


def test_from_sections() -> None:
    """Tests building a descriptor from pre-split fields, field 0 first."""
    inf = Descriptor.from_sections(
        {
            "Install1": [["CopyFiles", "@driver.sys"]],
            "Install1.Files": [["", "driver.cat"]],
        }
    )
    cursor = inf.first_line("Install1", "CopyFiles")
    assert inf.field(cursor, 1) == "@driver.sys"
    files_cursor = inf.first_line("install1.files")
    assert inf.field(files_cursor, 0) == ""
    assert inf.field(files_cursor, 1) == "driver.cat"

    with pytest.raises(FormatError, match="at least field 0"):
        Descriptor.from_sections({"Broken": [[]]})
