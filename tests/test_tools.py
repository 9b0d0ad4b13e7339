"""Tests for locating the catalog tools."""

from pathlib import Path

import pytest
from pytest import MonkeyPatch

from catgen.exceptions import CatalogError
from catgen.tools import MAKECAT, SIGNTOOL, find_tool


def test_find_tool_on_path(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setattr("catgen.tools.shutil.which", lambda name: f"/sdk/bin/{name}.exe")
    assert find_tool(MAKECAT) == Path("/sdk/bin/makecat.exe")


def test_find_tool_missing(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setattr("catgen.tools.shutil.which", lambda name: None)
    with pytest.raises(CatalogError, match="'signtool' not found in PATH"):
        find_tool(SIGNTOOL)


def test_find_tool_override(tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
    tool = tmp_path / "makecat.exe"
    tool.write_bytes(b"")

    def fail_which(name: str) -> str:
        raise AssertionError("PATH lookup must not happen with an override")

    monkeypatch.setattr("catgen.tools.shutil.which", fail_which)
    assert find_tool(MAKECAT, tool) == tool
    assert find_tool(MAKECAT, str(tool)) == tool


def test_find_tool_override_missing(tmp_path: Path) -> None:
    with pytest.raises(CatalogError, match="Configured path for 'makecat' does not exist"):
        find_tool(MAKECAT, tmp_path / "missing.exe")
