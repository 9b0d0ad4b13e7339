"""Tests for file digests used in catalog manifests."""

import hashlib
from pathlib import Path

import pytest

from catgen.crypto import file_digest


@pytest.mark.parametrize("algorithm", ["sha256", "sha1", "SHA256"])
def test_file_digest_matches_hashlib(tmp_path: Path, algorithm: str) -> None:
    payload = b"driver payload " * 10_000
    path = tmp_path / "driver.sys"
    path.write_bytes(payload)
    expected = hashlib.new(algorithm.lower(), payload).hexdigest()
    assert file_digest(path, algorithm) == expected


def test_file_digest_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.sys"
    path.write_bytes(b"")
    assert file_digest(path) == hashlib.sha256(b"").hexdigest()


def test_file_digest_unsupported_algorithm(tmp_path: Path) -> None:
    path = tmp_path / "driver.sys"
    path.write_bytes(b"x")
    with pytest.raises(ValueError, match="Unsupported digest algorithm 'md5'"):
        file_digest(path, "md5")
