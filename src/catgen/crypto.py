"""
Centralized hashing for catalog manifests.
"""

from pathlib import Path

from cryptography.hazmat.primitives import hashes

_ALGORITHMS: dict[str, type[hashes.HashAlgorithm]] = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
}

_CHUNK_SIZE = 64 * 1024


def file_digest(path: Path, algorithm: str = "sha256") -> str:
    """Returns the lowercase hex digest of a file's contents."""
    try:
        algorithm_cls = _ALGORITHMS[algorithm.lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported digest algorithm '{algorithm}'. Expected one of: {', '.join(_ALGORITHMS)}."
        ) from None

    digest = hashes.Hash(algorithm_cls())
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.finalize().hex()
