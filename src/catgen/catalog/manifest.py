"""JSON manifest export of a resolved driver package."""

import json
from pathlib import Path
from typing import Any

from ..crypto import file_digest
from ..models import ResolvedResult
from .builder import entry_basename, index_search_directory


def build_manifest(result: ResolvedResult, search_directory: Path) -> dict[str, Any]:
    """
    Describes every resolved entry with its on-disk path and SHA-256 digest.

    Entries are kept in resolution order, duplicates included; files that are
    not present under the search directory get null path and digest.
    """
    index = index_search_directory(search_directory)
    files = []
    for entry in result.files:
        path = index.get(entry_basename(entry).casefold())
        files.append(
            {
                "name": entry,
                "path": str(path) if path else None,
                "sha256": file_digest(path) if path else None,
            }
        )
    return {"hardware_id": result.hardware_id, "files": files}


def write_manifest(path: Path, manifest: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")
