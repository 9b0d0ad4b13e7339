"""
Lookup of the platform tools that build and sign catalogs.
"""

from pathlib import Path
import shutil

from .exceptions import CatalogError

MAKECAT = "makecat"
SIGNTOOL = "signtool"


def find_tool(tool_name: str, override: str | Path | None = None) -> Path:
    """
    Returns the path of an external tool, preferring an explicit override.
    """
    if override:
        override_path = Path(override)
        if not override_path.is_file():
            raise CatalogError(
                f"Configured path for '{tool_name}' does not exist: {override_path}"
            )
        return override_path

    found = shutil.which(tool_name)
    if not found:
        raise CatalogError(
            f"'{tool_name}' not found in PATH. Install the Windows SDK or configure its path."
        )
    return Path(found)
