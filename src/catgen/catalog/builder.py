"""Builds driver catalogs by rendering a CDF and invoking the platform tools."""

from collections.abc import Iterable
from pathlib import Path, PureWindowsPath
import shutil
import subprocess
import tempfile

import jinja2
from attrs import define
from pyvider.telemetry import logger

from ..exceptions import CatalogError, SigningError
from ..models import CatalogRequest, SigningConfig
from ..tools import MAKECAT, SIGNTOOL, find_tool

_TEMPLATE_DIR = Path(__file__).parent.parent / "templates"
_CDF_TEMPLATE = "catalog.cdf.j2"


@define(frozen=True, slots=True)
class CatalogMember:
    name: str
    path: Path

    @property
    def tag(self) -> str:
        return self.name.lower()


def _get_template_env() -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(_TEMPLATE_DIR),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def entry_basename(entry: str) -> str:
    """Returns the file name part of a list entry written with either separator."""
    return PureWindowsPath(entry).name


def index_search_directory(search_directory: Path) -> dict[str, Path]:
    """Maps case-folded file names to the first matching file under a directory."""
    if not search_directory.is_dir():
        raise CatalogError(f"Search directory not found: {search_directory}")
    index: dict[str, Path] = {}
    for path in sorted(search_directory.rglob("*")):
        if path.is_file():
            index.setdefault(path.name.casefold(), path)
    return index


def _redact(command: list[str]) -> list[str]:
    redacted = list(command)
    for i, arg in enumerate(redacted[:-1]):
        if arg.lower() == "/p":
            redacted[i + 1] = "****"
    return redacted


class CatalogBuilder:
    def __init__(
        self,
        makecat_path: str | Path | None = None,
        signing: SigningConfig | None = None,
    ) -> None:
        self.makecat_path = makecat_path
        self.signing = signing

    def locate_files(
        self, search_directory: Path, files: Iterable[str]
    ) -> list[CatalogMember]:
        """
        Resolves list entries to files under the search directory.

        An entry that appears more than once becomes a single catalog member.
        """
        index = index_search_directory(search_directory)
        members: list[CatalogMember] = []
        seen: set[str] = set()
        missing: list[str] = []
        for entry in files:
            name = entry_basename(entry)
            key = name.casefold()
            if key in seen:
                logger.debug(f"Skipping duplicate catalog member {name}")
                continue
            seen.add(key)
            path = index.get(key)
            if path is None:
                missing.append(name)
                continue
            members.append(CatalogMember(name=path.name, path=path))
        if missing:
            raise CatalogError(
                f"Files not found under '{search_directory}': {', '.join(missing)}"
            )
        return members

    def render_cdf(
        self,
        request: CatalogRequest,
        members: list[CatalogMember],
        result_dir: Path,
    ) -> str:
        template = _get_template_env().get_template(_CDF_TEMPLATE)
        return template.render(
            catalog_name=request.output_path.name,
            result_dir=result_dir,
            os=request.os_string,
            os_attr=request.os_attr_string,
            hardware_id=request.hardware_id.lower() if request.hardware_id else None,
            members=members,
        )

    def _run_subprocess(self, command: list[str], cwd: Path | str | None = None) -> str:
        shown = " ".join(_redact(command))
        logger.info(f"Running command: {shown}")
        result = subprocess.run(
            command, capture_output=True, text=True, cwd=cwd, check=False
        )
        if result.returncode != 0:
            error_message = (
                f"Command failed with exit code {result.returncode}.\n"
                f"  Command: {shown}\n"
                f"  Stdout:\n{result.stdout.strip()}\n"
                f"  Stderr:\n{result.stderr.strip()}"
            )
            raise CatalogError(error_message)
        if result.stderr:
            logger.debug("Command stderr", output=result.stderr.strip())
        return result.stdout.strip()

    def build(self, request: CatalogRequest) -> Path:
        """Creates the catalog described by `request` and returns its path."""
        logger.info(f"Building catalog {request.output_path}...")
        makecat = find_tool(MAKECAT, self.makecat_path)
        members = self.locate_files(request.search_directory, request.files)

        output_path = Path(request.output_path).resolve()
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(prefix="catgen_") as temp_dir_str:
            temp_dir = Path(temp_dir_str)
            cdf_path = temp_dir / f"{output_path.stem}.cdf"
            cdf_path.write_text(
                self.render_cdf(request, members, temp_dir), encoding="utf-16"
            )
            self._run_subprocess([str(makecat), "-v", str(cdf_path)], cwd=temp_dir)

            built = temp_dir / output_path.name
            if not built.exists():
                raise CatalogError(f"{MAKECAT} did not produce {built.name}")
            shutil.move(str(built), output_path)

        if self.signing is not None:
            self.sign(output_path)
        logger.info(f"Catalog written to {output_path}")
        return output_path

    def sign(self, catalog_path: Path) -> None:
        if self.signing is None:
            raise SigningError("No signing configuration provided.")
        signing = self.signing
        signtool = find_tool(SIGNTOOL, signing.signtool)
        command = [
            str(signtool), "sign",
            "/fd", signing.digest,
            "/f", signing.certificate,
        ]
        if signing.password:
            command.extend(["/p", signing.password])
        if signing.timestamp_url:
            command.extend(["/tr", signing.timestamp_url, "/td", signing.digest])
        command.append(str(catalog_path))
        try:
            self._run_subprocess(command)
        except CatalogError as e:
            raise SigningError(f"Signing {catalog_path.name} failed.\n{e}") from e
