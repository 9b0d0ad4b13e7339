"""The `catgen` command-line interface."""

import importlib.metadata
from pathlib import Path, PureWindowsPath

import click

from .catalog.builder import CatalogBuilder, entry_basename
from .catalog.manifest import build_manifest, write_manifest
from .config import load_config
from .exceptions import CatgenError
from .models import (
    DEFAULT_OS,
    DEFAULT_OS_ATTR,
    EXAMPLE_HWID,
    CatalogRequest,
    ResolvedResult,
    ResolveOptions,
)
from .resolver import FileListAggregator, resolve_descriptor

try:
    __version__ = importlib.metadata.version("catgen")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"


def _inf_location(inf_file: str, drv_path: Path) -> tuple[str, Path]:
    """
    Returns the catalog entry name and the on-disk path of the descriptor.

    A relative descriptor is listed as given and read from the driver
    directory; an absolute one is listed by its file name.
    """
    if inf_file.startswith(("/", "\\")) or PureWindowsPath(inf_file).is_absolute():
        return entry_basename(inf_file), Path(inf_file)
    return inf_file, drv_path / inf_file


@click.command(context_settings=dict(help_option_names=["--help"]))
@click.version_option(
    __version__,
    "-V",
    "--version",
    prog_name="catgen",
    message="%(prog)s version %(version)s",
)
@click.option(
    "-o",
    "--out",
    type=click.Path(dir_okay=False, resolve_path=True),
    help="Output catalog (.cat) file.",
)
@click.option(
    "-d",
    "--drv-path",
    type=click.Path(file_okay=False, resolve_path=True),
    help="Directory containing the driver package files.",
)
@click.option("-i", "--inf-file", help="Descriptor (INF) to resolve the file list from.")
@click.option("--hwid", help=f"Hardware id (example: {EXAMPLE_HWID}).")
@click.option(
    "-O", "--OS", "os_string", help=f"OS string (default: {DEFAULT_OS})."
)
@click.option(
    "-A", "--OSAttr", "os_attr_string", help=f"OSAttr string (default: {DEFAULT_OS_ATTR})."
)
@click.option("-v", "--verbose", is_flag=True, help="Trace the descriptor walk.")
@click.option(
    "--strict/--lenient",
    default=None,
    help="Fail instead of skipping sections that cannot be enumerated.",
)
@click.option(
    "--dry-run", is_flag=True, help="Resolve and print the file list without building a catalog."
)
@click.option(
    "--manifest",
    "manifest_path",
    type=click.Path(dir_okay=False, resolve_path=True),
    help="Write a JSON manifest of the resolved files.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, resolve_path=True),
    help="Path to a catgen.toml or pyproject.toml with [tool.catgen] defaults.",
)
@click.argument("files", nargs=-1)
def cli(
    out: str | None,
    drv_path: str | None,
    inf_file: str | None,
    hwid: str | None,
    os_string: str | None,
    os_attr_string: str | None,
    verbose: bool,
    strict: bool | None,
    dry_run: bool,
    manifest_path: str | None,
    config_path: str | None,
    files: tuple[str, ...],
) -> None:
    """Driver catalog generator."""
    try:
        config = load_config(Path(config_path) if config_path else None)

        final_drv_path = Path(drv_path) if drv_path else config.drv_path
        final_out = Path(out) if out else config.out
        if final_drv_path is None:
            raise click.UsageError("Missing required option '--drv-path'.")
        if final_out is None and not dry_run:
            raise click.UsageError("Missing required option '--out'.")

        options = ResolveOptions(
            verbose=verbose,
            strict=config.strict if strict is None else strict,
            max_files=config.max_files,
        )

        result = ResolvedResult(hardware_id=hwid)
        if inf_file:
            seed, inf_path = _inf_location(inf_file, final_drv_path)
            result = resolve_descriptor(
                inf_path, seed=[seed], hardware_id=hwid, options=options
            )

        aggregator = FileListAggregator(
            seed=result.files,
            hardware_id=result.hardware_id,
            max_files=options.max_files,
        )
        for extra in files:
            aggregator.add(entry_basename(extra))
        result = aggregator.result()

        if verbose:
            click.echo(f"hw_id {result.hardware_id}", err=True)
            for i, name in enumerate(result.files):
                click.echo(f"cat_list[{i}] = {name}", err=True)

        if manifest_path:
            write_manifest(Path(manifest_path), build_manifest(result, final_drv_path))
            click.secho(f"✅ Manifest written: {manifest_path}", fg="green")

        if dry_run:
            click.echo(f"Hardware ID: {result.hardware_id or '(none)'}")
            for name in result.files:
                click.echo(f"  {name}")
            return

        builder = CatalogBuilder(makecat_path=config.makecat, signing=config.signing)
        catalog_path = builder.build(
            CatalogRequest(
                output_path=final_out,
                hardware_id=result.hardware_id,
                search_directory=final_drv_path,
                files=result.files,
                os_string=os_string or config.os,
                os_attr_string=os_attr_string or config.os_attr,
            )
        )
        click.secho(f"✅ Catalog built successfully: {catalog_path}", fg="green")

    except (CatgenError, click.UsageError) as e:
        click.secho(f"❌ Catalog generation failed:\n{e}", fg="red", err=True)
        raise click.Abort() from e


main = cli
