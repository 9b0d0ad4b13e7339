"""
Resolves the files and hardware id of a driver package from its descriptor.

The walk is depth-first over the descriptor:

    [Manufacturer] -> models section (per OS decoration)
        -> device-description line -> install section (exact or dot-decorated)
            -> CopyFiles directive -> literal file or file-list section

Absent branches are skipped; only a missing or empty [Manufacturer] section is
fatal.
"""

from collections.abc import Iterable, Iterator
from pathlib import Path

from pyvider.telemetry import logger

from .exceptions import (
    CapacityError,
    NoMoreItemsError,
    NotFoundError,
    OutOfRangeError,
    PlatformError,
)
from .inf.descriptor import Descriptor
from .models import (
    COPY_FILES_KEY,
    MANUFACTURER_SECTION,
    Cursor,
    ResolvedResult,
    ResolveOptions,
)


def matches_install_section(name: str, base: str) -> bool:
    """True if `name` is `base` itself or `base` followed by a `.decoration`."""
    name_cf, base_cf = name.casefold(), base.casefold()
    if name_cf == base_cf:
        return True
    return name_cf.startswith(base_cf + ".")


def strip_hardware_id(value: str) -> str:
    return value[1:] if value.startswith("*") else value


class FileListAggregator:
    """Collects file names in discovery order and a set-once hardware id."""

    def __init__(
        self,
        seed: Iterable[str] = (),
        hardware_id: str | None = None,
        max_files: int | None = None,
    ) -> None:
        self.max_files = max_files
        self.hardware_id = hardware_id
        self.files: list[str] = []
        for name in seed:
            self.add(name)

    def add(self, name: str) -> None:
        if self.max_files is not None and len(self.files) >= self.max_files:
            raise CapacityError(
                f"File list is full ({self.max_files} entries); cannot add '{name}'."
            )
        self.files.append(name)

    def record_hardware_id(self, value: str) -> bool:
        if self.hardware_id is not None:
            return False
        self.hardware_id = value
        return True

    def result(self) -> ResolvedResult:
        return ResolvedResult(hardware_id=self.hardware_id, files=self.files)


class DescriptorResolver:
    def __init__(
        self,
        descriptor: Descriptor,
        aggregator: FileListAggregator,
        options: ResolveOptions | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.aggregator = aggregator
        self.options = options or ResolveOptions()

    def _trace(self, message: str, **context: object) -> None:
        if self.options.verbose:
            logger.debug(message, **context)

    def iter_model_sections(self) -> Iterator[str]:
        """Yields the models sections named by [Manufacturer] that exist."""
        inf = self.descriptor
        try:
            cursor: Cursor | None = inf.first_line(MANUFACTURER_SECTION)
        except NotFoundError as e:
            raise NotFoundError(
                f"Empty or missing [{MANUFACTURER_SECTION}] section in {inf.source}"
            ) from e

        while cursor is not None:
            try:
                base = inf.field(cursor, 1)
            except OutOfRangeError as e:
                logger.warning(f"Skipping manufacturer line: {e}")
            else:
                self._trace(
                    f"models section name {base}", manufacturer=inf.field(cursor, 0)
                )
                count = inf.field_count(cursor)
                if count == 1:
                    candidates = [base]
                else:
                    candidates = [
                        f"{base}.{inf.field(cursor, f)}" for f in range(2, count + 1)
                    ]
                for model in candidates:
                    self._trace(f"model {model}")
                    if inf.has_section(model):
                        yield model
            cursor = inf.next_matching_line(cursor)

    def iter_device_descriptions(self, model: str) -> Iterator[str]:
        """Yields the install-section base name of each line in a models section."""
        inf = self.descriptor
        for cursor in inf.iter_lines(model):
            try:
                install_base = inf.field(cursor, 1)
            except OutOfRangeError as e:
                logger.warning(f"Skipping device description: {e}")
                continue
            self._trace(
                f"desc {inf.field(cursor, 0)}",
                install_section=install_base,
                hardware_id=inf.field(cursor, 2) if inf.field_count(cursor) >= 2 else None,
            )
            if inf.field_count(cursor) >= 2 and self.aggregator.hardware_id is None:
                self.aggregator.record_hardware_id(
                    strip_hardware_id(inf.field(cursor, 2))
                )
            yield install_base

    def iter_section_names(self) -> Iterator[str]:
        """Lazily enumerates section names, skipping entries that fail to enumerate."""
        index = 0
        while True:
            try:
                name = self.descriptor.enumerate_sections(index)
            except NoMoreItemsError:
                return
            except PlatformError as e:
                if self.options.strict:
                    raise
                logger.warning(f"Section enumeration failed, skipping entry: {e}")
            else:
                yield name
            index += 1

    def iter_install_sections(self, install_base: str) -> Iterator[str]:
        for name in self.iter_section_names():
            if matches_install_section(name, install_base):
                self._trace(f"install section {name}")
                yield name

    def iter_copy_files(self, install_section: str) -> Iterator[str]:
        """Yields file names from the CopyFiles directives of one install section."""
        inf = self.descriptor
        for cursor in inf.iter_lines(install_section, COPY_FILES_KEY):
            try:
                value = inf.field(cursor, 1)
            except OutOfRangeError as e:
                logger.warning(f"Skipping CopyFiles directive: {e}")
                continue
            self._trace(f"sec {install_section} copy file {value}")

            if value.startswith("@"):
                yield value[1:]
                continue

            if not inf.has_section(value):
                logger.debug(
                    f"CopyFiles section [{value}] not found, skipping",
                    install_section=install_section,
                )
                continue
            for file_cursor in inf.iter_lines(value):
                try:
                    yield inf.field(file_cursor, 1)
                except OutOfRangeError as e:
                    logger.warning(f"Skipping file-list entry: {e}")

    def _add(self, name: str) -> None:
        limit = self.options.max_files
        if limit is not None and len(self.aggregator.files) >= limit:
            raise CapacityError(
                f"File list is full ({limit} entries); cannot add '{name}'."
            )
        self.aggregator.add(name)

    def resolve(self) -> ResolvedResult:
        for model in self.iter_model_sections():
            for install_base in self.iter_device_descriptions(model):
                for install_section in self.iter_install_sections(install_base):
                    for name in self.iter_copy_files(install_section):
                        self._add(name)
                        self._trace(
                            f"file[{len(self.aggregator.files) - 1}] = {name}"
                        )
        return self.aggregator.result()


def resolve_descriptor(
    path: Path | str,
    *,
    seed: Iterable[str] = (),
    hardware_id: str | None = None,
    options: ResolveOptions | None = None,
) -> ResolvedResult:
    """
    Opens the descriptor at `path` and resolves its hardware id and file list.

    Seeded file names come first in the result; a seeded hardware id is kept.
    """
    options = options or ResolveOptions()
    aggregator = FileListAggregator(
        seed=seed, hardware_id=hardware_id, max_files=options.max_files
    )
    with Descriptor.open(path) as inf:
        logger.info(f"Resolving driver package files from {inf.source}")
        result = DescriptorResolver(inf, aggregator, options).resolve()
    logger.info(
        "Resolved driver package",
        hardware_id=result.hardware_id,
        file_count=len(result.files),
    )
    return result
