from pathlib import Path

from attrs import define, field

DEFAULT_OS: str = "7X64,8X64,10X64"
DEFAULT_OS_ATTR: str = "2:6.1,2:6.2,2:6.4"
EXAMPLE_HWID: str = "PNP0F13"

MANUFACTURER_SECTION: str = "Manufacturer"
STRINGS_SECTION: str = "Strings"
COPY_FILES_KEY: str = "CopyFiles"

# SetupEnumInfSections copies names into a MAX_PATH buffer.
MAX_SECTION_NAME_LENGTH: int = 255


@define(frozen=True, slots=True)
class Line:
    """One logical INF line: an optional key (field 0) and its value fields."""

    key: str | None
    fields: tuple[str, ...] = field(converter=tuple, factory=tuple)
    lineno: int = 0

    @property
    def field_count(self) -> int:
        return len(self.fields)

    def field(self, index: int) -> str:
        if index == 0:
            return self.key or ""
        if index < 0 or index > len(self.fields):
            raise IndexError(index)
        return self.fields[index - 1]


@define(frozen=True, slots=True)
class Cursor:
    """Position of a line inside a descriptor section."""

    section: str
    index: int


@define(frozen=True, slots=True)
class ResolvedResult:
    hardware_id: str | None
    files: tuple[str, ...] = field(converter=tuple, factory=tuple)


@define(frozen=True, slots=True)
class ResolveOptions:
    verbose: bool = False
    strict: bool = False
    max_files: int | None = None

    def __attrs_post_init__(self) -> None:
        if self.max_files is not None and self.max_files < 0:
            raise ValueError(f"max_files must be non-negative, got {self.max_files}")


@define(frozen=True, slots=True)
class SigningConfig:
    certificate: str
    signtool: str | None = None
    password: str | None = None
    timestamp_url: str | None = None
    digest: str = "sha256"


@define(frozen=True, slots=True)
class CatalogRequest:
    """Everything the catalog builder needs to produce one ``.cat`` file."""

    output_path: Path
    hardware_id: str | None
    search_directory: Path
    files: tuple[str, ...] = field(converter=tuple, factory=tuple)
    os_string: str = DEFAULT_OS
    os_attr_string: str = DEFAULT_OS_ATTR
