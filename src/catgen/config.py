"""Loading of catgen defaults from TOML configuration."""

from pathlib import Path
import tomllib
from typing import Any, Self

from attrs import define, field

from .exceptions import ConfigError
from .models import DEFAULT_OS, DEFAULT_OS_ATTR, SigningConfig

CONFIG_FILE_NAME = "catgen.toml"
PYPROJECT_FILE_NAME = "pyproject.toml"


@define(frozen=True, slots=True)
class CatgenConfig:
    os: str = DEFAULT_OS
    os_attr: str = DEFAULT_OS_ATTR
    drv_path: Path | None = None
    out: Path | None = None
    strict: bool = False
    max_files: int | None = None
    makecat: Path | None = None
    signing: SigningConfig | None = None
    source: Path | None = field(default=None, eq=False)

    @classmethod
    def from_mapping(cls, data: dict[str, Any], base_dir: Path, source: Path | None = None) -> Self:
        """Builds a config from a parsed table, resolving paths against `base_dir`."""

        def _path(key: str) -> Path | None:
            value = data.get(key)
            if value is None:
                return None
            if not isinstance(value, str):
                raise ConfigError(f"'{key}' must be a string path in {source}")
            return base_dir / value

        def _str(key: str, default: str | None, table: dict[str, Any] = data) -> Any:
            value = table.get(key, default)
            if value is not None and not isinstance(value, str):
                where = "[signing] " if table is not data else ""
                raise ConfigError(f"{where}'{key}' must be a string in {source}")
            return value

        strict = data.get("strict", False)
        if not isinstance(strict, bool):
            raise ConfigError(f"'strict' must be true or false in {source}")

        max_files = data.get("max_files")
        if max_files is not None and (
            not isinstance(max_files, int) or isinstance(max_files, bool) or max_files < 0
        ):
            raise ConfigError(f"'max_files' must be a non-negative integer in {source}")

        signing = None
        signing_conf = data.get("signing")
        if signing_conf:
            if not isinstance(signing_conf, dict):
                raise ConfigError(f"'signing' must be a table in {source}")
            certificate = _str("certificate", None, signing_conf)
            if not certificate:
                raise ConfigError(f"[signing] requires a 'certificate' path in {source}")
            signtool = _str("signtool", None, signing_conf)
            signing = SigningConfig(
                certificate=str(base_dir / certificate),
                signtool=str(base_dir / signtool) if signtool else None,
                password=_str("password", None, signing_conf),
                timestamp_url=_str("timestamp_url", None, signing_conf),
                digest=_str("digest", "sha256", signing_conf),
            )

        return cls(
            os=_str("os", DEFAULT_OS),
            os_attr=_str("os_attr", DEFAULT_OS_ATTR),
            drv_path=_path("drv_path"),
            out=_path("out"),
            strict=strict,
            max_files=max_files,
            makecat=_path("makecat"),
            signing=signing,
            source=source,
        )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e


def _table_from(path: Path, data: dict[str, Any]) -> dict[str, Any]:
    if path.name == PYPROJECT_FILE_NAME:
        return data.get("tool", {}).get("catgen", {})
    return data.get("catgen", data)


def load_config(config_path: Path | None = None, cwd: Path | None = None) -> CatgenConfig:
    """
    Loads the active configuration.

    An explicit path wins; otherwise `catgen.toml`, then `[tool.catgen]` in
    `pyproject.toml`, are looked up in the working directory.
    """
    if config_path is not None:
        data = _load_toml(config_path)
        return CatgenConfig.from_mapping(
            _table_from(config_path, data), config_path.parent, source=config_path
        )

    cwd = cwd or Path.cwd()
    for candidate in (cwd / CONFIG_FILE_NAME, cwd / PYPROJECT_FILE_NAME):
        if candidate.is_file():
            table = _table_from(candidate, _load_toml(candidate))
            if table:
                return CatgenConfig.from_mapping(table, cwd, source=candidate)
    return CatgenConfig()
