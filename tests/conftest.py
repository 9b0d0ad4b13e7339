"""Pytest fixtures for the entire catgen test suite."""

from pathlib import Path
from typing import Callable

import pytest

SAMPLE_INF = r"""
; Sample driver package used across the test suite.
[Version]
Signature="$WINDOWS NT$"
Class=System
CatalogFile=sample.cat

[Manufacturer]
%Mfg% = SampleMfg, NTamd64, NTx86

[SampleMfg.NTamd64]
%Dev.Desc% = Sample_Install, *PNP0F13
%Dev2.Desc% = Sample_Install, PCI\VEN_1AF4&DEV_1041

[SampleMfg.NTx86]
%Dev.Desc% = Sample_Install, *PNP0F13

[Sample_Install.NT]
CopyFiles = Sample_CopyFiles
CopyFiles = @sample_coinstaller.dll ; literal file

[Sample_Install.NT.Services]
AddService = sample, 0x00000002, Sample_Service

[Sample_Install2]
CopyFiles = @unrelated.sys

[Sample_CopyFiles]
sample.sys
sample.dll

[Strings]
Mfg = "Sample Vendor"
Dev.Desc = "Sample Device"
Dev2.Desc = "Sample Device; second"
"""

SAMPLE_FILES = ("sample.sys", "sample.dll", "sample_coinstaller.dll")


@pytest.fixture
def sample_inf_text() -> str:
    return SAMPLE_INF


@pytest.fixture
def write_inf(tmp_path: Path) -> Callable[[str, str], Path]:
    """A factory fixture that writes descriptor text to a file under tmp_path."""

    def _write(text: str, name: str = "driver.inf") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def driver_package(tmp_path: Path) -> Path:
    """Creates a driver package directory holding sample.inf and its files."""
    drv_dir = tmp_path / "drv"
    (drv_dir / "amd64").mkdir(parents=True)
    (drv_dir / "sample.inf").write_text(SAMPLE_INF, encoding="utf-8")
    (drv_dir / "amd64" / "sample.sys").write_bytes(b"sys payload")
    (drv_dir / "sample.dll").write_bytes(b"dll payload")
    (drv_dir / "sample_coinstaller.dll").write_bytes(b"coinstaller payload")
    (drv_dir / "readme.txt").write_text("not part of the package")
    return drv_dir


@pytest.fixture
def sample_files() -> tuple[str, ...]:
    """The files one device-description line of SAMPLE_INF contributes, in order."""
    return SAMPLE_FILES
