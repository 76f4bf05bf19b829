from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

from liget.storage.physical_file_system import PhysicalFileSystem

NUSPEC_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd">
  <metadata>
    <id>{package_id}</id>
    <version>{version}</version>
    <authors>liget</authors>
    <description>Test package</description>
    {extra}
  </metadata>
</package>
"""


@pytest.fixture
def file_system(tmp_path: Path) -> PhysicalFileSystem:
    return PhysicalFileSystem(tmp_path / "root")


@pytest.fixture
def make_nupkg(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a minimal .nupkg with the given content files."""

    def _make(
        files: Dict[str, bytes],
        package_id: str = "Sample",
        version: str = "1.0.0",
        extra_metadata: str = "",
        name: Optional[str] = None,
    ) -> Path:
        path = tmp_path / (name or f"{package_id}.{version}.nupkg")
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr(
                f"{package_id}.nuspec",
                NUSPEC_TEMPLATE.format(package_id=package_id, version=version, extra=extra_metadata),
            )
            archive.writestr("[Content_Types].xml", "<Types />")
            archive.writestr("_rels/.rels", "<Relationships />")
            archive.writestr("package/services/metadata/core-properties/1.psmdcp", "<coreProperties />")
            for entry_name, content in files.items():
                archive.writestr(entry_name, content)
        return path

    return _make
