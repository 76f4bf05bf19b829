from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable
from unittest.mock import patch

import pytest

from liget.data.remote_package import RemotePackage
from liget.data.zip_package import ZipPackage
from liget.domain.errors import InvalidPackageError, PackageNotMaterializedError
from liget.domain.frameworks import TargetFramework
from liget.domain.versioning import SemanticVersion
from liget.services.hashing import CryptoHashProvider
from liget.storage.physical_file_system import PhysicalFileSystem


def _package_hash(path: Path, algorithm: str = "SHA512") -> str:
    return CryptoHashProvider(algorithm).calculate_hash_string(path.read_bytes())


@pytest.fixture
def nupkg(make_nupkg: Callable[..., Path]) -> Path:
    return make_nupkg({
        "lib/net45/Sample.dll": b"assembly",
        "content/readme.txt": b"readme",
    })


class TestConstruction:
    def test_from_catalog_entry_uses_catalog_names(self) -> None:
        package = RemotePackage.from_catalog_entry({
            "__metadata": {"uri": "https://example.test/Packages(Id='Sample',Version='1.0.0')"},
            "Id": "Sample",
            "Version": "1.0.0",
            "Authors": "someone",
            "DownloadCount": 42,
            "Listed": False,
            "Dependencies": "A:1.0",
            "PackageHash": "abc==",
            "PackageHashAlgorithm": "SHA512",
            "LicenseNames": "MIT;Apache-2.0",
            "Published": "/Date(1356998400000)/",
        })

        assert package.id == "Sample"
        assert package.version == "1.0.0"
        assert package.authors == "someone"
        assert package.download_count == 42
        assert package.listed is False
        assert package.dependencies == "A:1.0"
        assert package.package_hash == "abc=="
        assert package.license_name_collection == ("MIT", "Apache-2.0")
        assert package.published == datetime(2013, 1, 1, tzinfo=timezone.utc)

    def test_model_validate_keeps_license_names(self) -> None:
        package = RemotePackage.model_validate({"Id": "Sample", "LicenseNames": "MIT;BSD-3-Clause"})
        assert package.license_names == "MIT;BSD-3-Clause"
        assert package.license_name_collection == ("MIT", "BSD-3-Clause")

    def test_snake_case_names(self) -> None:
        package = RemotePackage(id="Sample", version="2.0", license_names="MIT")
        assert package.full_name == "Sample 2.0"
        assert str(package) == "Sample 2.0"
        assert package.license_names == "MIT"

    def test_odata_date_with_offset(self) -> None:
        package = RemotePackage(id="Sample", last_updated="/Date(1356998400000+0100)/")
        assert package.last_updated == datetime(2013, 1, 1, tzinfo=timezone.utc)
        assert package.last_updated.utcoffset().total_seconds() == 3600

    def test_iso_dates_still_accepted(self) -> None:
        package = RemotePackage(id="Sample", published="2013-01-01T00:00:00Z")
        assert package.published == datetime(2013, 1, 1, tzinfo=timezone.utc)


class TestLicenseNames:
    def test_split_on_semicolon_without_trimming(self) -> None:
        package = RemotePackage(id="Sample")
        package.set_license_names("MIT; BSD")
        assert package.license_names == "MIT; BSD"
        assert package.license_name_collection == ("MIT", " BSD")

    def test_collection_follows_assignment(self) -> None:
        package = RemotePackage(id="Sample", license_names="MIT")
        package.license_names = "MIT;GPL-2.0"
        assert package.license_name_collection == ("MIT", "GPL-2.0")

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_names_clear_collection(self, value) -> None:
        package = RemotePackage(id="Sample", license_names="MIT")
        package.set_license_names(value)
        assert package.license_names == value
        assert package.license_name_collection == ()


class TestVersions:
    def test_semantic_version(self) -> None:
        package = RemotePackage(id="Sample", version="1.0.0-beta")
        assert package.semantic_version == SemanticVersion.parse("1.0.0-beta")

    def test_semantic_version_follows_version_changes(self) -> None:
        package = RemotePackage(id="Sample", version="1.0.0")
        assert package.semantic_version == SemanticVersion.parse("1.0.0")
        package.version = "2.0.0"
        assert package.semantic_version == SemanticVersion.parse("2.0.0")

    def test_invalid_version_fails(self) -> None:
        package = RemotePackage(id="Sample", version="not.a.version")
        with pytest.raises(ValueError):
            package.semantic_version

    def test_missing_version(self) -> None:
        assert RemotePackage(id="Sample").semantic_version is None

    def test_min_client_version(self) -> None:
        assert RemotePackage(id="Sample").min_client_semantic_version is None
        package = RemotePackage(id="Sample", min_client_version="2.8")
        assert package.min_client_semantic_version == SemanticVersion.parse("2.8")


class TestDependencySets:
    @pytest.mark.parametrize("descriptor", [None, ""])
    def test_empty_descriptor_does_not_invoke_parser(self, descriptor) -> None:
        package = RemotePackage(id="Sample", dependencies=descriptor)
        with patch("liget.data.remote_package.parse_dependency_set") as parser:
            assert package.dependency_sets == []
        parser.assert_not_called()

    def test_parses_descriptor(self) -> None:
        package = RemotePackage(id="Sample", dependencies="A:1.0:netstandard2.0|B::netstandard2.0|C:2.0")
        groups = package.dependency_sets
        assert [group.target_framework for group in groups] == [TargetFramework.parse("netstandard2.0"), None]
        assert [d.id for d in groups[0].dependencies] == ["A", "B"]

    def test_reflects_descriptor_changes(self) -> None:
        package = RemotePackage(id="Sample", dependencies="A")
        assert len(package.dependency_sets) == 1
        package.dependencies = ""
        assert package.dependency_sets == []


class TestContentOperations:
    @pytest.mark.parametrize("operation", [
        lambda p: p.get_files(),
        lambda p: p.get_stream(),
        lambda p: p.extract_contents(None, "x"),
        lambda p: p.assembly_references,
        lambda p: p.framework_assemblies,
        lambda p: p.package_assembly_references,
        lambda p: p.get_supported_frameworks(),
        lambda p: p.package,
    ])
    def test_require_attached_package(self, operation) -> None:
        package = RemotePackage(id="Sample", version="1.0.0")
        with pytest.raises(PackageNotMaterializedError) as excinfo:
            operation(package)
        assert excinfo.value.package_id == "Sample"
        assert excinfo.value.version == "1.0.0"

    def test_delegates_to_attached_package(self, nupkg: Path, tmp_path: Path) -> None:
        package = RemotePackage(id="Sample", version="1.0.0")
        package.attach_package(ZipPackage(nupkg))

        assert package.has_package
        assert sorted(f.path for f in package.get_files()) == [
            os.path.join("content", "readme.txt"),
            os.path.join("lib", "net45", "Sample.dll"),
        ]
        assert [f.path for f in package.assembly_references] == [os.path.join("lib", "net45", "Sample.dll")]
        assert package.get_supported_frameworks() == [TargetFramework.parse("net45")]
        with package.get_stream() as stream:
            assert stream.read() == nupkg.read_bytes()

        file_system = PhysicalFileSystem(tmp_path / "install")
        package.extract_contents(file_system, "Sample.1.0.0")
        assert file_system.file_exists(os.path.join("Sample.1.0.0", "lib", "net45", "Sample.dll"))

    def test_detach_package(self, nupkg: Path) -> None:
        package = RemotePackage(id="Sample", version="1.0.0")
        package.attach_package(ZipPackage(nupkg))
        package.detach_package()
        assert not package.has_package
        with pytest.raises(PackageNotMaterializedError):
            package.get_files()


class TestHashes:
    def test_match_package_hash(self, nupkg: Path) -> None:
        package = RemotePackage(id="Sample", version="1.0.0", package_hash=_package_hash(nupkg))
        assert package.match_package_hash(ZipPackage(nupkg))

    def test_match_is_case_insensitive(self, nupkg: Path) -> None:
        package = RemotePackage(id="Sample", package_hash=_package_hash(nupkg).swapcase())
        assert package.match_package_hash(ZipPackage(nupkg))

    def test_no_match_without_hash_or_package(self, nupkg: Path) -> None:
        assert not RemotePackage(id="Sample").match_package_hash(ZipPackage(nupkg))
        assert not RemotePackage(id="Sample", package_hash="abc").match_package_hash(None)

    def test_catalog_algorithm_is_used(self, nupkg: Path) -> None:
        package = RemotePackage(
            id="Sample",
            package_hash=_package_hash(nupkg, "SHA256"),
            package_hash_algorithm="SHA256",
        )
        assert package.hash_provider.hash_algorithm == "SHA256"
        assert package.match_package_hash(ZipPackage(nupkg))

    def test_explicit_hash_provider_wins(self, nupkg: Path) -> None:
        package = RemotePackage(id="Sample", package_hash=_package_hash(nupkg, "SHA1"))
        package.set_hash_provider(CryptoHashProvider("SHA1"))
        assert package.match_package_hash(ZipPackage(nupkg))

    def test_attach_with_verification_rejects_mismatch(self, nupkg: Path, make_nupkg) -> None:
        package = RemotePackage(id="Sample", version="1.0.0", package_hash=_package_hash(nupkg))
        package.attach_package(ZipPackage(nupkg), verify_hash=True)
        original = package.package

        other = ZipPackage(make_nupkg({"content/other.txt": b"other"}, name="other.nupkg"))
        with pytest.raises(InvalidPackageError):
            package.attach_package(other, verify_hash=True)
        assert package.package is original

    def test_stale_until_attached(self, nupkg: Path) -> None:
        package = RemotePackage(id="Sample", package_hash=_package_hash(nupkg))
        assert package.is_package_stale
        package.attach_package(ZipPackage(nupkg))
        assert not package.is_package_stale

    def test_stale_after_catalog_hash_changes(self, nupkg: Path) -> None:
        package = RemotePackage(id="Sample", package_hash=_package_hash(nupkg))
        package.attach_package(ZipPackage(nupkg))
        package.package_hash = "changed=="
        assert package.is_package_stale

    def test_attach_none_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            RemotePackage(id="Sample").attach_package(None)
