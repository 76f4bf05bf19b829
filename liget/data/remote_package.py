"""
Catalog-backed package metadata.

A RemotePackage is built from a catalog entry and answers structural
questions (id, version, dependencies, licenses) locally. File content lives in
a separately materialized backing package that callers attach once it has
been downloaded.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone, timedelta
from typing import Any, BinaryIO, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from liget.domain.dependency_parser import parse_dependency_set
from liget.domain.errors import InvalidPackageError, PackageNotMaterializedError
from liget.domain.frameworks import TargetFramework
from liget.domain.models import (
    FrameworkAssemblyReference,
    PackageDependencyGroup,
    PackageReferenceSet,
)
from liget.domain.package import Package, PackageFile
from liget.domain.versioning import SemanticVersion
from liget.services.hashing import CryptoHashProvider
from liget.storage.file_system import FileSystem

logger = logging.getLogger(__name__)

LICENSE_NAME_SEPARATOR = ";"

# OData verbose JSON dates: /Date(1356998400000)/ or /Date(1356998400000+0100)/
_ODATA_DATE = re.compile(r"^/Date\((?P<millis>-?\d+)(?P<offset>[+-]\d{4})?\)/$")


def _parse_odata_date(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    match = _ODATA_DATE.match(value)
    if not match:
        return value
    moment = datetime.fromtimestamp(int(match.group("millis")) / 1000, tz=timezone.utc)
    offset = match.group("offset")
    if offset:
        sign = 1 if offset[0] == "+" else -1
        delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[3:5]))
        moment = moment.astimezone(timezone(sign * delta))
    return moment


class RemotePackage(BaseModel):
    """
    Metadata for one package version as reported by a remote catalog.

    Fields can be populated either by their snake_case names or by the
    catalog's PascalCase names (Id, Version, PackageHash, ...). They stay
    mutable so a catalog refresh can overwrite them; everything derived from
    them is recomputed or revalidated on read.
    """

    model_config = ConfigDict(populate_by_name=True)

    # Identification
    id: str = Field(alias="Id", description="Package identifier.")
    version: Optional[str] = Field(default=None, alias="Version", description="Version string as reported.")
    title: Optional[str] = Field(default=None, alias="Title")
    authors: Optional[str] = Field(default=None, alias="Authors")
    owners: Optional[str] = Field(default=None, alias="Owners")

    # Links
    icon_url: Optional[str] = Field(default=None, alias="IconUrl")
    license_url: Optional[str] = Field(default=None, alias="LicenseUrl")
    project_url: Optional[str] = Field(default=None, alias="ProjectUrl")
    report_abuse_url: Optional[str] = Field(default=None, alias="ReportAbuseUrl")
    gallery_details_url: Optional[str] = Field(default=None, alias="GalleryDetailsUrl")
    license_report_url: Optional[str] = Field(default=None, alias="LicenseReportUrl")

    # Catalog state
    listed: bool = Field(default=True, alias="Listed")
    published: Optional[datetime] = Field(default=None, alias="Published")
    last_updated: Optional[datetime] = Field(default=None, alias="LastUpdated")
    download_count: int = Field(default=0, alias="DownloadCount")
    is_latest_version: bool = Field(default=False, alias="IsLatestVersion")
    is_absolute_latest_version: bool = Field(default=False, alias="IsAbsoluteLatestVersion")

    # Descriptive text
    require_license_acceptance: bool = Field(default=False, alias="RequireLicenseAcceptance")
    development_dependency: bool = Field(default=False, alias="DevelopmentDependency")
    description: Optional[str] = Field(default=None, alias="Description")
    summary: Optional[str] = Field(default=None, alias="Summary")
    release_notes: Optional[str] = Field(default=None, alias="ReleaseNotes")
    language: Optional[str] = Field(default=None, alias="Language")
    tags: Optional[str] = Field(default=None, alias="Tags")
    copyright: Optional[str] = Field(default=None, alias="Copyright")

    # Dependencies and integrity
    dependencies: Optional[str] = Field(
        default=None,
        alias="Dependencies",
        description="Flat dependency descriptor, e.g. 'A:1.0:net45|B::net45'.",
    )
    package_hash: Optional[str] = Field(default=None, alias="PackageHash", description="Base64 package hash.")
    package_hash_algorithm: Optional[str] = Field(default=None, alias="PackageHashAlgorithm")
    min_client_version: Optional[str] = Field(default=None, alias="MinClientVersion")
    license_names: Optional[str] = Field(
        default=None,
        alias="LicenseNames",
        description="License identifiers separated by ';', e.g. 'MIT;Apache-2.0'.",
    )

    _package: Optional[Package] = PrivateAttr(default=None)
    _hash_provider: Optional[CryptoHashProvider] = PrivateAttr(default=None)
    _old_hash: Optional[str] = PrivateAttr(default=None)
    _parsed_version: Optional[Tuple[str, SemanticVersion]] = PrivateAttr(default=None)

    @field_validator("published", "last_updated", mode="before")
    @classmethod
    def _accept_odata_dates(cls, value: Any) -> Any:
        return _parse_odata_date(value)

    @classmethod
    def from_catalog_entry(cls, entry: Dict[str, Any]) -> "RemotePackage":
        """
        Build from a catalog (OData) entry. Unknown keys such as __metadata
        are ignored.
        """
        return cls.model_validate(entry)

    # ------------------------------------------------------------------
    # Derived metadata
    # ------------------------------------------------------------------

    @property
    def license_name_collection(self) -> Tuple[str, ...]:
        if not self.license_names:
            return ()
        return tuple(self.license_names.split(LICENSE_NAME_SEPARATOR))

    def set_license_names(self, value: Optional[str]) -> None:
        """Set the raw ';' separated license names; the split collection follows."""
        self.license_names = value

    @property
    def semantic_version(self) -> Optional[SemanticVersion]:
        """
        Parsed version. Raises ValueError when the version string is not a
        valid version.
        """
        if self.version is None:
            return None
        cached = self._parsed_version
        if cached is None or cached[0] != self.version:
            cached = (self.version, SemanticVersion.parse(self.version))
            self._parsed_version = cached
        return cached[1]

    @property
    def min_client_semantic_version(self) -> Optional[SemanticVersion]:
        if not self.min_client_version:
            return None
        return SemanticVersion.parse(self.min_client_version)

    @property
    def dependency_sets(self) -> List[PackageDependencyGroup]:
        # Parsed on every read so edits to the descriptor are always visible.
        if not self.dependencies:
            return []
        return parse_dependency_set(self.dependencies)

    @property
    def full_name(self) -> str:
        return f"{self.id} {self.version}"

    def __str__(self) -> str:
        return self.full_name

    # ------------------------------------------------------------------
    # Backing package
    # ------------------------------------------------------------------

    @property
    def hash_provider(self) -> CryptoHashProvider:
        if self._hash_provider is None:
            return CryptoHashProvider(self.package_hash_algorithm)
        return self._hash_provider

    def set_hash_provider(self, hash_provider: Optional[CryptoHashProvider]) -> None:
        self._hash_provider = hash_provider

    @property
    def has_package(self) -> bool:
        return self._package is not None

    @property
    def package(self) -> Package:
        if self._package is None:
            raise PackageNotMaterializedError(self.id, self.version or "")
        return self._package

    @property
    def is_package_stale(self) -> bool:
        """
        True when nothing is attached or the catalog hash changed since the
        current package was attached.
        """
        if self._package is None:
            return True
        return (self._old_hash or "").casefold() != (self.package_hash or "").casefold()

    def attach_package(self, package: Package, verify_hash: bool = False) -> None:
        """
        Attach the materialized package that serves content operations.

        With verify_hash the package must match the catalog hash, otherwise
        InvalidPackageError is raised and the current package is kept.
        """
        if package is None:
            raise ValueError("package must not be None")
        if verify_hash and not self.match_package_hash(package):
            raise InvalidPackageError(
                f"Package {self.full_name} does not match the hash reported by the catalog"
            )
        self._package = package
        self._old_hash = self.package_hash
        logger.debug(f"Attached local content for {self.full_name}")

    def detach_package(self) -> None:
        self._package = None
        self._old_hash = None

    def match_package_hash(self, package: Optional[Package]) -> bool:
        """True if the given package matches package_hash."""
        if package is None or not self.package_hash:
            return False
        actual = package.get_hash(self.hash_provider)
        return actual.casefold() == self.package_hash.casefold()

    # ------------------------------------------------------------------
    # Content operations (delegated)
    # ------------------------------------------------------------------

    def get_files(self) -> List[PackageFile]:
        return self.package.get_files()

    def get_stream(self) -> BinaryIO:
        return self.package.get_stream()

    def extract_contents(self, file_system: FileSystem, extract_path: str) -> None:
        self.package.extract_contents(file_system, extract_path)

    @property
    def assembly_references(self) -> List[PackageFile]:
        return self.package.assembly_references

    @property
    def framework_assemblies(self) -> List[FrameworkAssemblyReference]:
        return self.package.framework_assemblies

    @property
    def package_assembly_references(self) -> List[PackageReferenceSet]:
        return self.package.package_assembly_references

    def get_supported_frameworks(self) -> List[TargetFramework]:
        return self.package.get_supported_frameworks()
