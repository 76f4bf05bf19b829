"""
A materialized package backed by a .nupkg archive on disk.
"""
from __future__ import annotations

import io
import logging
import os
import zipfile
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Union
from urllib.parse import unquote
from xml.etree import ElementTree

from liget.domain.errors import InvalidPackageError
from liget.domain.frameworks import TargetFramework, parse_folder_name, parse_framework
from liget.domain.models import FrameworkAssemblyReference, PackageReferenceSet
from liget.domain.package import Package, PackageFile
from liget.services.hashing import CryptoHashProvider
from liget.storage.file_system import FileSystem

logger = logging.getLogger(__name__)

ASSEMBLY_EXTENSIONS = (".dll", ".exe", ".winmd")
FRAMEWORK_FOLDERS = ("lib", "content", "tools", "build")

# Archive parts that belong to the package format, not to its content.
_PACKAGE_PART_PREFIXES = ("_rels/", "package/")
_CONTENT_TYPES_PART = "[Content_Types].xml"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: Optional[ElementTree.Element], name: str) -> Iterator[ElementTree.Element]:
    if element is None:
        return
    for child in element:
        if _local_name(child.tag) == name:
            yield child


def _child(element: Optional[ElementTree.Element], name: str) -> Optional[ElementTree.Element]:
    return next(_children(element, name), None)


def _child_text(element: Optional[ElementTree.Element], name: str) -> Optional[str]:
    child = _child(element, name)
    if child is None or child.text is None:
        return None
    return child.text.strip()


def _entry_path(entry_name: str) -> str:
    return unquote(entry_name).replace("/", os.sep)


def _escapes_package(path: str) -> bool:
    normalized = os.path.normpath(path)
    return os.path.isabs(path) or normalized == os.pardir or normalized.startswith(os.pardir + os.sep)


def _framework_from_entry(entry_name: str) -> Optional[TargetFramework]:
    parts = entry_name.split("/")
    if len(parts) < 3 or parts[0].lower() not in FRAMEWORK_FOLDERS:
        return None
    return parse_folder_name(unquote(parts[1]))


class ZipPackageFile(PackageFile):
    def __init__(self, package_path: str, entry_name: str):
        self._package_path = package_path
        self._entry_name = entry_name
        self._path = _entry_path(entry_name)
        self._target_framework = _framework_from_entry(entry_name)

    @property
    def path(self) -> str:
        return self._path

    @property
    def target_framework(self) -> Optional[TargetFramework]:
        return self._target_framework

    def get_stream(self) -> BinaryIO:
        with zipfile.ZipFile(self._package_path) as archive:
            return io.BytesIO(archive.read(self._entry_name))

    def __repr__(self) -> str:
        return f"ZipPackageFile('{self._path}')"


class ZipPackage(Package):
    """
    Reads the manifest (.nuspec) when opened and file content on demand. The
    archive is not held open between calls.
    """

    def __init__(self, file_path: Union[str, Path]):
        self._file_path = os.fspath(file_path)

        try:
            with zipfile.ZipFile(self._file_path) as archive:
                self._entries = [info.filename for info in archive.infolist() if not info.is_dir()]
                manifest_name = next(
                    (name for name in self._entries if "/" not in name and name.lower().endswith(".nuspec")),
                    None,
                )
                if manifest_name is None:
                    raise InvalidPackageError(f"{self._file_path} does not contain a .nuspec manifest")
                manifest = ElementTree.fromstring(archive.read(manifest_name))
                unsafe = [name for name in self._entries if _escapes_package(_entry_path(name))]
                if unsafe:
                    raise InvalidPackageError(f"{self._file_path} has entries outside the package root: {unsafe}")
        except zipfile.BadZipFile as e:
            raise InvalidPackageError(f"{self._file_path} is not a valid package archive: {e}") from e
        except ElementTree.ParseError as e:
            raise InvalidPackageError(f"{self._file_path} has a malformed manifest: {e}") from e

        self._manifest_name = manifest_name
        self._metadata = _child(manifest, "metadata")
        package_id = _child_text(self._metadata, "id")
        version = _child_text(self._metadata, "version")
        if not package_id or not version:
            raise InvalidPackageError(f"{self._file_path} manifest is missing id or version")
        self._id = package_id
        self._version = version
        logger.debug(f"Opened package {package_id} {version} from {self._file_path}")

    @property
    def id(self) -> str:
        return self._id

    @property
    def version(self) -> str:
        return self._version

    @property
    def file_path(self) -> str:
        return self._file_path

    def _is_content_entry(self, name: str) -> bool:
        if name == self._manifest_name or name == _CONTENT_TYPES_PART:
            return False
        return not name.startswith(_PACKAGE_PART_PREFIXES)

    def get_files(self) -> List[PackageFile]:
        return [ZipPackageFile(self._file_path, name) for name in self._entries if self._is_content_entry(name)]

    def get_stream(self) -> BinaryIO:
        return open(self._file_path, "rb")

    def extract_contents(self, file_system: FileSystem, extract_path: str) -> None:
        files = self.get_files()
        for package_file in files:
            target = os.path.join(extract_path, package_file.path) if extract_path else package_file.path
            with package_file.get_stream() as stream:
                file_system.add_file(target, stream)
        logger.debug(f"Extracted {len(files)} files of {self._id} {self._version} to {extract_path or '.'}")

    def get_hash(self, hash_provider: CryptoHashProvider) -> str:
        with self.get_stream() as stream:
            return hash_provider.calculate_hash_string(stream)

    @property
    def assembly_references(self) -> List[PackageFile]:
        references = []
        for package_file in self.get_files():
            parts = package_file.path.split(os.sep)
            if parts[0].lower() == "lib" and package_file.path.lower().endswith(ASSEMBLY_EXTENSIONS):
                references.append(package_file)
        return references

    @property
    def framework_assemblies(self) -> List[FrameworkAssemblyReference]:
        assemblies = []
        for element in _children(_child(self._metadata, "frameworkAssemblies"), "frameworkAssembly"):
            name = element.get("assemblyName")
            if not name:
                continue
            frameworks = [
                framework
                for framework in (parse_framework(part) for part in (element.get("targetFramework") or "").split(","))
                if framework is not None
            ]
            assemblies.append(FrameworkAssemblyReference(assembly_name=name, supported_frameworks=frameworks))
        return assemblies

    @property
    def package_assembly_references(self) -> List[PackageReferenceSet]:
        references_element = _child(self._metadata, "references")
        if references_element is None:
            return []

        flat = [ref.get("file") for ref in _children(references_element, "reference") if ref.get("file")]
        if flat:
            return [PackageReferenceSet(target_framework=None, references=flat)]

        reference_sets = []
        for group in _children(references_element, "group"):
            reference_sets.append(PackageReferenceSet(
                target_framework=parse_framework(group.get("targetFramework")),
                references=[ref.get("file") for ref in _children(group, "reference") if ref.get("file")],
            ))
        return reference_sets

    def get_supported_frameworks(self) -> List[TargetFramework]:
        frameworks: List[TargetFramework] = []
        candidates = [f.target_framework for f in self.get_files()]
        for assembly in self.framework_assemblies:
            candidates.extend(assembly.supported_frameworks)
        for framework in candidates:
            if framework is not None and framework not in frameworks:
                frameworks.append(framework)
        return frameworks

    def __str__(self) -> str:
        return f"{self._id} {self._version}"
