from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO, List, Optional, TYPE_CHECKING

from liget.domain.frameworks import TargetFramework
from liget.domain.models import FrameworkAssemblyReference, PackageReferenceSet

if TYPE_CHECKING:
    from liget.services.hashing import CryptoHashProvider
    from liget.storage.file_system import FileSystem


class PackageFile(ABC):
    """
    A single content file inside a materialized package.
    """

    @property
    @abstractmethod
    def path(self) -> str:
        """Path of the file relative to the package root, using OS separators."""
        pass

    @property
    @abstractmethod
    def target_framework(self) -> Optional[TargetFramework]:
        """Framework implied by the file's folder (e.g. lib/net45/), if any."""
        pass

    @abstractmethod
    def get_stream(self) -> BinaryIO:
        """Open the file content. The caller closes the stream."""
        pass


class Package(ABC):
    """
    A fully materialized package: the source of file content, assembly
    references and the package hash.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        pass

    @property
    @abstractmethod
    def version(self) -> str:
        pass

    @abstractmethod
    def get_files(self) -> List[PackageFile]:
        """Content files in archive order."""
        pass

    @abstractmethod
    def get_stream(self) -> BinaryIO:
        """Open the whole package file. The caller closes the stream."""
        pass

    @abstractmethod
    def extract_contents(self, file_system: "FileSystem", extract_path: str) -> None:
        """Write every content file under extract_path in file_system."""
        pass

    @abstractmethod
    def get_hash(self, hash_provider: "CryptoHashProvider") -> str:
        """Base64 hash of the whole package computed with hash_provider."""
        pass

    @property
    @abstractmethod
    def assembly_references(self) -> List[PackageFile]:
        pass

    @property
    @abstractmethod
    def framework_assemblies(self) -> List[FrameworkAssemblyReference]:
        pass

    @property
    @abstractmethod
    def package_assembly_references(self) -> List[PackageReferenceSet]:
        pass

    @abstractmethod
    def get_supported_frameworks(self) -> List[TargetFramework]:
        pass
