from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import BinaryIO, Callable, Iterable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from liget.domain.package import PackageFile


class FileSystem(ABC):
    """
    Abstract base class for file systems addressed by root-relative paths.
    """

    @property
    @abstractmethod
    def root(self) -> str:
        """Absolute directory every relative path is resolved against."""
        pass

    @abstractmethod
    def get_full_path(self, path: Optional[str]) -> str:
        """Resolve a relative path to an absolute one (empty path means root)."""
        pass

    @abstractmethod
    def write_file(self, path: str, write_to_stream: Callable[[BinaryIO], None]) -> None:
        """
        Create or truncate a file, creating missing parent directories, and let
        the producer write its content.
        """
        pass

    @abstractmethod
    def add_file(self, path: str, stream: BinaryIO) -> None:
        """Copy a readable stream into a new file."""
        pass

    @abstractmethod
    def add_files(self, files: Iterable["PackageFile"], root_dir: str = "") -> None:
        """Write every package file under root_dir."""
        pass

    @abstractmethod
    def delete_file(self, path: str) -> None:
        """Ensure a file is absent."""
        pass

    @abstractmethod
    def delete_files(self, files: Iterable["PackageFile"], root_dir: str = "") -> None:
        """Ensure every package file under root_dir is absent."""
        pass

    @abstractmethod
    def delete_directory(self, path: str, recursive: bool = False) -> None:
        """Ensure a directory is absent."""
        pass

    @abstractmethod
    def get_files(self, path: str = "", filter: Optional[str] = None, recursive: bool = False) -> List[str]:
        """List files matching filter; empty when the directory is unreachable."""
        pass

    @abstractmethod
    def get_directories(self, path: str = "") -> List[str]:
        """List immediate child directories; empty when unreachable."""
        pass

    @abstractmethod
    def get_last_modified(self, path: str) -> datetime:
        pass

    @abstractmethod
    def get_created(self, path: str) -> datetime:
        pass

    @abstractmethod
    def get_last_accessed(self, path: str) -> datetime:
        pass

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def directory_exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def open_file(self, path: str) -> BinaryIO:
        """Open an existing file for reading. The caller closes the stream."""
        pass

    @abstractmethod
    def create_file(self, path: str) -> BinaryIO:
        """Create or truncate a file for writing. The caller closes the stream."""
        pass

    @abstractmethod
    def move_file(self, source: str, destination: str) -> None:
        pass

    @abstractmethod
    def make_file_writable(self, path: str) -> None:
        pass
