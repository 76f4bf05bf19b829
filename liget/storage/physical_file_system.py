import errno
import fnmatch
import logging
import os
import shutil
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Iterator, List, Optional, Union

from liget.domain.package import PackageFile
from liget.storage.file_system import FileSystem
from liget.storage.paths import get_full_path, make_relative_path

logger = logging.getLogger(__name__)

MATCH_ALL_FILTER = "*.*"


class PhysicalFileSystem(FileSystem):
    def __init__(self, root: Union[str, Path]):
        root = os.fspath(root) if root is not None else ""
        if not root:
            raise ValueError("root must not be empty")
        self._root = os.path.abspath(root)

    @property
    def root(self) -> str:
        return self._root

    def get_full_path(self, path: Optional[str]) -> str:
        return get_full_path(self._root, path)

    def write_file(self, path: str, write_to_stream: Callable[[BinaryIO], None]) -> None:
        if write_to_stream is None:
            raise ValueError("write_to_stream must not be None")
        self._add_file_core(path, write_to_stream)

    def add_file(self, path: str, stream: BinaryIO) -> None:
        if stream is None:
            raise ValueError("stream must not be None")
        self._add_file_core(path, lambda target: shutil.copyfileobj(stream, target))

    def add_files(self, files: Iterable[PackageFile], root_dir: str = "") -> None:
        for package_file in files:
            path = os.path.join(root_dir, package_file.path) if root_dir else package_file.path
            if self.file_exists(path):
                logger.debug(f"Skipping {path}: file already exists")
                continue
            with package_file.get_stream() as stream:
                self.add_file(path, stream)

    def _add_file_core(self, path: str, write_to_stream: Callable[[BinaryIO], None]) -> None:
        full_path = self.get_full_path(path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)

        with open(full_path, "wb") as output_stream:
            write_to_stream(output_stream)

    def delete_file(self, path: str) -> None:
        if not self.file_exists(path):
            return

        full_path = self.get_full_path(path)
        try:
            self.make_file_writable(path)
            os.remove(full_path)
        except FileNotFoundError:
            # Removed by someone else between the probe and the delete.
            logger.debug(f"File {full_path} vanished before it could be deleted")

    def delete_files(self, files: Iterable[PackageFile], root_dir: str = "") -> None:
        directories = set()
        for package_file in files:
            path = os.path.join(root_dir, package_file.path) if root_dir else package_file.path
            self.delete_file(path)
            directories.add(os.path.dirname(path))

        # Deepest first so parents see their children already gone.
        for directory in sorted(directories, key=len, reverse=True):
            self._delete_empty_directories(directory, root_dir)

    def _delete_empty_directories(self, directory: str, stop_at: str) -> None:
        stop_at = os.path.normpath(stop_at) if stop_at else ""
        while directory:
            if os.path.normpath(directory) == stop_at:
                break
            if not self.directory_exists(directory) or os.listdir(self.get_full_path(directory)):
                break
            self.delete_directory(directory)
            directory = os.path.dirname(directory)

    def delete_directory(self, path: str, recursive: bool = False) -> None:
        if not self.directory_exists(path):
            return

        full_path = self.get_full_path(path)
        try:
            if recursive:
                shutil.rmtree(full_path)
            else:
                os.rmdir(full_path)
        except FileNotFoundError:
            logger.debug(f"Directory {full_path} vanished before it could be deleted")

    def get_files(self, path: str = "", filter: Optional[str] = None, recursive: bool = False) -> List[str]:
        full_path = self.get_full_path(path)
        pattern = "*" if not filter or filter == MATCH_ALL_FILTER else filter

        try:
            if not os.path.isdir(full_path):
                return []
            return [self._make_relative_path(p) for p in _enumerate_files(full_path, pattern, recursive)]
        except (PermissionError, FileNotFoundError) as e:
            logger.debug(f"Cannot list files in {full_path}: {e}")
            return []

    def get_directories(self, path: str = "") -> List[str]:
        full_path = self.get_full_path(path)

        try:
            if not os.path.isdir(full_path):
                return []
            with os.scandir(full_path) as entries:
                names = sorted(entry.name for entry in entries if entry.is_dir())
            return [self._make_relative_path(os.path.join(full_path, name)) for name in names]
        except (PermissionError, FileNotFoundError) as e:
            logger.debug(f"Cannot list directories in {full_path}: {e}")
            return []

    def get_last_modified(self, path: str) -> datetime:
        return self._get_timestamp(path, lambda st: st.st_mtime)

    def get_created(self, path: str) -> datetime:
        # st_ctime is the metadata-change time on POSIX systems without birth time.
        return self._get_timestamp(path, lambda st: getattr(st, "st_birthtime", st.st_ctime))

    def get_last_accessed(self, path: str) -> datetime:
        return self._get_timestamp(path, lambda st: st.st_atime)

    def _get_timestamp(self, path: str, selector: Callable[[os.stat_result], float]) -> datetime:
        full_path = self.get_full_path(path)
        if not os.path.isfile(full_path) and not os.path.isdir(full_path):
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", full_path)
        return datetime.fromtimestamp(selector(os.stat(full_path)), tz=timezone.utc)

    def file_exists(self, path: str) -> bool:
        try:
            return os.path.isfile(self.get_full_path(path))
        except ValueError:
            # Outside the root.
            return False

    def directory_exists(self, path: str) -> bool:
        try:
            return os.path.isdir(self.get_full_path(path))
        except ValueError:
            return False

    def open_file(self, path: str) -> BinaryIO:
        return open(self.get_full_path(path), "rb")

    def create_file(self, path: str) -> BinaryIO:
        full_path = self.get_full_path(path)

        # before creating the file, ensure the parent directory exists first.
        os.makedirs(os.path.dirname(full_path), exist_ok=True)

        return open(full_path, "wb")

    def move_file(self, source: str, destination: str) -> None:
        if source is None:
            raise ValueError("source must not be None")
        if destination is None:
            raise ValueError("destination must not be None")

        src_full = self.get_full_path(source)
        dest_full = self.get_full_path(destination)

        if src_full.casefold() == dest_full.casefold():
            return

        if not os.path.isfile(src_full):
            logger.debug(f"Move source {src_full} does not exist, nothing to move")
            return

        if os.path.exists(dest_full):
            logger.warning(f"Move target {dest_full} already exists, removing source {src_full}")
            self.delete_file(source)
            return

        os.makedirs(os.path.dirname(dest_full), exist_ok=True)
        try:
            os.rename(src_full, dest_full)
        except FileExistsError:
            # Destination was created after the probe.
            logger.warning(f"Move target {dest_full} appeared during move, removing source {src_full}")
            self.delete_file(source)
        except FileNotFoundError:
            # Source was removed after the probe.
            logger.debug(f"Move source {src_full} vanished before it could be moved")
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise
            logger.debug(f"Moving {src_full} to {dest_full} across volumes")
            shutil.move(src_full, dest_full)

    def make_file_writable(self, path: str) -> None:
        full_path = self.get_full_path(path)
        mode = os.stat(full_path).st_mode
        if not mode & stat.S_IWRITE:
            os.chmod(full_path, stat.S_IMODE(mode) | stat.S_IWRITE)

    def make_directory_for_file(self, path: str) -> None:
        self._ensure_directory(os.path.dirname(path))

    def _make_relative_path(self, full_path: str) -> str:
        return make_relative_path(self._root, full_path)

    def _ensure_directory(self, path: str) -> None:
        os.makedirs(self.get_full_path(path), exist_ok=True)


def _enumerate_files(directory: str, pattern: str, recursive: bool) -> Iterator[str]:
    if recursive:
        for dirpath, dirnames, filenames in os.walk(directory):
            dirnames.sort()
            for name in sorted(filenames):
                if fnmatch.fnmatch(name, pattern):
                    yield os.path.join(dirpath, name)
        return

    with os.scandir(directory) as entries:
        names = sorted(entry.name for entry in entries if entry.is_file())
    for name in names:
        if fnmatch.fnmatch(name, pattern):
            yield os.path.join(directory, name)
