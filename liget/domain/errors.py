"""
Exceptions raised by the package client.

File-system failures are not wrapped: callers see the built-in
FileNotFoundError / OSError raised by the operating system.
"""


class LiGetError(Exception):
    """Base class for package client errors."""


class PackageNotMaterializedError(LiGetError):
    """A content operation was invoked before a backing package was attached."""

    def __init__(self, package_id: str, version: str):
        super().__init__(
            f"Package {package_id} {version} has no local content; attach a package before reading files"
        )
        self.package_id = package_id
        self.version = version


class InvalidPackageError(LiGetError):
    """A package failed verification or could not be read."""
