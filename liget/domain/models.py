"""
Pydantic models for the package client.

This module defines the data models shared across the client, including:
- Dependency declarations grouped by target framework
- Assembly reference descriptions exposed by materialized packages
- Client settings persisted in the data directory

Version ranges and target frameworks are plain value objects from
liget.domain.versioning and liget.domain.frameworks; models holding them
allow arbitrary types and validate them by isinstance.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from liget.domain.frameworks import TargetFramework
from liget.domain.versioning import VersionRange


# ---------------------------------------------------------------------------
# Dependency Models
# ---------------------------------------------------------------------------


class PackageDependency(BaseModel):
    """
    A dependency on another package, optionally constrained by a version range.

    A missing version range means any version satisfies the dependency.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    id: str = Field(
        min_length=1,
        description="Identifier of the package depended upon.",
    )
    version_range: Optional[VersionRange] = Field(
        default=None,
        description="Acceptable versions, or None when unconstrained.",
    )

    def __str__(self) -> str:
        if self.version_range is None:
            return self.id
        return f"{self.id} {self.version_range}"


class PackageDependencyGroup(BaseModel):
    """
    Dependencies that apply when installing into a given target framework.

    A group with no dependencies is meaningful: it records that the framework
    is supported and needs nothing else.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    target_framework: Optional[TargetFramework] = Field(
        default=None,
        description="Framework the group applies to, or None for every framework.",
    )
    dependencies: List[PackageDependency] = Field(
        default_factory=list,
        description="Dependencies in declaration order.",
    )


# ---------------------------------------------------------------------------
# Assembly Reference Models
# ---------------------------------------------------------------------------


class FrameworkAssemblyReference(BaseModel):
    """
    A reference to an assembly shipped with the framework rather than the package.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    assembly_name: str = Field(
        description="Name of the framework assembly (e.g., 'System.Net.Http').",
    )
    supported_frameworks: List[TargetFramework] = Field(
        default_factory=list,
        description="Frameworks the reference applies to. Empty list means all.",
    )


class PackageReferenceSet(BaseModel):
    """
    The subset of package assemblies that should be referenced for a framework.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    target_framework: Optional[TargetFramework] = Field(
        default=None,
        description="Framework the set applies to, or None for every framework.",
    )
    references: List[str] = Field(
        default_factory=list,
        description="Assembly file names to reference (e.g., 'Foo.dll').",
    )


# ---------------------------------------------------------------------------
# Client Configuration
# ---------------------------------------------------------------------------


class ClientSettings(BaseModel):
    """
    Top-level configuration for the package client.

    Persisted at: <DATA_DIR>/settings.json
    """

    feed_url: str = Field(
        default="https://www.nuget.org/api/v2",
        description="Base URL of the OData (v2) package catalog.",
    )
    packages_dir: str = Field(
        default="packages",
        description="Directory, relative to the data directory, that packages are installed into.",
    )
    hash_algorithm: str = Field(
        default="SHA512",
        description="Hash algorithm used when the catalog does not report one.",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        ge=1,
        description="Timeout for catalog requests in seconds. Minimum: 1 second.",
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level (DEBUG, INFO, WARNING, ERROR).",
    )
