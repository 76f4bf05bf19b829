"""
Parse the flat dependency descriptor reported by the package catalog.

The descriptor is a '|' separated list of entries, each of the form
``id``, ``id:versionRange`` or ``id:versionRange:targetFramework``. A
framework that is supported without any dependencies is sent as an entry
with an empty id, e.g. ``::net45``.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from liget.domain.frameworks import TargetFramework, parse_framework
from liget.domain.models import PackageDependency, PackageDependencyGroup
from liget.domain.versioning import VersionRange

ENTRY_SEPARATOR = "|"
FIELD_SEPARATOR = ":"

DependencyToken = Tuple[str, Optional[VersionRange], Optional[TargetFramework]]


def parse_dependency(value: Optional[str]) -> Optional[DependencyToken]:
    """
    Parse one descriptor entry into (id, version range, target framework).

    Blank entries yield None. A version range that cannot be parsed becomes
    None (unconstrained) instead of failing the whole descriptor.
    """
    if value is None or not value.strip():
        return None

    # Keep empty fields: "<id>::<framework>" has no version range but still
    # names a framework in the third position.
    tokens = value.strip().split(FIELD_SEPARATOR)

    package_id = tokens[0].strip()

    version_range = None
    if len(tokens) > 1:
        version_range = VersionRange.try_parse(tokens[1])

    target_framework = parse_framework(tokens[2]) if len(tokens) > 2 else None

    return package_id, version_range, target_framework


def parse_dependency_set(value: Optional[str]) -> List[PackageDependencyGroup]:
    """
    Parse a full descriptor into dependency groups keyed by target framework.

    Groups appear in the order their framework is first seen. Entries with an
    empty id create their group without adding a dependency to it.
    """
    if not value:
        return []

    grouped: Dict[Optional[TargetFramework], List[PackageDependency]] = {}
    for entry in value.split(ENTRY_SEPARATOR):
        token = parse_dependency(entry)
        if token is None:
            continue

        package_id, version_range, target_framework = token
        dependencies = grouped.setdefault(target_framework, [])
        if package_id:
            dependencies.append(PackageDependency(id=package_id, version_range=version_range))

    return [
        PackageDependencyGroup(target_framework=framework, dependencies=dependencies)
        for framework, dependencies in grouped.items()
    ]
