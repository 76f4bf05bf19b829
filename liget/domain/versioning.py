"""
Package versions and version ranges as they appear in catalog metadata.

Versions follow NuGet's flavour of semantic versioning: one to four numeric
parts, optional dot-separated release labels after '-', optional build
metadata after '+'. Ranges use interval notation, where a bare version means
"this version or higher".
"""
from __future__ import annotations

import re
from functools import total_ordering
from typing import Optional, Tuple

_VERSION_PATTERN = re.compile(
    r"^(?P<numbers>\d+(?:\.\d+){0,3})"
    r"(?:-(?P<labels>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<metadata>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@total_ordering
class SemanticVersion:
    __slots__ = ("major", "minor", "patch", "revision", "release_labels", "metadata")

    def __init__(
        self,
        major: int,
        minor: int = 0,
        patch: int = 0,
        revision: int = 0,
        release_labels: Tuple[str, ...] = (),
        metadata: Optional[str] = None,
    ):
        self.major = major
        self.minor = minor
        self.patch = patch
        self.revision = revision
        self.release_labels = tuple(release_labels)
        self.metadata = metadata

    @classmethod
    def parse(cls, value: str) -> "SemanticVersion":
        version = cls.try_parse(value)
        if version is None:
            raise ValueError(f"'{value}' is not a valid version string")
        return version

    @classmethod
    def try_parse(cls, value: Optional[str]) -> Optional["SemanticVersion"]:
        if value is None:
            return None
        match = _VERSION_PATTERN.match(value.strip())
        if not match:
            return None

        numbers = [int(part) for part in match.group("numbers").split(".")]
        numbers += [0] * (4 - len(numbers))
        labels = match.group("labels")
        return cls(
            *numbers,
            release_labels=tuple(labels.split(".")) if labels else (),
            metadata=match.group("metadata"),
        )

    @property
    def is_prerelease(self) -> bool:
        return bool(self.release_labels)

    def _sort_key(self) -> tuple:
        # A release sorts after every prerelease of the same numbers.
        labels = tuple(
            (0, int(label), "") if label.isdigit() else (1, 0, label.lower())
            for label in self.release_labels
        )
        return (self.major, self.minor, self.patch, self.revision, not self.release_labels, labels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._sort_key() == other._sort_key()

    def __lt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __hash__(self) -> int:
        return hash(self._sort_key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            text += f".{self.revision}"
        if self.release_labels:
            text += "-" + ".".join(self.release_labels)
        if self.metadata:
            text += "+" + self.metadata
        return text

    def __repr__(self) -> str:
        return f"SemanticVersion('{self}')"


class VersionRange:
    """
    A contiguous set of versions bounded by optional minimum and maximum.
    """

    __slots__ = ("min_version", "is_min_inclusive", "max_version", "is_max_inclusive")

    def __init__(
        self,
        min_version: Optional[SemanticVersion] = None,
        is_min_inclusive: bool = True,
        max_version: Optional[SemanticVersion] = None,
        is_max_inclusive: bool = False,
    ):
        self.min_version = min_version
        self.is_min_inclusive = is_min_inclusive
        self.max_version = max_version
        self.is_max_inclusive = is_max_inclusive

    @classmethod
    def parse(cls, value: str) -> "VersionRange":
        version_range = cls.try_parse(value)
        if version_range is None:
            raise ValueError(f"'{value}' is not a valid version range")
        return version_range

    @classmethod
    def try_parse(cls, value: Optional[str]) -> Optional["VersionRange"]:
        """
        Parse interval notation, returning None for anything malformed.

        Examples:
            1.0        -> 1.0 <= x
            [1.0]      -> x == 1.0
            (1.0,)     -> 1.0 < x
            [1.0,2.0)  -> 1.0 <= x < 2.0
            (,2.0]     -> x <= 2.0
        """
        if value is None:
            return None
        value = value.strip()
        if not value:
            return None

        if value[0] not in "[(":
            version = SemanticVersion.try_parse(value)
            if version is None:
                return None
            return cls(min_version=version, is_min_inclusive=True)

        if len(value) < 3 or value[-1] not in "])":
            return None

        is_min_inclusive = value[0] == "["
        is_max_inclusive = value[-1] == "]"
        parts = value[1:-1].split(",")
        if len(parts) > 2:
            return None

        if len(parts) == 1:
            # Exact match needs inclusive brackets on both sides.
            if not (is_min_inclusive and is_max_inclusive):
                return None
            version = SemanticVersion.try_parse(parts[0])
            if version is None:
                return None
            return cls(version, True, version, True)

        min_text, max_text = parts[0].strip(), parts[1].strip()
        if not min_text and not max_text:
            return None

        min_version = SemanticVersion.try_parse(min_text) if min_text else None
        max_version = SemanticVersion.try_parse(max_text) if max_text else None
        if (min_text and min_version is None) or (max_text and max_version is None):
            return None

        if min_version is not None and max_version is not None:
            if min_version > max_version:
                return None
            if min_version == max_version and not (is_min_inclusive and is_max_inclusive):
                return None

        return cls(min_version, is_min_inclusive, max_version, is_max_inclusive)

    def satisfies(self, version: SemanticVersion) -> bool:
        if self.min_version is not None:
            if self.is_min_inclusive:
                if version < self.min_version:
                    return False
            elif version <= self.min_version:
                return False
        if self.max_version is not None:
            if self.is_max_inclusive:
                if version > self.max_version:
                    return False
            elif version >= self.max_version:
                return False
        return True

    def _key(self) -> tuple:
        return (self.min_version, self.is_min_inclusive, self.max_version, self.is_max_inclusive)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRange):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        if self.min_version is not None and self.min_version == self.max_version:
            return f"[{self.min_version}]"
        left = "[" if self.is_min_inclusive else "("
        right = "]" if self.is_max_inclusive else ")"
        low = str(self.min_version) if self.min_version is not None else ""
        high = str(self.max_version) if self.max_version is not None else ""
        return f"{left}{low}, {high}{right}"

    def __repr__(self) -> str:
        return f"VersionRange('{self}')"
