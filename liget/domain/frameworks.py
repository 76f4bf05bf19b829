"""
Target framework identifiers, parsed from short folder names (``net45``,
``netstandard2.0``, ``portable-net45+win8``) or long names
(``.NETFramework,Version=v4.5,Profile=Client``).
"""
from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

NET_FRAMEWORK = ".NETFramework"
NET_STANDARD = ".NETStandard"
NET_CORE_APP = ".NETCoreApp"
NET_PORTABLE = ".NETPortable"

# Short folder-name prefixes and the identifiers they stand for.
_SHORT_IDENTIFIERS: Dict[str, str] = {
    "net": NET_FRAMEWORK,
    "netstandard": NET_STANDARD,
    "netcoreapp": NET_CORE_APP,
    "portable": NET_PORTABLE,
    "netcore": ".NETCore",
    "netmf": ".NETMicroFramework",
    "sl": "Silverlight",
    "wp": "WindowsPhone",
    "wpa": "WindowsPhoneApp",
    "win": "Windows",
    "uap": "UAP",
    "dotnet": ".NETPlatform",
    "native": "native",
    "monoandroid": "MonoAndroid",
    "monotouch": "MonoTouch",
    "xamarinios": "Xamarin.iOS",
    "xamarinmac": "Xamarin.Mac",
    "tizen": "Tizen",
}
_LONG_TO_SHORT = {long.lower(): short for short, long in _SHORT_IDENTIFIERS.items()}

_SHORT_PATTERN = re.compile(r"^(?P<identifier>[A-Za-z]+)(?P<version>[0-9][0-9.]*)?(?:-(?P<profile>.+))?$")


def _parse_version(text: str) -> Tuple[int, ...]:
    if not text:
        return (0, 0)
    if "." in text:
        parts = [int(part) for part in text.split(".") if part]
    else:
        # Short names pack one digit per component: 451 -> 4.5.1
        parts = [int(digit) for digit in text]
    while len(parts) > 2 and parts[-1] == 0:
        parts.pop()
    while len(parts) < 2:
        parts.append(0)
    return tuple(parts)


class TargetFramework:
    __slots__ = ("identifier", "version", "profile")

    def __init__(self, identifier: str, version: Tuple[int, ...] = (0, 0), profile: str = ""):
        self.identifier = identifier
        self.version = version
        self.profile = profile

    @classmethod
    def parse(cls, value: str) -> "TargetFramework":
        """
        Parse a framework name. Unrecognised names keep their text as the
        identifier rather than failing.
        """
        value = value.strip()
        if not value:
            raise ValueError("framework name must not be empty")

        if "," in value:
            return cls._parse_long_name(value)

        match = _SHORT_PATTERN.match(value)
        if not match:
            return cls(value)

        short = match.group("identifier").lower()
        identifier = _SHORT_IDENTIFIERS.get(short)
        if identifier is None:
            return cls(match.group("identifier"), _parse_version(match.group("version") or ""),
                       match.group("profile") or "")

        version = _parse_version(match.group("version") or "")
        # net5.0 and later are .NET Core under the old naming.
        if identifier == NET_FRAMEWORK and "." in (match.group("version") or "") and version[0] >= 5:
            identifier = NET_CORE_APP
        return cls(identifier, version, match.group("profile") or "")

    @classmethod
    def _parse_long_name(cls, value: str) -> "TargetFramework":
        parts = [part.strip() for part in value.split(",")]
        identifier = parts[0]
        version: Tuple[int, ...] = (0, 0)
        profile = ""
        for part in parts[1:]:
            key, _, setting = part.partition("=")
            key = key.strip().lower()
            if key == "version":
                version = _parse_version(setting.strip().lstrip("vV"))
            elif key == "profile":
                profile = setting.strip()

        canonical = _SHORT_IDENTIFIERS.get(_LONG_TO_SHORT.get(identifier.lower(), ""), identifier)
        return cls(canonical, version, profile)

    @property
    def is_any(self) -> bool:
        return self.identifier.lower() == "any"

    def get_short_folder_name(self) -> str:
        if self.identifier == NET_CORE_APP and self.version[0] >= 5:
            short, dotted = "net", True
        else:
            short = _LONG_TO_SHORT.get(self.identifier.lower(), self.identifier.lower())
            dotted = short in ("netstandard", "netcoreapp")

        numbers = [str(part) for part in self.version]
        if dotted:
            version_text = ".".join(numbers)
        elif self.version == (0, 0):
            version_text = ""
        else:
            version_text = "".join(numbers)
        name = f"{short}{version_text}"
        if self.profile:
            name += f"-{self.profile}"
        return name

    def _key(self) -> tuple:
        return (self.identifier.lower(), self.version, self.profile.lower())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TargetFramework):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.identifier},Version=v{'.'.join(str(part) for part in self.version)}"
        if self.profile:
            text += f",Profile={self.profile}"
        return text

    def __repr__(self) -> str:
        return f"TargetFramework('{self}')"


def parse_folder_name(name: str) -> Optional[TargetFramework]:
    """
    Parse a package folder name only if it names a known framework, so that
    ordinary folders such as content/images/ are not mistaken for one.
    """
    match = _SHORT_PATTERN.match(name)
    if not match or match.group("identifier").lower() not in _SHORT_IDENTIFIERS:
        return None
    return TargetFramework.parse(name)


def parse_framework(value: Optional[str]) -> Optional[TargetFramework]:
    """Parse a framework name, treating empty input as "no framework"."""
    if value is None or not value.strip():
        return None
    return TargetFramework.parse(value)
