"""Version parsing, comparison and derivation.

Versions are dot-separated non-negative integers ("1.2", "4.1.0",
"20240101"). A version ending in SNAPSHOT_SUFFIX marks development work
that follows a release (e.g. "4.1.0.50-git") and is never a release.
"""

from __future__ import annotations

import re
from enum import IntEnum

from packaging.version import Version

from .errors import InvalidVersion

SNAPSHOT_SUFFIX = ".50-git"

_VERSION_RE = re.compile(r"\d+(\.\d+)*")


class Comparison(IntEnum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


def is_snapshot(version: str) -> bool:
    """Return True if version carries the development-snapshot suffix."""
    return version.endswith(SNAPSHOT_SUFFIX)


def strip_snapshot(version: str) -> str:
    """Remove the snapshot suffix, if any.

    Examples:
        "1.2.0.50-git" → "1.2.0"
        "1.2.0" → "1.2.0"
    """
    if is_snapshot(version):
        return version[: -len(SNAPSHOT_SUFFIX)]
    return version


def snapshot_of(version: str) -> str:
    """Return the development snapshot that follows a release."""
    return strip_snapshot(version) + SNAPSHOT_SUFFIX


def is_valid(version: str) -> bool:
    """Return True if version is a (possibly snapshot) numeric version."""
    return bool(_VERSION_RE.fullmatch(strip_snapshot(version)))


def parse_version(version_str: str) -> Version:
    """Parse a version string into a packaging Version for ordering.

    The snapshot suffix is dropped; comparison pads shorter versions
    with zeros, so "1.2" and "1.2.0" are equal.

    Raises:
        InvalidVersion: If the string is not a dotted integer sequence.
    """
    base = strip_snapshot(version_str)
    if not _VERSION_RE.fullmatch(base):
        raise InvalidVersion(f"Not a valid version: {version_str!r}")
    return Version(base)


def compare(a: str, b: str) -> Comparison:
    """Compare two version strings componentwise."""
    va, vb = parse_version(a), parse_version(b)
    if va < vb:
        return Comparison.LESS
    if va > vb:
        return Comparison.GREATER
    return Comparison.EQUAL


def derive_next_candidate(previous: str | None) -> str | None:
    """Propose the version following previous.

    Increments the last numeric component. Without a previous version
    there is nothing to derive from and None is returned.

    Examples:
        "1.2.3" → "1.2.4"
        "1.9" → "1.10"
        None → None
    """
    if previous is None:
        return None
    parts = strip_snapshot(previous).split(".")
    parts[-1] = str(int(parts[-1]) + 1)
    return ".".join(parts)


def validate_release_version(candidate: str, previous: str | None) -> None:
    """Check that candidate may be used for a new release.

    Raises:
        InvalidVersion: If candidate is malformed, is a development
            snapshot, or does not compare strictly greater than previous.
    """
    if is_snapshot(candidate):
        raise InvalidVersion(
            f"{candidate} is a development snapshot, not a release version"
        )
    parse_version(candidate)
    if previous is not None and compare(candidate, previous) is not Comparison.GREATER:
        raise InvalidVersion(
            f"Version {candidate} is not greater than the last release {previous}"
        )
