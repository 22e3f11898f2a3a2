"""Meta-model versions: parsing, ordering and the set of recognized revisions."""

from __future__ import annotations

import re
from dataclasses import dataclass

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


class UnsupportedVersionError(ValueError):
    """Raised when a meta-model version is malformed or not recognized."""


@dataclass(frozen=True, order=True)
class MetaModelVersion:
    """A meta-model revision, ordered by (major, minor, patch)."""

    major: int
    minor: int
    patch: int

    def to_version_string(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def is_newer_than(self, other: MetaModelVersion) -> bool:
        return self > other

    def is_older_than(self, other: MetaModelVersion) -> bool:
        return self < other

    def __str__(self) -> str:
        return self.to_version_string()


SAMM_1_0_0 = MetaModelVersion(1, 0, 0)
SAMM_2_0_0 = MetaModelVersion(2, 0, 0)
SAMM_2_1_0 = MetaModelVersion(2, 1, 0)
SAMM_2_2_0 = MetaModelVersion(2, 2, 0)

KNOWN_VERSIONS: tuple[MetaModelVersion, ...] = (SAMM_1_0_0, SAMM_2_0_0, SAMM_2_1_0, SAMM_2_2_0)
LATEST_VERSION: MetaModelVersion = KNOWN_VERSIONS[-1]


def parse_version(value: str | MetaModelVersion) -> MetaModelVersion:
    """Parse ``major.minor.patch`` into a recognized :class:`MetaModelVersion`.

    Raises :class:`UnsupportedVersionError` for malformed strings and for
    well-formed versions that are not in :data:`KNOWN_VERSIONS`.
    """
    if isinstance(value, MetaModelVersion):
        version = value
    else:
        match = _VERSION_RE.match(str(value).strip())
        if match is None:
            msg = f"Malformed meta-model version '{value}', expected major.minor.patch"
            raise UnsupportedVersionError(msg)
        version = MetaModelVersion(*(int(part) for part in match.groups()))

    if version not in KNOWN_VERSIONS:
        expected = [v.to_version_string() for v in KNOWN_VERSIONS]
        msg = f"Unsupported meta-model version {version}, expected one of {expected}"
        raise UnsupportedVersionError(msg)
    return version


@dataclass(frozen=True)
class VersionRange:
    """Inclusive version bounds; ``None`` leaves a side open."""

    since: MetaModelVersion | None = None
    until: MetaModelVersion | None = None

    def contains(self, version: MetaModelVersion) -> bool:
        if self.since is not None and version < self.since:
            return False
        return not (self.until is not None and version > self.until)

    def overlaps(self, other: VersionRange) -> bool:
        """Return True if some known version lies in both ranges."""
        return any(self.contains(v) and other.contains(v) for v in KNOWN_VERSIONS)

    def describe(self) -> str:
        if self.since is None and self.until is None:
            return "all"
        if self.since is None:
            return f"<= {self.until}"
        if self.until is None:
            return f">= {self.since}"
        return f"{self.since} .. {self.until}"
