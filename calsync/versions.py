from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from functools import total_ordering
from typing import NamedTuple

VERSION_REGEX = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(.+))?$")


class VersionComponents(NamedTuple):
    major: int
    minor: int
    micro: int
    patch: int
    classifier: str


def parse_version(version: str) -> VersionComponents:
    match = VERSION_REGEX.match(version)
    if not match:
        return VersionComponents(0, 0, 0, 0, version)
    major, minor, micro, patch, classifier = match.groups()
    return VersionComponents(int(major), int(minor), int(micro or 0), int(patch or 0), classifier or "")


def _is_final(classifier: str) -> bool:
    return classifier == "" or classifier.lower() == "final"


def compare_classifiers(a: str, b: str) -> int:
    """Final (or no classifier) sorts after any pre-release classifier such as CR1."""
    a_final, b_final = _is_final(a), _is_final(b)
    if a_final and b_final:
        return 0
    if a_final:
        return 1
    if b_final:
        return -1
    a, b = a.lower(), b.lower()
    return (a > b) - (a < b)


def compare_versions(a: str, b: str) -> int:
    left, right = parse_version(a), parse_version(b)
    if left[:4] != right[:4]:
        return -1 if left[:4] < right[:4] else 1
    return compare_classifiers(left.classifier, right.classifier)


@total_ordering
@dataclass(frozen=True, eq=False)
class PlatformVersion:
    version: str
    date: date

    def __eq__(self, other):
        if not isinstance(other, PlatformVersion):
            return NotImplemented
        return compare_versions(self.version, other.version) == 0

    def __lt__(self, other):
        if not isinstance(other, PlatformVersion):
            return NotImplemented
        return compare_versions(self.version, other.version) < 0

    def __hash__(self):
        components = parse_version(self.version)
        return hash(components[:4] + ("" if _is_final(components.classifier) else components.classifier.lower(),))

    def is_at_least(self, min_version: str) -> bool:
        return compare_versions(self.version, min_version) >= 0
