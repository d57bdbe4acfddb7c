#!/usr/bin/env python3

"""
Semantic version parsing, ordering and constraint evaluation

Versions follow major.minor.patch[-prerelease][+build]. Minor and patch may be
omitted, a leading 'v' is accepted and dropped, build metadata never affects
ordering. Constraints use the operators =, !=, >, >=, <, <= and ~> and may be
joined with commas, in which case every part must hold.
"""

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Callable, Iterable, List, Optional, Tuple

from colorama import Fore, Style

from .errors import ParseError

LATEST = "latest"
LATEST_STABLE = "latest-stable"
LATEST_ALLOWED = "latest-allowed"
MIN_REQUIRED = "min-required"
KEYWORDS = (LATEST, LATEST_STABLE, LATEST_ALLOWED, MIN_REQUIRED)

VERSION_PATTERN = re.compile(
    r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z][0-9A-Za-z.\-]*))?"
    r"(?:\+([0-9A-Za-z][0-9A-Za-z.\-]*))?$"
)
CONSTRAINT_PATTERN = re.compile(r"^(~>|>=|<=|!=|=|>|<)?\s*(\S+)$")


def normalize_version(raw: str) -> str:
    """Strip surrounding whitespace and one leading 'v'"""
    value = raw.strip()
    if value.startswith("v"):
        return value[1:]
    return value


def _prerelease_key(prerelease: str) -> Tuple:
    key = []
    for part in prerelease.split("."):
        if part.isdigit():
            key.append((0, int(part), ""))
        else:
            key.append((1, 0, part))
    return tuple(key)


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A parsed version; equality and ordering ignore build metadata"""

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: str = ""
    build: str = ""
    specified: int = 3

    @classmethod
    def parse(cls, raw: str) -> "Version":
        match = VERSION_PATTERN.match(raw.strip())
        if not match:
            raise ParseError(f"Malformed version: {raw!r}")
        major, minor, patch, prerelease, build = match.groups()
        specified = 1 + (minor is not None) + (patch is not None)
        return cls(
            int(major),
            int(minor or 0),
            int(patch or 0),
            prerelease or "",
            build or "",
            specified,
        )

    @property
    def core(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def is_stable(self) -> bool:
        return not self.prerelease

    def sort_key(self) -> Tuple:
        # a release sorts after every pre-release of the same core
        if self.prerelease:
            return (self.core, 0, _prerelease_key(self.prerelease))
        return (self.core, 1, ())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __hash__(self) -> int:
        return hash(self.sort_key())

    def canonical(self) -> str:
        """Full major.minor.patch form, the name used for tags and install directories"""
        return self._render(3)

    def _render(self, segments: int) -> str:
        text = ".".join(str(n) for n in self.core[:segments])
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    def __str__(self) -> str:
        return self._render(self.specified)


def canonical_version(raw: str) -> str:
    """Expand a short exact version such as 1.6 to 1.6.0"""
    return Version.parse(raw).canonical()


def compare_versions(left: str, right: str) -> int:
    """Return -1, 0 or 1 as left sorts before, equal to or after right"""
    a, b = Version.parse(left), Version.parse(right)
    if a == b:
        return 0
    return -1 if a < b else 1


def is_exact_version(raw: str) -> bool:
    return VERSION_PATTERN.match(raw.strip()) is not None


def _prerelease_allowed(candidate: Version, bound: Version) -> bool:
    if candidate.prerelease and bound.prerelease:
        return candidate.core == bound.core
    if candidate.prerelease:
        return False
    return True


@dataclass(frozen=True)
class Constraint:
    """A single operator applied to a version"""

    operator: str
    version: Version

    @classmethod
    def parse(cls, raw: str) -> "Constraint":
        match = CONSTRAINT_PATTERN.match(raw.strip())
        if not match:
            raise ParseError(f"Malformed constraint: {raw!r}")
        operator, version = match.groups()
        return cls(operator or "=", Version.parse(version))

    def check(self, candidate: Version) -> bool:
        bound = self.version
        if self.operator == "=":
            return candidate == bound
        if self.operator == "!=":
            return candidate != bound
        if not _prerelease_allowed(candidate, bound):
            return False
        if self.operator == ">":
            return candidate > bound
        if self.operator == ">=":
            return candidate >= bound
        if self.operator == "<":
            return candidate < bound
        if self.operator == "<=":
            return candidate <= bound
        return self._check_pessimistic(candidate)

    def _check_pessimistic(self, candidate: Version) -> bool:
        bound = self.version
        if bound.prerelease and not candidate.prerelease:
            return False
        if candidate < bound:
            return False
        # every given segment but the last is pinned
        for index in range(bound.specified - 1):
            if candidate.core[index] != bound.core[index]:
                return False
        return True

    def __str__(self) -> str:
        return f"{self.operator} {self.version}"


def parse_constraints(expression: str) -> List[Constraint]:
    """Parse a comma separated constraint expression"""
    parts = [part for part in expression.split(",") if part.strip()]
    if not parts:
        raise ParseError(f"Empty constraint expression: {expression!r}")
    return [Constraint.parse(part) for part in parts]


def validate_requirement(raw: str) -> None:
    """Raise ParseError unless raw is a keyword, a version or a constraint"""
    value = raw.strip()
    if value in KEYWORDS or is_exact_version(value):
        return
    parse_constraints(value)


def satisfies_all(constraints: Iterable[Constraint]) -> Callable[[Version], bool]:
    constraints = list(constraints)
    return lambda candidate: all(c.check(candidate) for c in constraints)


def stable_only(candidate: Version) -> bool:
    return candidate.is_stable


def any_version(candidate: Version) -> bool:
    return True


def parse_versions(raw_versions: Iterable[str]) -> List[Tuple[Version, str]]:
    """Parse catalog versions, skipping malformed ones with a warning"""
    parsed = []
    for raw in raw_versions:
        try:
            parsed.append((Version.parse(raw), normalize_version(raw)))
        except ParseError:
            print(
                f"{Fore.YELLOW}⚠️ Skipping malformed version: {raw}{Style.RESET_ALL}"
            )
    return parsed


def sort_versions(raw_versions: Iterable[str], reverse: bool = False) -> List[str]:
    parsed = parse_versions(raw_versions)
    parsed.sort(key=lambda item: item[0], reverse=reverse)
    return [normalized for _, normalized in parsed]


def select_version(
    raw_versions: Iterable[str],
    predicate: Callable[[Version], bool],
    lowest: bool = False,
) -> Optional[str]:
    """Return the highest (or lowest) version accepted by predicate"""
    matching = [item for item in parse_versions(raw_versions) if predicate(item[0])]
    if not matching:
        return None
    chooser = min if lowest else max
    return chooser(matching, key=lambda item: item[0])[1]
