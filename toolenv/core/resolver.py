#!/usr/bin/env python3

from typing import Callable, List, Optional, Sequence

from colorama import Fore, Style

from .errors import ConstraintUnsatisfiable, NoVersionFound
from .semver import (
    LATEST,
    LATEST_ALLOWED,
    LATEST_STABLE,
    MIN_REQUIRED,
    Version,
    any_version,
    canonical_version,
    is_exact_version,
    parse_constraints,
    satisfies_all,
    select_version,
    stable_only,
)
from .sources import ProbeContext, SourceKind, VersionRequirement, default_sources


class ConstraintResolver:
    """
    Apply source precedence and turn the winning requirement into one version

    Sources are polled in order; the first single-value source that fires is
    taken as-is. Otherwise every project constraint is ANDed, and when there
    are none the fallback keyword is used. Exact versions are never looked up.
    Anything else is matched against the installed versions first and only
    goes to the catalog when none of them fits, or when force_remote is set.
    """

    def __init__(
        self,
        context: ProbeContext,
        sources: Optional[Sequence] = None,
        fallback: str = "",
        installed: Optional[Callable[[], List[str]]] = None,
        force_remote: bool = False,
    ):
        self.context = context
        self.sources = list(default_sources() if sources is None else sources)
        self.fallback = fallback.strip()
        self.installed = installed
        self.force_remote = force_remote

    def detect(self) -> List[VersionRequirement]:
        """Return the winning requirement, or every project constraint"""
        constraints: List[VersionRequirement] = []
        for source in self.sources:
            found = source.probe(self.context)
            if not found:
                continue
            if source.accumulates:
                constraints.extend(found)
                continue
            return found[:1]

        if constraints:
            return constraints
        if self.fallback:
            return [VersionRequirement(SourceKind.FALLBACK, self.fallback)]
        raise NoVersionFound(
            "No version requirement found and no default version configured"
        )

    def project_constraints(self) -> List[VersionRequirement]:
        requirements = []
        for source in self.sources:
            if source.accumulates:
                requirements.extend(source.probe(self.context))
        return requirements

    def resolve(self, catalog) -> str:
        return self.resolve_requirements(self.detect(), catalog)

    def resolve_requirements(self, requirements: List[VersionRequirement], catalog) -> str:
        first = requirements[0]
        if first.origin is SourceKind.PROJECT_CONSTRAINT:
            return self._resolve_constraints(
                requirements, catalog, lowest=self.fallback == MIN_REQUIRED
            )

        raw = first.raw.strip()
        if raw == LATEST:
            return self._select(catalog, any_version, False, LATEST)
        if raw == LATEST_STABLE:
            return self._select(catalog, stable_only, False, LATEST_STABLE)
        if raw in (LATEST_ALLOWED, MIN_REQUIRED):
            constraints = self.project_constraints()
            if not constraints:
                print(
                    f"{Fore.YELLOW}ℹ️ No version requirement found in project files, "
                    f"falling back to {LATEST_STABLE}{Style.RESET_ALL}"
                )
                return self._select(catalog, stable_only, False, LATEST_STABLE)
            return self._resolve_constraints(constraints, catalog, lowest=raw == MIN_REQUIRED)
        if is_exact_version(raw):
            return canonical_version(raw)
        return self._select(catalog, satisfies_all(parse_constraints(raw)), False, raw)

    def _resolve_constraints(
        self, requirements: List[VersionRequirement], catalog, lowest: bool
    ) -> str:
        constraints = []
        for requirement in requirements:
            constraints.extend(parse_constraints(requirement.raw))
        description = ", ".join(requirement.raw for requirement in requirements)
        return self._select(catalog, satisfies_all(constraints), lowest, description)

    def _select(
        self,
        catalog,
        predicate: Callable[[Version], bool],
        lowest: bool,
        description: str,
    ) -> str:
        if self.installed is not None and not self.force_remote:
            local = select_version(self.installed(), predicate, lowest)
            if local is not None:
                print(
                    f"{Fore.GREEN}✔ Installed version {local} satisfies '{description}'{Style.RESET_ALL}"
                )
                return local

        tags = [release.tag for release in catalog.list_releases()]
        chosen = select_version(tags, predicate, lowest)
        if chosen is None:
            raise ConstraintUnsatisfiable(
                f"No published release satisfies '{description}'"
            )
        return canonical_version(chosen)

