#!/usr/bin/env python3

import os
import shutil
from dataclasses import replace
from typing import List, Mapping, Optional, Tuple

import requests

from ..utils.config import Settings, build_settings, find_config_file, load_config
from .catalog import RemoteCatalog, build_authorization_header
from .errors import ParseError
from .installer import SecureInstaller
from .resolver import ConstraintResolver
from .semver import (
    Version,
    canonical_version,
    is_exact_version,
    parse_constraints,
    satisfies_all,
    sort_versions,
    stable_only,
    validate_requirement,
)
from .sources import ProbeContext, SourceKind, VersionRequirement

UNINSTALL_ALL = "all"
UNINSTALL_BUT_LAST = "but-last"


class ToolManager:
    """Core class tying settings, version sources, the catalog and the installer together"""

    def __init__(
        self,
        settings: Settings,
        session: Optional[requests.Session] = None,
        environ: Optional[Mapping[str, str]] = None,
        config_path: Optional[str] = None,
    ):
        self.settings = settings
        self.config_path = config_path
        self.catalog = RemoteCatalog(
            settings.remote_url,
            authorization=build_authorization_header(settings.github_token),
            session=session,
            cache_enabled=settings.cache_enabled,
            cache_expiry=settings.cache_expiry,
        )
        self.resolver = ConstraintResolver(
            ProbeContext.from_settings(settings, environ),
            fallback=settings.default_version,
            installed=self.list_installed,
            force_remote=settings.force_remote,
        )
        self.installer = SecureInstaller(self.catalog, settings)

    @classmethod
    def from_config(
        cls,
        config_path: Optional[str] = None,
        root_path: Optional[str] = None,
        working_dir: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        session: Optional[requests.Session] = None,
        **overrides,
    ) -> "ToolManager":
        """Build a manager from the first config file found plus the environment"""
        found = find_config_file(config_path)
        if config_path and found != config_path:
            raise FileNotFoundError(f"Config file not found at: {config_path}")
        settings = build_settings(load_config(found), environ, working_dir, root_path)
        if overrides:
            settings = replace(settings, **overrides)
        return cls(settings, session=session, environ=environ, config_path=found)

    def detect(self, requested: Optional[str] = None) -> List[VersionRequirement]:
        """Requirement(s) that decide which version is used"""
        if requested:
            raw = requested.strip()
            validate_requirement(raw)
            return [VersionRequirement(SourceKind.ARGUMENT, raw)]
        return self.resolver.detect()

    def resolve_version(self, requested: Optional[str] = None) -> str:
        """One concrete version; exact requirements never touch the network"""
        return self.resolver.resolve_requirements(self.detect(requested), self.catalog)

    def install(self, requested: Optional[str] = None) -> Tuple[str, str]:
        """Resolve and install; return (version, install directory)"""
        version = self.resolve_version(requested)
        return version, self.installer.install(version)

    def list_installed(self) -> List[str]:
        install_dir = self.settings.install_dir
        if not os.path.isdir(install_dir):
            return []
        names = [
            name
            for name in os.listdir(install_dir)
            if os.path.isdir(os.path.join(install_dir, name))
        ]
        return sort_versions(names)

    def list_remote(self, stable: bool = False) -> List[str]:
        versions = self.catalog.list_versions()
        if stable:
            versions = [v for v in versions if stable_only(Version.parse(v))]
        return versions

    def select_uninstall(self, selector: str) -> List[str]:
        """
        Installed versions named by selector

        "all" picks every installed version, "but-last" all but the highest.
        An exact version names itself; anything else is read as a constraint.
        """
        selector = selector.strip()
        installed = self.list_installed()
        if selector == UNINSTALL_ALL:
            return installed
        if selector == UNINSTALL_BUT_LAST:
            return installed[:-1]
        if is_exact_version(selector):
            version = canonical_version(selector)
            return [version] if version in installed else []
        predicate = satisfies_all(parse_constraints(selector))
        return [version for version in installed if predicate(Version.parse(version))]

    def uninstall(self, selector: str) -> List[str]:
        """Remove the installed versions selector names; return them"""
        removed = []
        for version in self.select_uninstall(selector):
            # only names listed from the install directory are removed
            shutil.rmtree(self.settings.version_dir(version))
            removed.append(version)
        return removed

    def reset(self) -> bool:
        """Remove the version file pinned in the install root"""
        path = os.path.join(self.settings.root_path, self.settings.version_file)
        if not os.path.isfile(path):
            return False
        os.remove(path)
        return True

    def use(self, requested: str, working_dir: bool = False) -> str:
        """Write the pinned version file in the project or the install root"""
        raw = requested.strip()
        if not raw:
            raise ParseError("An empty version cannot be pinned")
        validate_requirement(raw)
        directory = self.settings.working_dir if working_dir else self.settings.root_path
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, self.settings.version_file)
        with open(path, "w") as f:
            f.write(raw + "\n")
        return path
