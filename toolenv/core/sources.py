#!/usr/bin/env python3

"""
Version sources, each probing one origin for a version requirement

Every source exposes probe(context) returning a list of requirements; an empty
list means "not found". Single-value sources return at most one requirement.
ProjectConstraint accumulates every match across the project tree instead.
"""

import json
import os
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Tuple

import hcl2
from colorama import Fore, Style

from .errors import ParseError
from .semver import parse_constraints, validate_requirement

if TYPE_CHECKING:
    from ..utils.config import Settings

# Ordered by priority when two files in one directory share a base name
PROJECT_EXTENSIONS = (".tofu", ".tf", ".tofu.json", ".tf.json")
TERRAFORM_BLOCK = "terraform"
REQUIRED_VERSION = "required_version"
SWITCH_VERSION_FIELD = "version"


class SourceKind(Enum):
    ARGUMENT = "command line"
    ENV = "environment variable"
    PINNED_FILE = "pinned version file"
    TOOL_VERSIONS = "asdf tool-versions file"
    SWITCH_CONFIG = "switch config file"
    PROJECT_CONSTRAINT = "project constraint"
    FALLBACK = "default version"


@dataclass(frozen=True)
class VersionRequirement:
    origin: SourceKind
    raw: str
    location: str = ""

    def describe(self) -> str:
        if self.location:
            return f"{self.origin.value} ({self.location})"
        return self.origin.value


@dataclass(frozen=True)
class ProbeContext:
    """Everything a source may look at, passed explicitly"""

    working_dir: str
    user_config_dir: str
    root_dir: str
    version_file: str
    switch_file: str
    version_env_name: str
    environ: Mapping[str, str] = field(default_factory=dict)
    tool_versions_file: str = ".tool-versions"
    tool_names: Tuple[str, ...] = ()

    @classmethod
    def from_settings(
        cls, settings: "Settings", environ: Optional[Mapping[str, str]] = None
    ) -> "ProbeContext":
        return cls(
            working_dir=settings.working_dir,
            user_config_dir=settings.user_config_dir,
            root_dir=settings.root_path,
            version_file=settings.version_file,
            switch_file=settings.switch_file,
            version_env_name=settings.version_env_name,
            environ=dict(os.environ if environ is None else environ),
            tool_versions_file=settings.tool_versions_file,
            tool_names=tuple(
                name for name in dict.fromkeys((settings.tool_name, settings.asdf_name)) if name
            ),
        )

    def search_dirs(self) -> List[str]:
        """Project directory, then user config directory, then install root"""
        return [self.working_dir, self.user_config_dir, self.root_dir]


def _validated(raw: str, location: str) -> str:
    try:
        validate_requirement(raw)
    except ParseError as e:
        raise ParseError(f"{location}: {e}")
    return raw


class EnvOverride:
    """Exact override from a single environment variable"""

    accumulates = False

    def probe(self, context: ProbeContext) -> List[VersionRequirement]:
        name = context.version_env_name
        value = context.environ.get(name, "").strip()
        if not value:
            return []
        return [VersionRequirement(SourceKind.ENV, _validated(value, name), name)]


def read_pinned_version(path: str) -> Optional[str]:
    """Return the first non-blank line of path, None if it is absent or blank"""
    try:
        with open(path, "r") as f:
            content = f.read()
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"Failed to read {path}: {e}")

    for line in content.splitlines():
        if line.strip():
            return _validated(line.strip(), path)
    return None


def read_switch_version(path: str) -> Optional[str]:
    """Return the version field of a TOML switch config, None if absent"""
    try:
        with open(path, "rb") as f:
            parsed = tomllib.load(f)
    except FileNotFoundError:
        return None
    except tomllib.TOMLDecodeError as e:
        raise ParseError(f"Invalid TOML in {path}: {e}")
    except OSError as e:
        raise ParseError(f"Failed to read {path}: {e}")

    value = parsed.get(SWITCH_VERSION_FIELD)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ParseError(f"{path}: '{SWITCH_VERSION_FIELD}' must be a string")
    value = value.strip()
    return _validated(value, path) if value else None


class PinnedFile:
    """Single-line version file, first location that has one wins"""

    accumulates = False

    def probe(self, context: ProbeContext) -> List[VersionRequirement]:
        for directory in context.search_dirs():
            path = os.path.join(directory, context.version_file)
            value = read_pinned_version(path)
            if value:
                return [VersionRequirement(SourceKind.PINNED_FILE, value, path)]
        return []


class ToolSwitchConfig:
    """TOML switch config with a top-level version field"""

    accumulates = False

    def probe(self, context: ProbeContext) -> List[VersionRequirement]:
        for directory in context.search_dirs():
            path = os.path.join(directory, context.switch_file)
            value = read_switch_version(path)
            if value:
                return [VersionRequirement(SourceKind.SWITCH_CONFIG, value, path)]
        return []


def read_tool_versions(path: str, tool_names: Tuple[str, ...]) -> Optional[str]:
    """
    Return the version an asdf .tool-versions file gives one of tool_names

    Lines read "<tool> <version> [fallbacks...]"; blank lines and comments are
    skipped and the last matching line wins. An unreadable file is reported
    and treated as absent.
    """
    try:
        with open(path, "r") as f:
            content = f.read()
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        print(f"{Fore.YELLOW}⚠️ Failed to read {path}: {e}{Style.RESET_ALL}")
        return None

    found = None
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) >= 2 and parts[0] in tool_names:
            value = parts[1].split("#", 1)[0].strip()
            if value:
                found = value
    return _validated(found, path) if found else None


class ToolVersions:
    """asdf .tool-versions file naming the tool"""

    accumulates = False

    def probe(self, context: ProbeContext) -> List[VersionRequirement]:
        if not context.tool_names:
            return []
        for directory in context.search_dirs():
            path = os.path.join(directory, context.tool_versions_file)
            value = read_tool_versions(path, context.tool_names)
            if value:
                return [VersionRequirement(SourceKind.TOOL_VERSIONS, value, path)]
        return []


def _split_extension(file_name: str) -> Optional[tuple]:
    for ext in PROJECT_EXTENSIONS:
        if file_name.endswith(ext) and len(file_name) > len(ext):
            return file_name[: -len(ext)], ext
    return None


def find_project_files(working_dir: str) -> Iterator[str]:
    """
    Walk working_dir for configuration files, skipping hidden directories

    When main.tofu and main.tf sit side by side only main.tofu is returned.
    """
    for dir_path, dir_names, file_names in os.walk(working_dir):
        dir_names[:] = sorted(name for name in dir_names if not name.startswith("."))

        chosen: Dict[str, str] = {}
        for file_name in sorted(file_names):
            split = _split_extension(file_name)
            if split is None:
                continue
            base, ext = split
            current = chosen.get(base)
            if current is None or PROJECT_EXTENSIONS.index(ext) < PROJECT_EXTENSIONS.index(current):
                chosen[base] = ext

        for base in sorted(chosen):
            yield os.path.join(dir_path, base + chosen[base])


def parse_project_file(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        if path.endswith(".json"):
            parsed = json.load(f)
        else:
            parsed = hcl2.load(f)
    if not isinstance(parsed, dict):
        raise ParseError(f"{path} does not contain a top-level object")
    return parsed


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def extract_required_versions(parsed: Dict[str, Any], path: str = "") -> List[str]:
    """Collect every terraform.required_version string from a decoded file"""
    blocks = parsed.get(TERRAFORM_BLOCK, [])
    if isinstance(blocks, dict):
        blocks = [blocks]
    if not isinstance(blocks, list):
        return []

    requireds = []
    for block in blocks:
        if not isinstance(block, dict) or REQUIRED_VERSION not in block:
            continue
        value = block[REQUIRED_VERSION]
        # older hcl2 releases wrap attribute values in a list
        if isinstance(value, list) and len(value) == 1:
            value = value[0]
        if not isinstance(value, str):
            print(
                f"{Fore.YELLOW}⚠️ Ignoring non-string {REQUIRED_VERSION} in {path}{Style.RESET_ALL}"
            )
            continue
        value = _unquote(value)
        if value:
            requireds.append(value)
    return requireds


class ProjectConstraint:
    """Every required_version declared across the project tree"""

    accumulates = True

    def probe(self, context: ProbeContext) -> List[VersionRequirement]:
        requirements = []
        for path in find_project_files(context.working_dir):
            try:
                parsed = parse_project_file(path)
            except Exception as e:
                # unparsable files are skipped, never fatal
                print(f"{Fore.YELLOW}⚠️ Skipping {path}: {e}{Style.RESET_ALL}")
                continue

            for raw in extract_required_versions(parsed, path):
                try:
                    parse_constraints(raw)
                except ParseError as e:
                    print(f"{Fore.YELLOW}⚠️ Skipping constraint in {path}: {e}{Style.RESET_ALL}")
                    continue
                requirements.append(
                    VersionRequirement(SourceKind.PROJECT_CONSTRAINT, raw, path)
                )
        return requirements


def default_sources() -> List[Any]:
    """Sources in priority order"""
    return [EnvOverride(), PinnedFile(), ToolVersions(), ToolSwitchConfig(), ProjectConstraint()]
