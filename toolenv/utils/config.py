#!/usr/bin/env python3

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import yaml

from ..core.errors import ParseError
from .system import detect_arch, detect_platform, get_real_home

# Type definitions
ConfigDict = Dict[str, Dict[str, Any]]

APP_NAME = "toolenv"
DEFAULT_CONFIG_PATH = "toolenv.yaml"
SYSTEM_CONFIG_PATH = "/etc/toolenv/toolenv.yaml"

# Tool defaults (OpenTofu)
DEFAULT_TOOL_NAME = "tofu"
DEFAULT_REMOTE_URL = "https://api.github.com/repos/opentofu/opentofu/releases"
DEFAULT_ARCHIVE_EXT = ".zip"
DEFAULT_VERSION_FILE = ".opentofu-version"
DEFAULT_SWITCH_FILE = ".tfswitch.toml"
DEFAULT_TOOL_VERSIONS_FILE = ".tool-versions"
DEFAULT_ASDF_NAME = "opentofu"

# Option defaults
DEFAULT_ROOT_DIR = ".toolenv"
DEFAULT_VERIFY_CHECKSUM = False
DEFAULT_CACHE_ENABLED = True
DEFAULT_CACHE_EXPIRY = 3600  # Cache expiry in seconds (1 hour)
DEFAULT_FORCE_REMOTE = False

# Environment overrides
ENV_PREFIX = "TOOLENV_"
VERSION_ENV_NAME = ENV_PREFIX + "VERSION"
ROOT_ENV_NAME = ENV_PREFIX + "ROOT"
REMOTE_ENV_NAME = ENV_PREFIX + "REMOTE"
TOKEN_ENV_NAME = ENV_PREFIX + "GITHUB_TOKEN"
ARCH_ENV_NAME = ENV_PREFIX + "ARCH"
DEFAULT_VERSION_ENV_NAME = ENV_PREFIX + "DEFAULT_VERSION"
VERIFY_CHECKSUM_ENV_NAME = ENV_PREFIX + "VERIFY_CHECKSUM"
CACHE_ENV_NAME = ENV_PREFIX + "CACHE"
FORCE_REMOTE_ENV_NAME = ENV_PREFIX + "FORCE_REMOTE"

TOOL_DEFAULTS = {
    "name": DEFAULT_TOOL_NAME,
    "remote_url": DEFAULT_REMOTE_URL,
    "archive_ext": DEFAULT_ARCHIVE_EXT,
    "version_file": DEFAULT_VERSION_FILE,
    "switch_file": DEFAULT_SWITCH_FILE,
    "tool_versions_file": DEFAULT_TOOL_VERSIONS_FILE,
    "asdf_name": DEFAULT_ASDF_NAME,
}

OPTION_DEFAULTS = {
    "root_path": "",
    "default_version": "",
    "arch": "",
    "verify_checksum": DEFAULT_VERIFY_CHECKSUM,
    "cache_enabled": DEFAULT_CACHE_ENABLED,
    "cache_expiry": DEFAULT_CACHE_EXPIRY,
    "force_remote": DEFAULT_FORCE_REMOTE,
}

TRUE_VALUES = ("1", "t", "true", "yes", "on")
FALSE_VALUES = ("0", "f", "false", "no", "off")


@dataclass(frozen=True)
class Settings:
    """Resolved configuration threaded through every toolenv call"""

    tool_name: str
    remote_url: str
    archive_ext: str
    version_file: str
    switch_file: str
    root_path: str
    working_dir: str
    user_config_dir: str
    platform: str
    arch: str
    github_token: str = ""
    default_version: str = ""
    verify_checksum: bool = DEFAULT_VERIFY_CHECKSUM
    cache_enabled: bool = DEFAULT_CACHE_ENABLED
    cache_expiry: int = DEFAULT_CACHE_EXPIRY
    force_remote: bool = DEFAULT_FORCE_REMOTE
    version_env_name: str = VERSION_ENV_NAME
    tool_versions_file: str = DEFAULT_TOOL_VERSIONS_FILE
    asdf_name: str = DEFAULT_ASDF_NAME

    @property
    def install_dir(self) -> str:
        """Directory holding one sub-directory per installed version"""
        return os.path.join(self.root_path, self.tool_name)

    def version_dir(self, version: str) -> str:
        return os.path.join(self.install_dir, version)


def user_config_dir() -> str:
    return os.path.join(get_real_home(), ".config", APP_NAME)


def ensure_user_config_dir() -> str:
    """Ensure the user's config directory exists"""
    config_dir = user_config_dir()
    os.makedirs(config_dir, exist_ok=True)
    return config_dir


def find_config_file(config_path: Optional[str] = None) -> Optional[str]:
    """
    Find the configuration file by checking multiple locations:
    1. Specified path from command line
    2. Current directory
    3. User config directory (~/.config/toolenv/)
    4. System-wide location (/etc/toolenv)
    Returns None when no file exists; defaults are used in that case.
    """
    candidates = []
    if config_path:
        candidates.append(config_path)
    candidates.append(os.path.join(os.getcwd(), DEFAULT_CONFIG_PATH))
    candidates.append(os.path.join(user_config_dir(), DEFAULT_CONFIG_PATH))
    candidates.append(SYSTEM_CONFIG_PATH)

    for candidate in candidates:
        if os.path.isfile(candidate):
            return candidate
    return None


def default_config() -> ConfigDict:
    return {"tool": dict(TOOL_DEFAULTS), "options": dict(OPTION_DEFAULTS)}


def create_default_config(config_path: str) -> ConfigDict:
    """Create a default configuration file"""
    config = default_config()
    os.makedirs(os.path.dirname(os.path.abspath(config_path)), exist_ok=True)
    try:
        with open(config_path, "w") as f:
            yaml.dump(config, f, default_flow_style=False)
    except OSError as e:
        raise IOError(f"Failed to create config file: {e}")
    return config


def load_config(config_path: Optional[str]) -> ConfigDict:
    """Load the configuration from the specified path, filling in defaults"""
    config = default_config()
    if config_path is None:
        return config

    try:
        with open(config_path, "r") as file:
            loaded = yaml.safe_load(file) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Config file not found at: {config_path}")
    except yaml.YAMLError as e:
        raise ParseError(f"Error parsing YAML in {config_path}: {e}")

    if not isinstance(loaded, dict):
        raise ParseError(f"Config file {config_path} must contain a mapping")

    for section in ("tool", "options"):
        values = loaded.get(section) or {}
        if not isinstance(values, dict):
            raise ParseError(f"Section '{section}' in {config_path} must be a mapping")
        config[section].update(values)
    return config


def parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ParseError(f"Invalid boolean for {name}: {value!r}")


def build_settings(
    config: ConfigDict,
    environ: Optional[Mapping[str, str]] = None,
    working_dir: Optional[str] = None,
    root_path: Optional[str] = None,
) -> Settings:
    """Merge config file values, environment overrides and explicit arguments"""
    env = os.environ if environ is None else environ
    tool = config["tool"]
    options = config["options"]

    def pick(env_name: str, value: Any) -> Any:
        override = env.get(env_name, "")
        return override if override else value

    root = (
        root_path
        or pick(ROOT_ENV_NAME, options.get("root_path"))
        or os.path.join(get_real_home(), DEFAULT_ROOT_DIR)
    )

    try:
        cache_expiry = int(options.get("cache_expiry", DEFAULT_CACHE_EXPIRY))
    except (TypeError, ValueError):
        raise ParseError(f"Invalid cache_expiry: {options.get('cache_expiry')!r}")

    return Settings(
        tool_name=tool["name"],
        remote_url=pick(REMOTE_ENV_NAME, tool["remote_url"]),
        archive_ext=tool["archive_ext"],
        version_file=tool["version_file"],
        switch_file=tool["switch_file"],
        tool_versions_file=tool.get("tool_versions_file", DEFAULT_TOOL_VERSIONS_FILE),
        asdf_name=tool.get("asdf_name", DEFAULT_ASDF_NAME),
        root_path=os.path.abspath(os.path.expanduser(root)),
        working_dir=os.path.abspath(working_dir or os.getcwd()),
        user_config_dir=user_config_dir(),
        platform=detect_platform(),
        arch=pick(ARCH_ENV_NAME, options.get("arch")) or detect_arch(),
        github_token=env.get(TOKEN_ENV_NAME, ""),
        default_version=pick(DEFAULT_VERSION_ENV_NAME, options.get("default_version"))
        or "",
        verify_checksum=parse_bool(
            VERIFY_CHECKSUM_ENV_NAME,
            pick(VERIFY_CHECKSUM_ENV_NAME, options.get("verify_checksum")),
        ),
        cache_enabled=parse_bool(
            CACHE_ENV_NAME, pick(CACHE_ENV_NAME, options.get("cache_enabled"))
        ),
        cache_expiry=cache_expiry,
        force_remote=parse_bool(
            FORCE_REMOTE_ENV_NAME,
            pick(FORCE_REMOTE_ENV_NAME, options.get("force_remote", DEFAULT_FORCE_REMOTE)),
        ),
    )
