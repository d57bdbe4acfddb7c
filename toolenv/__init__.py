#!/usr/bin/env python3

"""
toolenv - resolve, download, verify and install versions of a CLI tool
Features:
- Version detection from an environment variable, pinned files, switch configs
  and required_version constraints in project files
- Semantic version constraints and keywords (latest, latest-stable,
  latest-allowed, min-required)
- Release lookup on GitHub with pagination and optional token auth
- SHA256 checksum verification and safe archive extraction
"""

from .version import __version__
from .core.errors import ToolenvError
from .core.manager import ToolManager
from .core.operations import install_tool, detect_version, list_installed, list_remote
from .utils.cache import clear_cache, get_cache_info
from .cli.cli import run_cli
