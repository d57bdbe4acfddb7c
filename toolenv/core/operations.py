#!/usr/bin/env python3

import os
from typing import List, Optional

from colorama import Fore, Style

from .errors import NoVersionFound
from .manager import ToolManager
from .semver import canonical_version, is_exact_version


def detect_version(manager: ToolManager, requested: Optional[str] = None) -> str:
    """Show where the requirement comes from and the version it resolves to"""
    requirements = manager.detect(requested)
    tool_name = manager.settings.tool_name

    print(f"\n{Fore.CYAN}{Style.BRIGHT}Version requirement for {tool_name}:{Style.RESET_ALL}\n")
    for requirement in requirements:
        print(f"  {Fore.WHITE}{Style.BRIGHT}{requirement.raw}{Style.RESET_ALL}")
        print(f"    from {requirement.describe()}")

    version = manager.resolver.resolve_requirements(requirements, manager.catalog)
    print(f"\n{Fore.GREEN}➡️  Resolved {tool_name} version: {version}{Style.RESET_ALL}")
    return version


def install_tool(manager: ToolManager, requested: Optional[str] = None) -> str:
    """Resolve the requested (or detected) version and install it"""
    tool_name = manager.settings.tool_name
    if requested:
        print(f"🔍 Resolving {tool_name} {requested}...")
    else:
        print(f"🔍 Detecting required {tool_name} version...")

    version, path = manager.install(requested)
    print(f"   {tool_name} {version} → {path}")
    return version


def list_installed(manager: ToolManager) -> None:
    """List locally installed versions, marking the one currently selected"""
    tool_name = manager.settings.tool_name
    versions = manager.list_installed()

    print(
        f"\n{Fore.CYAN}{Style.BRIGHT}Installed {tool_name} versions in "
        f"{manager.settings.install_dir}:{Style.RESET_ALL}\n"
    )
    if not versions:
        print(f"{Fore.YELLOW}No versions installed.{Style.RESET_ALL}")
        return

    try:
        requirements = manager.detect()
    except NoVersionFound:
        requirements = []
    selected = None
    if len(requirements) == 1 and is_exact_version(requirements[0].raw):
        selected = canonical_version(requirements[0].raw)
    for version in versions:
        if version == selected:
            print(
                f"{Fore.GREEN}* {version}{Style.RESET_ALL} "
                f"(set by {requirements[0].describe()})"
            )
        else:
            print(f"  {version}")


def list_remote(manager: ToolManager, stable: bool = False) -> None:
    """List versions published on the remote, newest last"""
    versions = manager.list_remote(stable)
    installed = set(manager.list_installed())

    kind = "stable " if stable else ""
    print(
        f"\n{Fore.CYAN}{Style.BRIGHT}Available {kind}{manager.settings.tool_name} "
        f"versions:{Style.RESET_ALL}\n"
    )
    if not versions:
        print(f"{Fore.YELLOW}No releases found.{Style.RESET_ALL}")
        return

    for version in versions:
        if version in installed:
            print(f"  {version} {Fore.GREEN}[INSTALLED]{Style.RESET_ALL}")
        else:
            print(f"  {version}")

    print(f"\n{Fore.CYAN}ℹ️ Latest release: {manager.catalog.latest_release()}{Style.RESET_ALL}")


def uninstall_version(manager: ToolManager, selector: str) -> List[str]:
    """Remove the installed versions a selector names"""
    tool_name = manager.settings.tool_name
    removed = manager.uninstall(selector)
    if not removed:
        print(f"{Fore.YELLOW}ℹ️ No installed {tool_name} version matches {selector}{Style.RESET_ALL}")
        return removed
    for version in removed:
        print(f"{Fore.GREEN}✅ Uninstalled {tool_name} {version}{Style.RESET_ALL}")
    return removed


def reset_version(manager: ToolManager) -> bool:
    path = os.path.join(manager.settings.root_path, manager.settings.version_file)
    if manager.reset():
        print(f"{Fore.GREEN}✅ Removed {path}{Style.RESET_ALL}")
        return True
    print(f"{Fore.YELLOW}ℹ️ No version file at {path}{Style.RESET_ALL}")
    return False


def use_version(manager: ToolManager, version: str, working_dir: bool = False) -> str:
    """Pin a version for the project or for the whole install root"""
    path = manager.use(version, working_dir)
    print(f"{Fore.GREEN}✅ Written {version} in {path}{Style.RESET_ALL}")
    return path
