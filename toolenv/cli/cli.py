#!/usr/bin/env python3

import argparse
import os
import sys
from colorama import Fore, Style

from ..version import __version__
from ..utils.cache import clear_cache, get_cache_info
from ..utils.config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_VERSION_FILE,
    FORCE_REMOTE_ENV_NAME,
    ROOT_ENV_NAME,
    VERSION_ENV_NAME,
    ensure_user_config_dir,
    create_default_config,
)
from ..core.errors import ToolenvError
from ..core.manager import ToolManager
from ..core.operations import (
    detect_version,
    install_tool,
    list_installed,
    list_remote,
    reset_version,
    uninstall_version,
    use_version,
)

DETECTED = "detected"


def parse_args(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description=f"toolenv v{__version__} - resolve, verify and install tool versions from GitHub releases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            f"Version requirement precedence: {VERSION_ENV_NAME}, {DEFAULT_VERSION_FILE}, "
            ".tool-versions, .tfswitch.toml, required_version in project files, default_version option"
        ),
    )
    parser.add_argument(
        "--config",
        help=f"Configuration file (default: search for {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--root",
        help=f"Install root (default: ${ROOT_ENV_NAME} or ~/.toolenv)",
    )
    parser.add_argument(
        "--install",
        nargs="?",
        const=DETECTED,
        metavar="VERSION",
        help="Install a version, constraint or keyword (default: the detected requirement)",
    )
    parser.add_argument(
        "--detect",
        action="store_true",
        help="Show the detected version requirement and what it resolves to",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List installed versions",
    )
    parser.add_argument(
        "--list-remote",
        action="store_true",
        help="List versions published on the remote",
    )
    parser.add_argument(
        "--stable",
        action="store_true",
        help="Only show stable versions (used with --list-remote)",
    )
    parser.add_argument(
        "--uninstall",
        metavar="SELECTOR",
        help="Remove installed versions: an exact version, a constraint, 'all' or 'but-last'",
    )
    parser.add_argument(
        "--use",
        metavar="VERSION",
        help=f"Write VERSION to {DEFAULT_VERSION_FILE} in the install root",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help=f"Remove {DEFAULT_VERSION_FILE} from the install root",
    )
    parser.add_argument(
        "--working-dir",
        action="store_true",
        help="Write the version file in the current directory (used with --use)",
    )
    parser.add_argument(
        "--force-remote",
        action="store_true",
        help=f"Resolve against the remote even when an installed version matches (also ${FORCE_REMOTE_ENV_NAME})",
    )
    parser.add_argument(
        "--no-cache", action="store_true", help="Disable release caching for this run"
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Clear the release listing cache",
    )
    parser.add_argument(
        "--cache-info",
        action="store_true",
        help="Show cache information and statistics",
    )
    parser.add_argument(
        "--version", action="store_true", help="Show the version and exit"
    )
    parser.add_argument(
        "--init",
        action="store_true",
        help="Initialize a default config file in the user's config directory",
    )

    return parser.parse_args(argv)


def handle_init_command():
    """Handle the --init command to create a default config file"""
    user_config_dir = ensure_user_config_dir()
    user_config_path = os.path.join(user_config_dir, DEFAULT_CONFIG_PATH)

    if os.path.isfile(user_config_path):
        print(
            f"{Fore.YELLOW}Config file already exists at {user_config_path}{Style.RESET_ALL}"
        )
        return

    try:
        create_default_config(user_config_path)
        print(
            f"{Fore.GREEN}✅ Created default config file at {user_config_path}{Style.RESET_ALL}"
        )
    except OSError as e:
        print(f"{Fore.RED}❌ Failed to create config file: {e}{Style.RESET_ALL}")
        sys.exit(1)


def handle_cache_info():
    """Handle the --cache-info command"""
    cache_info = get_cache_info()
    print(f"Cache directory: {cache_info['path']}")

    if cache_info["exists"]:
        print(f"Cache size: {cache_info['size_bytes'] / (1024*1024):.2f} MB")
        print(f"Release listing entries: {cache_info['release_entries']}")
    else:
        print("Cache directory does not exist yet")


def run_cli(argv=None):
    """Run the command-line interface"""
    args = parse_args(argv)

    if args.version:
        print(f"toolenv v{__version__}")
        return

    if args.init:
        handle_init_command()
        return

    if args.clear_cache:
        if clear_cache():
            print(f"{Fore.GREEN}✅ Cache successfully cleared{Style.RESET_ALL}")
        else:
            print(
                f"{Fore.YELLOW}ℹ️ No cache directory found or failed to clear cache{Style.RESET_ALL}"
            )
        return

    if args.cache_info:
        handle_cache_info()
        return

    try:
        overrides = {}
        if args.no_cache:
            overrides["cache_enabled"] = False
        if args.force_remote:
            overrides["force_remote"] = True
        manager = ToolManager.from_config(args.config, root_path=args.root, **overrides)
        if manager.config_path:
            print(f"Using configuration file: {manager.config_path}")
        if args.no_cache:
            print(f"{Fore.YELLOW}ℹ️ Caching disabled for this run{Style.RESET_ALL}")

        if args.list:
            list_installed(manager)
        elif args.list_remote:
            list_remote(manager, stable=args.stable)
        elif args.uninstall:
            uninstall_version(manager, args.uninstall)
        elif args.use:
            use_version(manager, args.use, working_dir=args.working_dir)
        elif args.reset:
            reset_version(manager)
        elif args.install:
            requested = None if args.install == DETECTED else args.install
            install_tool(manager, requested)
        elif args.detect:
            detect_version(manager)
        else:
            print(f"{Fore.YELLOW}ℹ️ No action given, showing the detected version{Style.RESET_ALL}")
            detect_version(manager)

    except FileNotFoundError as e:
        print(f"{Fore.RED}❌ {e}{Style.RESET_ALL}")
        print(
            f"{Fore.YELLOW}Use --init to create a default configuration file{Style.RESET_ALL}"
        )
        sys.exit(1)
    except ToolenvError as e:
        print(f"{Fore.RED}❌ {type(e).__name__}: {e}{Style.RESET_ALL}")
        sys.exit(1)
    except OSError as e:
        print(f"{Fore.RED}❌ Error: {e}{Style.RESET_ALL}")
        sys.exit(1)


if __name__ == "__main__":
    run_cli()
