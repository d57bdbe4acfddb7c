#!/usr/bin/env python3

import os
import platform
import sys

PLATFORM_ALIASES = {
    "linux": "linux",
    "darwin": "darwin",
    "win32": "windows",
    "cygwin": "windows",
    "freebsd": "freebsd",
    "openbsd": "openbsd",
    "solaris": "solaris",
}

ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv7l": "arm",
    "armv6l": "arm",
    "arm": "arm",
}


def get_real_home() -> str:
    """Get the real user's home directory even when running with sudo"""
    if "SUDO_USER" in os.environ and os.environ.get("HOME") == "/root":
        real_user = os.environ["SUDO_USER"]
        return os.path.expanduser(f"~{real_user}")
    return os.path.expanduser("~")


def detect_platform() -> str:
    """Return the release naming of the current OS (linux, darwin, windows...)"""
    for prefix, name in PLATFORM_ALIASES.items():
        if sys.platform.startswith(prefix):
            return name
    return sys.platform


def detect_arch() -> str:
    """Return the release naming of the current CPU (amd64, arm64...)"""
    machine = platform.machine().lower()
    return ARCH_ALIASES.get(machine, machine)
