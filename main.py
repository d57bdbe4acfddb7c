#!/usr/bin/env python3

"""
toolenv - resolve, download, verify and install versions of a CLI tool
from its GitHub releases (OpenTofu by default)

Usage:
  toolenv [options]

Options:
  --config FILE        Configuration file (default: toolenv.yaml)
  --root DIR           Install root (default: $TOOLENV_ROOT or ~/.toolenv)
  --install [VERSION]  Install VERSION, a constraint or a keyword; the
                       detected requirement when omitted
  --detect             Show the detected requirement and its resolution
  --list               List installed versions
  --list-remote        List published versions (--stable for releases only)
  --uninstall SELECTOR Remove installed versions: an exact version, a
                       constraint, "all" or "but-last"
  --use VERSION        Pin VERSION in the install root (--working-dir for cwd)
  --reset              Remove the version file pinned in the install root
  --force-remote       Resolve against the remote even when an installed
                       version matches
  --init               Initialize a default config file in ~/.config/toolenv/
  --help               Show this help message

Version requirement precedence:
1. TOOLENV_VERSION environment variable
2. .opentofu-version in the working dir, ~/.config/toolenv, then the root
3. .tool-versions (asdf) in the same locations
4. .tfswitch.toml in the same locations
5. required_version in *.tofu / *.tf / *.tofu.json / *.tf.json files
6. default_version option (TOOLENV_DEFAULT_VERSION)
"""

from toolenv import run_cli

if __name__ == "__main__":
    run_cli()
