#!/usr/bin/env python3

import os
import shutil
from typing import Optional

from colorama import Fore, Style

from ..utils.config import Settings
from .catalog import RemoteCatalog, ResolvedVersion
from .checksum import ChecksumManifest
from .errors import ParseError, SignatureNotFound
from .extract import MAX_ENTRY_SIZE, EntryFilter, archive_kind, extract_archive
from .semver import canonical_version


class SecureInstaller:
    """
    Download, verify and extract one release into <root>/<tool>/<version>

    The version directory is the completion marker: when it exists the
    install is a no-op and no network call is made. A failed extraction
    removes the directory this installer created before re-raising.
    """

    def __init__(
        self,
        catalog: RemoteCatalog,
        settings: Settings,
        verify_checksum: Optional[bool] = None,
        max_entry_size: int = MAX_ENTRY_SIZE,
    ):
        self.catalog = catalog
        self.settings = settings
        self.verify_checksum = (
            settings.verify_checksum if verify_checksum is None else verify_checksum
        )
        self.max_entry_size = max_entry_size

    def destination(self, version: str) -> str:
        return self.settings.version_dir(canonical_version(version))

    def is_installed(self, version: str) -> bool:
        return os.path.isdir(self.destination(version))

    def install(self, version: str, keep: Optional[EntryFilter] = None) -> str:
        """Install version unless already present; return its directory"""
        version = canonical_version(version)
        destination = self.destination(version)
        if os.path.isdir(destination):
            print(
                f"{Fore.GREEN}✔ {self.settings.tool_name} {version} "
                f"is already installed{Style.RESET_ALL}"
            )
            return destination

        resolved = self.catalog.resolve(
            version,
            self.settings.tool_name,
            self.settings.platform,
            self.settings.arch,
            self.settings.archive_ext,
        )
        return self.install_resolved(resolved, destination, keep)

    def install_resolved(
        self,
        resolved: ResolvedVersion,
        destination: str,
        keep: Optional[EntryFilter] = None,
    ) -> str:
        if os.path.isdir(destination):
            return destination

        print(f"⬇️  Downloading {resolved.asset_url}")
        data = self.catalog.download(resolved.asset_url)
        self.verify(resolved, data)

        # unknown kinds are rejected before the directory exists
        archive_kind(resolved.asset_name)

        print(f"📂 Extracting to {destination}...")
        os.makedirs(destination)
        try:
            extract_archive(
                data,
                resolved.asset_name,
                destination,
                keep=keep,
                max_entry_size=self.max_entry_size,
            )
        except Exception:
            shutil.rmtree(destination, ignore_errors=True)
            raise

        print(
            f"{Fore.GREEN}✅ Installed {self.settings.tool_name} {resolved.version}{Style.RESET_ALL}"
        )
        return destination

    def verify(self, resolved: ResolvedVersion, data: bytes) -> None:
        """Check data against the release checksum manifest"""
        if not resolved.checksums_url:
            self._missing_signature(
                f"No checksum manifest published for {resolved.asset_name}"
            )
            return

        raw_manifest = self.catalog.download(resolved.checksums_url)
        try:
            manifest = ChecksumManifest.parse(raw_manifest.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise ParseError(f"Checksum manifest is not text: {e}")

        try:
            manifest.verify(resolved.asset_name, data)
        except SignatureNotFound as e:
            self._missing_signature(str(e))
            return
        print(f"{Fore.GREEN}✓ Checksum verified for {resolved.asset_name}{Style.RESET_ALL}")

    def _missing_signature(self, message: str) -> None:
        if self.verify_checksum:
            raise SignatureNotFound(message)
        print(f"{Fore.YELLOW}⚠️ {message}, skipping checksum verification{Style.RESET_ALL}")
