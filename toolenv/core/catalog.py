#!/usr/bin/env python3

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import requests
from colorama import Fore, Style

from ..utils.cache import cache_releases, get_cached_releases
from .errors import AssetNotFound, NetworkError, ParseError
from .semver import normalize_version, sort_versions

PER_PAGE = 100
GITHUB_API_VERSION = "2022-11-28"


@dataclass(frozen=True)
class ReleaseAsset:
    name: str
    url: str


@dataclass(frozen=True)
class ReleaseCatalogEntry:
    """One published release; the raw tag is kept for URL construction"""

    tag: str
    assets: Tuple[ReleaseAsset, ...] = ()

    @property
    def version(self) -> str:
        return normalize_version(self.tag)

    @classmethod
    def from_json(cls, value: Any) -> "ReleaseCatalogEntry":
        """Decode a GitHub release object, validating the fields we rely on"""
        if not isinstance(value, dict):
            raise ParseError("Release entry is not an object")
        tag = value.get("tag_name")
        if not isinstance(tag, str) or not tag:
            raise ParseError("Release entry has no tag_name")
        raw_assets = value.get("assets", [])
        if not isinstance(raw_assets, list):
            raise ParseError(f"Release {tag} has a malformed assets list")
        return cls(tag, tuple(decode_asset(asset) for asset in raw_assets))

    def to_json(self) -> Dict[str, Any]:
        return {
            "tag_name": self.tag,
            "assets": [
                {"name": asset.name, "browser_download_url": asset.url}
                for asset in self.assets
            ],
        }


@dataclass(frozen=True)
class ResolvedVersion:
    version: str
    asset_url: str
    asset_name: str
    checksums_url: Optional[str] = None


def decode_asset(value: Any) -> ReleaseAsset:
    if not isinstance(value, dict):
        raise ParseError("Release asset is not an object")
    name = value.get("name")
    url = value.get("browser_download_url")
    if not isinstance(name, str) or not isinstance(url, str):
        raise ParseError("Release asset lacks name or browser_download_url")
    return ReleaseAsset(name, url)


def build_authorization_header(token: str) -> str:
    return f"Bearer {token}" if token else ""


def release_tag(version: str) -> str:
    """Tags carry a leading 'v' while asset names never do"""
    return version if version.startswith("v") else f"v{version}"


def build_asset_name(tool: str, version: str, platform: str, arch: str, ext: str) -> str:
    return f"{tool}_{normalize_version(version)}_{platform}_{arch}{ext}"


def build_checksums_name(tool: str, version: str) -> str:
    return f"{tool}_{normalize_version(version)}_SHA256SUMS"


class RemoteCatalog:
    """Client for a GitHub releases endpoint (https://api.github.com/repos/<owner>/<repo>/releases)"""

    def __init__(
        self,
        releases_url: str,
        authorization: str = "",
        session: Optional[requests.Session] = None,
        cache_enabled: bool = False,
        cache_expiry: int = 3600,
    ):
        self.releases_url = releases_url.rstrip("/")
        self.authorization = authorization
        self.session = session or requests.Session()
        self.cache_enabled = cache_enabled
        self.cache_expiry = cache_expiry

    def _headers(self, api: bool = True) -> Dict[str, str]:
        headers = {}
        if api:
            headers["Accept"] = "application/vnd.github+json"
            headers["X-GitHub-Api-Version"] = GITHUB_API_VERSION
        if self.authorization:
            headers["Authorization"] = self.authorization
        return headers

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            with self.session.get(url, headers=self._headers(), params=params) as response:
                response.raise_for_status()
                try:
                    return response.json()
                except ValueError as e:
                    raise ParseError(f"Invalid JSON returned by {url}: {e}")
        except requests.RequestException as e:
            raise NetworkError(f"Failed to fetch {url}: {e}")

    def download(self, url: str) -> bytes:
        """Fetch a whole response body"""
        try:
            with self.session.get(url, headers=self._headers(api=False)) as response:
                response.raise_for_status()
                return response.content
        except requests.RequestException as e:
            raise NetworkError(f"Failed to download {url}: {e}")

    def _paginate(self, url: str) -> Iterator[Any]:
        page = 1
        while True:
            values = self._get_json(url, params={"page": page, "per_page": PER_PAGE})
            if not isinstance(values, list):
                raise ParseError(f"Expected a list from {url}, got {type(values).__name__}")
            if not values:
                return
            yield from values
            page += 1

    def list_releases(self) -> List[ReleaseCatalogEntry]:
        """Every published release, all pages aggregated"""
        if self.cache_enabled:
            cached = get_cached_releases(self.releases_url, self.cache_expiry)
            if cached is not None:
                try:
                    releases = [ReleaseCatalogEntry.from_json(value) for value in cached]
                except ParseError as e:
                    # a malformed entry counts as a miss
                    print(f"{Fore.YELLOW}⚠️ Ignoring cached release listing: {e}{Style.RESET_ALL}")
                else:
                    print(f"📦 Using cached release information for {Fore.CYAN}{self.releases_url}{Style.RESET_ALL}")
                    return releases

        print(f"📥 Fetching releases from {Fore.CYAN}{self.releases_url}{Style.RESET_ALL}...")
        releases = [
            ReleaseCatalogEntry.from_json(value) for value in self._paginate(self.releases_url)
        ]

        if self.cache_enabled:
            cache_releases(
                self.releases_url,
                [release.to_json() for release in releases],
                self.cache_expiry,
            )
        return releases

    def list_versions(self) -> List[str]:
        """Normalized versions sorted ascending; malformed tags are skipped"""
        return sort_versions(release.tag for release in self.list_releases())

    def latest_release(self) -> str:
        """Version of the release the remote marks as latest"""
        value = self._get_json(f"{self.releases_url}/latest")
        return ReleaseCatalogEntry.from_json(value).version

    def find_assets(self, version: str, names: Sequence[str]) -> Dict[str, str]:
        """Map each wanted asset name present in the release to its download URL"""
        tag = release_tag(version)
        release = self._get_json(f"{self.releases_url}/tags/{tag}")
        if not isinstance(release, dict) or not isinstance(release.get("assets_url"), str):
            raise ParseError(f"Release {tag} has no assets_url")

        wanted = set(names)
        found = {}
        for value in self._paginate(release["assets_url"]):
            asset = decode_asset(value)
            if asset.name in wanted:
                found[asset.name] = asset.url
                if len(found) == len(wanted):
                    break
        return found

    def download_asset_url(self, version: str, asset_name: str) -> str:
        found = self.find_assets(version, [asset_name])
        if asset_name not in found:
            raise AssetNotFound(f"Asset {asset_name} not found in release {release_tag(version)}")
        return found[asset_name]

    def resolve(
        self, version: str, tool: str, platform: str, arch: str, ext: str
    ) -> ResolvedVersion:
        """Locate the platform archive and, when published, its checksum manifest"""
        asset_name = build_asset_name(tool, version, platform, arch, ext)
        checksums_name = build_checksums_name(tool, version)
        found = self.find_assets(version, [asset_name, checksums_name])
        if asset_name not in found:
            raise AssetNotFound(
                f"Asset {asset_name} not found in release {release_tag(version)}"
            )
        return ResolvedVersion(
            version=normalize_version(version),
            asset_url=found[asset_name],
            asset_name=asset_name,
            checksums_url=found.get(checksums_name),
        )
