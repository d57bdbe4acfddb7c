import hashlib
import io
import stat
import tarfile
import zipfile
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

RELEASES_URL = "https://api.github.com/repos/opentofu/opentofu/releases"
ASSETS_URL = "https://api.github.com/repos/opentofu/opentofu/releases/1/assets"
DOWNLOAD_BASE = "https://github.com/opentofu/opentofu/releases/download"

_NO_JSON = object()


class FakeResponse:
    """Just enough of requests.Response for the catalog client"""

    def __init__(self, payload: Any = _NO_JSON, content: bytes = b"", status_code: int = 200):
        self._payload = payload
        self.content = content
        self.status_code = status_code
        self.closed = False

    def json(self) -> Any:
        if self._payload is _NO_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error", response=self)

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass
class FakeCall:
    url: str
    headers: Dict[str, str]
    params: Dict[str, Any]


@dataclass
class FakeSession:
    """Routes GET requests to canned responses and records every call"""

    routes: Dict[str, Any] = field(default_factory=dict)
    pages: Dict[str, List[Any]] = field(default_factory=dict)
    calls: List[FakeCall] = field(default_factory=list)
    responses: List[FakeResponse] = field(default_factory=list)

    def add_json(self, url: str, payload: Any, status_code: int = 200) -> None:
        self.routes[url] = lambda: FakeResponse(payload=payload, status_code=status_code)

    def add_content(self, url: str, content: bytes, status_code: int = 200) -> None:
        self.routes[url] = lambda: FakeResponse(content=content, status_code=status_code)

    def add_pages(self, url: str, *pages: List[Any]) -> None:
        self.pages[url] = list(pages)

    def add_error(self, url: str, error: Exception) -> None:
        self.routes[url] = error

    def get(self, url: str, headers: Optional[Dict[str, str]] = None, params=None) -> FakeResponse:
        params = dict(params or {})
        self.calls.append(FakeCall(url, dict(headers or {}), params))
        if url in self.pages:
            index = params.get("page", 1) - 1
            pages = self.pages[url]
            response = FakeResponse(payload=pages[index] if index < len(pages) else [])
        elif url in self.routes:
            route = self.routes[url]
            if isinstance(route, Exception):
                raise route
            response = route()
        else:
            response = FakeResponse(status_code=404)
        self.responses.append(response)
        return response


def release(tag: str) -> Dict[str, Any]:
    return {"tag_name": tag, "assets": []}


def asset(name: str, url: Optional[str] = None) -> Dict[str, str]:
    return {"name": name, "browser_download_url": url or f"{DOWNLOAD_BASE}/{name}"}


def publish_release(
    session: FakeSession,
    version: str,
    archive: bytes,
    asset_name: str,
    manifest: Optional[str] = None,
) -> None:
    """Register the tag lookup, asset listing and downloads of one release"""
    tag = f"v{version}"
    assets_url = f"{RELEASES_URL}/{tag}/assets"
    session.add_json(f"{RELEASES_URL}/tags/{tag}", {"tag_name": tag, "assets_url": assets_url})

    listed = [asset(asset_name, f"{DOWNLOAD_BASE}/{tag}/{asset_name}")]
    session.add_content(f"{DOWNLOAD_BASE}/{tag}/{asset_name}", archive)
    if manifest is not None:
        sums_name = f"tofu_{version}_SHA256SUMS"
        listed.append(asset(sums_name, f"{DOWNLOAD_BASE}/{tag}/{sums_name}"))
        session.add_content(f"{DOWNLOAD_BASE}/{tag}/{sums_name}", manifest.encode())
    session.add_pages(assets_url, listed)


def sha256_line(data: bytes, file_name: str) -> str:
    return f"{hashlib.sha256(data).hexdigest()}  {file_name}\n"


def build_zip(entries: Dict[str, bytes], mode: int = 0o755) -> bytes:
    """Zip of regular files (and directories for names ending in '/')"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            info = zipfile.ZipInfo(name)
            if name.endswith("/"):
                info.external_attr = (stat.S_IFDIR | 0o755) << 16
            else:
                info.external_attr = (stat.S_IFREG | mode) << 16
            archive.writestr(info, content)
    return buffer.getvalue()


def build_tar_gz(entries: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, content in entries.items():
            info = tarfile.TarInfo(name)
            if name.endswith("/"):
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                archive.addfile(info)
            else:
                info.size = len(content)
                info.mode = 0o755
                archive.addfile(info, io.BytesIO(content))
    return buffer.getvalue()
