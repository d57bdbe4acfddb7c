#!/usr/bin/env python3

import hashlib
import json
import os
import time
from typing import Any, Dict, List, Optional

from .system import get_real_home

# Default paths
CACHE_DIR = os.path.join(get_real_home(), ".cache/toolenv")


def _cache_file(url: str) -> str:
    # One file per release listing URL
    url_hash = hashlib.sha256(url.encode()).hexdigest()[:32]
    return os.path.join(CACHE_DIR, "releases", f"{url_hash}.json")


def ensure_cache_dir() -> None:
    """Ensure the cache directory exists"""
    os.makedirs(os.path.join(CACHE_DIR, "releases"), exist_ok=True)


def cache_releases(url: str, releases: List[Dict[str, Any]], cache_expiry: int = 3600) -> None:
    """Cache the aggregated release listing fetched from url"""
    ensure_cache_dir()
    data = {"timestamp": time.time(), "expiry": cache_expiry, "url": url, "data": releases}
    with open(_cache_file(url), "w") as f:
        json.dump(data, f)


def get_cached_releases(url: str, cache_expiry: int = 3600) -> Optional[List[Dict[str, Any]]]:
    """Get a cached release listing if it exists and is not expired"""
    cache_file = _cache_file(url)
    if not os.path.exists(cache_file):
        return None
    try:
        with open(cache_file, "r") as f:
            cache_data = json.load(f)
        if time.time() - cache_data["timestamp"] < cache_data.get("expiry", cache_expiry):
            return cache_data["data"]
    except (json.JSONDecodeError, KeyError, TypeError, OSError):
        # An unreadable entry is treated as a miss and rewritten later
        return None
    return None


def clear_cache() -> bool:
    """Clear toolenv's cache"""
    releases_cache = os.path.join(CACHE_DIR, "releases")
    if not os.path.exists(releases_cache):
        return False

    for file in os.listdir(releases_cache):
        os.remove(os.path.join(releases_cache, file))
    return True


def get_cache_info() -> Dict[str, Any]:
    """Get information about the cache"""
    info = {
        "exists": os.path.exists(CACHE_DIR),
        "path": CACHE_DIR,
        "size_bytes": 0,
        "release_entries": 0,
    }

    releases_cache = os.path.join(CACHE_DIR, "releases")
    if os.path.exists(releases_cache):
        files = os.listdir(releases_cache)
        info["release_entries"] = len(files)
        for file in files:
            info["size_bytes"] += os.path.getsize(os.path.join(releases_cache, file))

    return info
