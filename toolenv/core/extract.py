#!/usr/bin/env python3

"""
Archive extraction that never writes outside the destination directory

Only directories and regular files are materialized. Every entry is checked,
in order, for path traversal, kind and declared size before anything is read,
and files are created exclusively so an existing file is never overwritten.
Any violation aborts the whole extraction.
"""

import gzip
import io
import os
import stat
import tarfile
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO, Callable, List, Optional

from .errors import (
    EntryTooLarge,
    InstallConflict,
    ParseError,
    PathTraversalRejected,
    UnknownArchiveKind,
    UnsupportedEntryType,
)

MAX_ENTRY_SIZE = 200 * 1024 * 1024  # 200 MiB per entry
COPY_CHUNK_SIZE = 64 * 1024

TAR_GZ = ".tar.gz"
ZIP = ".zip"
ARCHIVE_SUFFIXES = (TAR_GZ, ZIP)

EntryFilter = Callable[[str], bool]


def archive_kind(file_name: str) -> str:
    """Return the archive suffix of file_name, judged by its name only"""
    for suffix in ARCHIVE_SUFFIXES:
        if file_name.endswith(suffix):
            return suffix
    raise UnknownArchiveKind(f"Unknown archive kind: {file_name}")


def safe_destination(root: Path, entry_name: str) -> Path:
    """Join entry_name to root and reject anything resolving outside it"""
    destination = (root / entry_name).resolve()
    try:
        destination.relative_to(root)
    except ValueError:
        raise PathTraversalRejected(
            f"Archive entry escapes the destination directory: {entry_name}"
        )
    return destination


def name_equals(target_name: str) -> EntryFilter:
    """Filter keeping entries whose last path component is target_name"""

    def keep(entry_name: str) -> bool:
        return entry_name.replace("\\", "/").rstrip("/").split("/")[-1] == target_name

    return keep


def _file_mode(declared_mode: int) -> int:
    return 0o755 if declared_mode & 0o111 else 0o644


def _check_size(entry_name: str, size: int, max_size: int) -> None:
    if size > max_size:
        raise EntryTooLarge(
            f"Archive entry {entry_name} is {size} bytes, max allowed is {max_size}"
        )


def _make_dirs(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except (FileExistsError, NotADirectoryError):
        raise InstallConflict(f"A file exists where a directory is expected: {path}")


def _write_entry(
    source: BinaryIO, destination: Path, declared_mode: int, max_size: int
) -> None:
    _make_dirs(destination.parent)
    try:
        target = open(destination, "xb")
    except FileExistsError:
        raise InstallConflict(f"Refusing to overwrite existing path: {destination}")

    with target:
        copied = 0
        # the ceiling also holds for the bytes actually read
        for chunk in iter(lambda: source.read(COPY_CHUNK_SIZE), b""):
            copied += len(chunk)
            _check_size(destination.name, copied, max_size)
            target.write(chunk)
    os.chmod(destination, _file_mode(declared_mode))


def _untar(
    data: bytes, root: Path, keep: Optional[EntryFilter], max_size: int
) -> List[str]:
    extracted = []
    with tarfile.open(fileobj=io.BytesIO(data), mode="r|gz") as archive:
        for member in archive:
            destination = safe_destination(root, member.name)
            if keep is not None and not keep(member.name):
                continue

            if member.isdir():
                _make_dirs(destination)
            elif member.isreg():
                _check_size(member.name, member.size, max_size)
                source = archive.extractfile(member)
                _write_entry(source, destination, member.mode, max_size)
            else:
                raise UnsupportedEntryType(
                    f"Unsupported tar entry type {member.type!r} for {member.name}"
                )
            extracted.append(member.name)
    return extracted


def _unzip(
    data: bytes, root: Path, keep: Optional[EntryFilter], max_size: int
) -> List[str]:
    extracted = []
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        for info in archive.infolist():
            destination = safe_destination(root, info.filename)
            if keep is not None and not keep(info.filename):
                continue

            mode = info.external_attr >> 16
            if info.is_dir() or stat.S_ISDIR(mode):
                _make_dirs(destination)
            elif stat.S_IFMT(mode) == 0 or stat.S_ISREG(mode):
                _check_size(info.filename, info.file_size, max_size)
                with archive.open(info) as source:
                    _write_entry(source, destination, mode, max_size)
            else:
                raise UnsupportedEntryType(
                    f"Unsupported zip entry mode {oct(stat.S_IFMT(mode))} for {info.filename}"
                )
            extracted.append(info.filename)
    return extracted


def extract_archive(
    data: bytes,
    file_name: str,
    destination: str,
    keep: Optional[EntryFilter] = None,
    max_entry_size: int = MAX_ENTRY_SIZE,
) -> List[str]:
    """
    Extract an in-memory archive into destination

    The archive kind comes from file_name's suffix. keep, when given, selects
    which entries are materialized; traversal checks apply to every entry
    regardless. Returns the names of the materialized entries.
    """
    kind = archive_kind(file_name)
    root = Path(destination).resolve()
    _make_dirs(root)

    try:
        if kind == TAR_GZ:
            return _untar(data, root, keep, max_entry_size)
        return _unzip(data, root, keep, max_entry_size)
    except (
        tarfile.TarError, zipfile.BadZipFile, gzip.BadGzipFile, zlib.error, EOFError
    ) as e:
        raise ParseError(f"Corrupt archive {file_name}: {e}")
