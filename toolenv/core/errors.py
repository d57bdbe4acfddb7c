#!/usr/bin/env python3


class ToolenvError(Exception):
    """Base class for every error raised by toolenv"""


class NoVersionFound(ToolenvError):
    """No version source produced a requirement"""


class ConstraintUnsatisfiable(ToolenvError):
    """No published release satisfies the requested constraints"""


class NetworkError(ToolenvError):
    """A remote call failed or returned a non-success status"""


class ParseError(ToolenvError):
    """A local config file or a remote payload could not be decoded"""


class AssetNotFound(ToolenvError):
    """The release exists but has no asset with the expected name"""


class ChecksumMismatch(ToolenvError):
    """Downloaded content does not match its manifest digest"""


class SignatureNotFound(ToolenvError):
    """The checksum manifest has no entry for the requested file"""


class ExtractionError(ToolenvError):
    """Base class for archive extraction failures"""


class UnknownArchiveKind(ExtractionError):
    """Archive suffix is neither .zip nor .tar.gz"""


class PathTraversalRejected(ExtractionError):
    """An archive entry resolves outside the destination directory"""


class UnsupportedEntryType(ExtractionError):
    """An archive entry is neither a directory nor a regular file"""


class EntryTooLarge(ExtractionError):
    """An archive entry exceeds the size ceiling"""


class InstallConflict(ExtractionError):
    """An archive entry targets a file that already exists"""
