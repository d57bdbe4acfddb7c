#!/usr/bin/env python3

import base64
import binascii
import hashlib
import hmac
import re
from typing import Dict

from .errors import ChecksumMismatch, ParseError, SignatureNotFound

DIGEST_SIZE = hashlib.sha256().digest_size
HEX_DIGEST = re.compile(r"^[0-9a-fA-F]{64}$")


def decode_digest(encoded: str) -> bytes:
    """Decode a SHA-256 digest written either as hex or as base64"""
    if HEX_DIGEST.match(encoded):
        return bytes.fromhex(encoded)
    try:
        digest = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise ParseError(f"Digest is neither hex nor base64: {encoded!r}")
    if len(digest) != DIGEST_SIZE:
        raise ParseError(f"Digest has {len(digest)} bytes, expected {DIGEST_SIZE}")
    return digest


class ChecksumManifest:
    """Expected digests keyed by asset file name"""

    def __init__(self, digests: Dict[str, bytes]):
        self.digests = dict(digests)

    @classmethod
    def parse(cls, text: str) -> "ChecksumManifest":
        """Parse '<digest> <filename>' lines, as written by sha256sum"""
        digests = {}
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            parts = line.split(None, 1)
            if len(parts) != 2:
                raise ParseError(f"Malformed checksum line: {line!r}")
            encoded, file_name = parts
            # sha256sum marks binary mode with a leading '*'
            file_name = file_name.strip().lstrip("*")
            digests[file_name] = decode_digest(encoded)
        return cls(digests)

    def lookup(self, file_name: str) -> bytes:
        try:
            return self.digests[file_name]
        except KeyError:
            raise SignatureNotFound(f"Signature not found for {file_name}")

    def verify(self, file_name: str, data: bytes) -> None:
        """Compare the SHA-256 of data against the manifest entry"""
        expected = self.lookup(file_name)
        actual = hashlib.sha256(data).digest()
        if not hmac.compare_digest(expected, actual):
            raise ChecksumMismatch(
                f"Checksum mismatch for {file_name}: "
                f"expected {expected.hex()}, got {actual.hex()}"
            )

    def __contains__(self, file_name: str) -> bool:
        return file_name in self.digests

    def __len__(self) -> int:
        return len(self.digests)
