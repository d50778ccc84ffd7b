"""Verification of downloaded files against an expected checksum."""

from __future__ import annotations

import hashlib
import os

_ALGORITHMS = ("md5", "sha1", "sha256", "sha512")
_CHUNK_SIZE = 64 * 1024


class ChecksumError(Exception):
    """Raised when a file cannot be checked or its checksum does not match."""


def verify_checksum(file_path: str | os.PathLike, expected_checksum: str, checksum_type: str) -> None:
    """Check that the file's hex digest equals the expected one.

    The checksum type (md5, sha1, sha256, sha512) is case-insensitive.
    """
    try:
        handle = open(file_path, "rb")
    except OSError as exc:
        raise ChecksumError(f"open file failed: {exc}") from exc

    with handle:
        algorithm = checksum_type.lower()
        if algorithm not in _ALGORITHMS:
            raise ChecksumError(f"unsupported checksum type: {checksum_type}")
        hasher = hashlib.new(algorithm)
        try:
            for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
                hasher.update(chunk)
        except OSError as exc:
            raise ChecksumError(f"calculate checksum failed: {exc}") from exc

    actual = hasher.hexdigest()
    if actual != expected_checksum:
        raise ChecksumError(f"checksum mismatch: expected {expected_checksum}, got {actual}")