"""File existence checks and file hashing."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from enum import Enum

_CHUNK_SIZE = 64 * 1024


class HashType(str, Enum):
    """Supported hash algorithms."""

    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"


@dataclass
class FileCheckResult:
    """Outcome of checking or hashing a file."""

    exists: bool = False
    is_file: bool = False
    size: int = 0
    hash_type: str = ""
    hash_value: str = ""
    error: str = ""


def check_file_exists(file_path: str | os.PathLike) -> FileCheckResult:
    """Report whether the path exists, whether it is a file, and its size."""
    result = FileCheckResult()
    try:
        stat = os.stat(file_path)
    except FileNotFoundError:
        result.error = "file does not exist"
        return result
    except OSError as exc:
        result.error = str(exc)
        return result

    result.exists = True
    result.is_file = not os.path.isdir(file_path)
    result.size = stat.st_size
    return result


def calculate_file_hash(file_path: str | os.PathLike, hash_type: HashType | str) -> FileCheckResult:
    """Hash the file with the given algorithm; problems are reported in ``error``.

    Directories and missing paths are returned without a hash.
    """
    result = check_file_exists(file_path)
    if not result.exists or not result.is_file:
        return result

    try:
        kind: HashType | None = HashType(hash_type)
    except ValueError:
        kind = None

    try:
        handle = open(file_path, "rb")
    except OSError as exc:
        result.error = f"failed to open file: {exc}"
        return result

    with handle:
        if kind is None:
            result.error = "unsupported hash type"
            return result
        hasher = hashlib.new(kind.value)
        try:
            for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
                hasher.update(chunk)
        except OSError as exc:
            result.error = f"failed to calculate hash: {exc}"
            return result

    result.hash_type = kind.value
    result.hash_value = hasher.hexdigest()
    return result


def verify_file_hash(file_path: str | os.PathLike, hash_type: HashType | str, expected_hash: str) -> bool:
    """Return whether the file's hash equals ``expected_hash``.

    Raises FileNotFoundError for a missing file and ValueError for other failures.
    """
    result = calculate_file_hash(file_path, hash_type)
    if result.error:
        if not result.exists:
            raise FileNotFoundError(result.error)
        raise ValueError(result.error)
    return result.hash_value == expected_hash