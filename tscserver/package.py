"""Inspection and safe extraction of zip packages."""

from __future__ import annotations

import argparse
import os
import re
import shutil
import sys
import zipfile
from dataclasses import dataclass, field
from datetime import datetime

_UNIX_CREATORS = {3, 19}
_DOS_CREATORS = {0, 11, 14}
_DOS_READONLY = 0x01
_DOS_DIRECTORY = 0x10
_NON_SEP = "[^" + re.escape("/" + (os.sep if os.sep != "/" else "")) + "]"


class PackageError(Exception):
    """Raised when a package cannot be opened or extracted."""


@dataclass
class PackageEntry:
    """A file stored in a package."""

    name: str
    relative_path: str
    size: int
    mode: int
    modified_time: datetime
    is_compressed: bool
    crc32: int
    method: int


@dataclass
class ExtractOptions:
    """How a package is extracted."""

    target_dir: str = ""
    overwrite: bool = False
    preserve_perm: bool = False
    exclude: list[str] = field(default_factory=list)


def _format_time(value: datetime) -> str:
    text = value.isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def _entry_mode(info: zipfile.ZipInfo) -> int:
    """Permission bits of an entry, derived from its external attributes."""
    is_dir = info.is_dir()
    if info.create_system in _UNIX_CREATORS:
        mode = (info.external_attr >> 16) & 0o7777
        if mode & 0o777:
            return mode
    elif info.create_system in _DOS_CREATORS:
        attrs = info.external_attr & 0xFF
        mode = 0o777 if is_dir or attrs & _DOS_DIRECTORY else 0o666
        if attrs & _DOS_READONLY:
            mode &= ~0o222
        return mode
    return 0o755 if is_dir else 0o644


@dataclass
class PackageInfo:
    """Summary of a zip package and the files it holds."""

    path: str
    full_path: str
    name: str
    file_count: int
    total_size: int
    file_infos: list[PackageEntry]
    modified_time: datetime

    def extract(self, options: ExtractOptions) -> None:
        """Extract the package into ``options.target_dir``.

        Entries matching an exclude pattern are skipped; entries that would land
        outside the target directory abort the extraction.
        """
        if not options.target_dir:
            raise PackageError("target directory cannot be empty")
        target = os.fspath(options.target_dir)
        try:
            os.makedirs(target, 0o755, exist_ok=True)
        except OSError as exc:
            raise PackageError(f"failed to create target directory: {exc}") from exc

        try:
            archive = zipfile.ZipFile(self.path)
        except (OSError, zipfile.BadZipFile) as exc:
            raise PackageError(f"failed to open zip file: {exc}") from exc

        root = os.path.normpath(target) + os.sep
        with archive:
            for info in archive.infolist():
                if _is_excluded(info.filename, options.exclude):
                    continue
                dest = os.path.normpath(os.path.join(target, info.filename.lstrip("/")))
                if not dest.startswith(root):
                    raise PackageError(f"illegal file path: {info.filename}")
                _write_entry(archive, info, dest, options)

    def summary(self) -> str:
        """Return a human-readable description of the package."""
        lines = [
            f"Package Path: {self.path}",
            f"Full Path: {self.full_path}",
            f"Package Name: {self.name}",
            f"File Count: {self.file_count}",
            f"Total Size: {self.total_size} bytes",
            f"Modified Time: {_format_time(self.modified_time)}",
            "FileInfos:",
        ]
        lines.extend(
            f"  {entry.relative_path} ({entry.size} bytes, "
            f"compressed: {str(entry.is_compressed).lower()})"
            for entry in self.file_infos
        )
        return "\n".join(lines)

    def print_summary(self) -> None:
        """Print the summary to standard output."""
        print(self.summary())


def _write_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo, dest: str, options: ExtractOptions) -> None:
    mode = _entry_mode(info)
    if info.is_dir():
        try:
            os.makedirs(dest, mode & 0o777, exist_ok=True)
        except OSError as exc:
            raise PackageError(f"failed to create directory: {exc}") from exc
        return

    if not options.overwrite and os.path.exists(dest):
        return

    try:
        os.makedirs(os.path.dirname(dest), 0o755, exist_ok=True)
    except OSError as exc:
        raise PackageError(f"failed to create parent directory: {exc}") from exc

    flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC | getattr(os, "O_BINARY", 0)
    if not options.overwrite:
        flags |= os.O_EXCL
    try:
        fd = os.open(dest, flags, mode & 0o777)
    except OSError as exc:
        raise PackageError(f"failed to create file: {exc}") from exc

    with os.fdopen(fd, "wb") as out:
        try:
            source = archive.open(info)
        except (OSError, zipfile.BadZipFile, NotImplementedError) as exc:
            raise PackageError(f"failed to open zip entry: {exc}") from exc
        with source:
            try:
                shutil.copyfileobj(source, out)
            except (OSError, zipfile.BadZipFile) as exc:
                raise PackageError(f"failed to extract file: {exc}") from exc

    if options.preserve_perm:
        try:
            os.chmod(dest, mode & 0o7777)
        except OSError as exc:
            raise PackageError(f"failed to set file permissions: {exc}") from exc


def _class_char(pattern: str, pos: int) -> tuple[str | None, int]:
    if pos >= len(pattern) or pattern[pos] in "-]":
        return None, pos
    if pattern[pos] == "\\" and os.sep != "\\":
        pos += 1
        if pos >= len(pattern):
            return None, pos
    return pattern[pos], pos + 1


def _translate(pattern: str) -> re.Pattern[str] | None:
    """Compile a shell pattern where wildcards never cross a path separator."""
    out: list[str] = []
    pos, end = 0, len(pattern)
    while pos < end:
        char = pattern[pos]
        pos += 1
        if char == "*":
            out.append(_NON_SEP + "*")
        elif char == "?":
            out.append(_NON_SEP)
        elif char == "\\" and os.sep != "\\":
            if pos >= end:
                return None
            out.append(re.escape(pattern[pos]))
            pos += 1
        elif char == "[":
            negate = pos < end and pattern[pos] == "^"
            if negate:
                pos += 1
            items: list[str] = []
            seen = 0
            while True:
                if pos >= end:
                    return None
                if pattern[pos] == "]" and seen:
                    pos += 1
                    break
                low, pos = _class_char(pattern, pos)
                if low is None:
                    return None
                seen += 1
                if pos < end and pattern[pos] == "-":
                    high, pos = _class_char(pattern, pos + 1)
                    if high is None:
                        return None
                    if low <= high:
                        items.append(re.escape(low) + "-" + re.escape(high))
                else:
                    items.append(re.escape(low))
            if items:
                out.append("[" + ("^" if negate else "") + "".join(items) + "]")
            else:
                out.append("(?s:.)" if negate else "(?!)")
        else:
            out.append(re.escape(char))
    return re.compile("".join(out), re.DOTALL)


def _is_excluded(path: str, patterns: list[str]) -> bool:
    for pattern in patterns:
        compiled = _translate(pattern)
        if compiled is not None and compiled.fullmatch(path):
            return True
    return False


def open_package(path: str | os.PathLike) -> PackageInfo:
    """Open a zip package and collect information about the files it holds."""
    path = os.fspath(path)
    if not os.path.exists(path):
        raise PackageError(f"package file does not exist: {path}")

    full_path = os.path.abspath(path)
    name = os.path.basename(path.rstrip("/" + os.sep)) or path

    try:
        archive = zipfile.ZipFile(full_path)
    except (OSError, zipfile.BadZipFile) as exc:
        raise PackageError(f"failed to open zip file: {exc}") from exc

    with archive:
        entries = [
            PackageEntry(
                name=os.path.basename(info.filename.rstrip("/")),
                relative_path=info.filename,
                size=info.file_size,
                mode=_entry_mode(info),
                modified_time=datetime(*info.date_time),
                is_compressed=info.compress_type != zipfile.ZIP_STORED,
                crc32=info.CRC,
                method=info.compress_type,
            )
            for info in archive.infolist()
            if not info.is_dir()
        ]

    try:
        stat = os.stat(full_path)
    except OSError as exc:
        raise PackageError(f"failed to get package stats: {exc}") from exc

    return PackageInfo(
        path=path,
        full_path=full_path,
        name=name,
        file_count=len(entries),
        total_size=sum(entry.size for entry in entries),
        file_infos=entries,
        modified_time=datetime.fromtimestamp(stat.st_mtime).astimezone(),
    )


def main(argv: list[str] | None = None) -> int:
    """List a package's files and extract it, overwriting and keeping permissions."""
    parser = argparse.ArgumentParser(description="List and extract a zip package.")
    parser.add_argument("package", nargs="?", default="./testdata/main.zip", help="zip package to open")
    parser.add_argument("target", nargs="?", default="testdata/output", help="directory to extract into")
    args = parser.parse_args(argv)

    try:
        package = open_package(args.package)
    except PackageError as exc:
        print(f"OpenPackage failed: {exc}", file=sys.stderr)
        return 1

    for index, entry in enumerate(package.file_infos):
        print(index, entry.name)

    options = ExtractOptions(target_dir=args.target, overwrite=True, preserve_perm=True)
    try:
        package.extract(options)
    except PackageError as exc:
        print(f"Extract failed: {exc}", file=sys.stderr)
        return 1
    return 0