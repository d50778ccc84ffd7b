"""File downloads over HTTP, with retries, resuming and checksum checks."""

from __future__ import annotations

import dataclasses
import os
import posixpath
import time
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Protocol, runtime_checkable

from .checksum import ChecksumError, verify_checksum

_CHUNK_SIZE = 64 * 1024


class DownloadType(str, Enum):
    """Kinds of download a downloader can be created for."""

    HTTP = "HTTP"
    HTTPS = "HTTPS"
    WGET = "WGET"
    FTP = "FTP"
    UNKNOWN = "UNKNOWN"


class DownloadError(Exception):
    """Raised when a download cannot be completed."""


@runtime_checkable
class ProgressWriter(Protocol):
    """A writer that is told the expected total size before data arrives."""

    def write(self, data: bytes) -> object: ...

    def set_total(self, total: int) -> None: ...


@dataclass
class DownloadInfo:
    """What to download and how."""

    url: str
    dest: str
    type: DownloadType | None = None
    username: str = ""
    password: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float = 0.0
    checksum: str = ""
    checksum_type: str = ""
    max_retries: int = 0
    retry_delay: float = 0.0
    file_mode: int = 0
    resume_download: bool = False
    proxy_url: str = ""
    user_agent: str = ""


@dataclass
class DownloadOptions:
    """Defaults a downloader applies to requests that leave them unset."""

    default_timeout: float = 0.0
    default_max_retries: int = 0
    default_user_agent: str = ""
    http_client: urllib.request.OpenerDirector | None = None


def new_download_info(url: str, dest: str) -> DownloadInfo:
    """Return download settings with the usual defaults filled in."""
    return DownloadInfo(
        url=url,
        dest=dest,
        max_retries=3,
        retry_delay=5.0,
        file_mode=0o644,
        headers={},
        timeout=30.0,
        checksum_type="md5",
    )


class HTTPDownloader:
    """Downloads a URL to a file with retries."""

    def __init__(self, options: DownloadOptions | None = None) -> None:
        self.options = options if options is not None else DownloadOptions()

    def set_default_options(self, options: DownloadOptions) -> None:
        """Replace the downloader's default options."""
        self.options = options

    def download(self, info: DownloadInfo, writer: BinaryIO | ProgressWriter | None = None) -> None:
        """Download ``info.url`` to ``info.dest``, also copying the data to ``writer``."""
        info = dataclasses.replace(info, headers=dict(info.headers))
        if not info.timeout:
            info.timeout = self.options.default_timeout
        if not info.max_retries:
            info.max_retries = self.options.default_max_retries
        if not info.user_agent:
            info.user_agent = self.options.default_user_agent

        opener = self._opener(info)

        last_error: Exception | None = None
        for attempt in range(info.max_retries):
            if attempt:
                time.sleep(info.retry_delay)
            try:
                self._fetch(opener, info, writer)
            except DownloadError as exc:
                last_error = exc
            else:
                return
        raise DownloadError(
            f"after {info.max_retries} retries, last error: {last_error if last_error else 'none'}"
        ) from last_error

    def _opener(self, info: DownloadInfo) -> urllib.request.OpenerDirector:
        if info.proxy_url:
            try:
                parts = urllib.parse.urlsplit(info.proxy_url)
                parts.port
            except ValueError as exc:
                raise DownloadError(f"invalid proxy URL: {exc}") from exc
            proxy = info.proxy_url
            return urllib.request.build_opener(urllib.request.ProxyHandler({"http": proxy, "https": proxy}))
        return self.options.http_client or urllib.request.build_opener()

    def _fetch(self, opener: urllib.request.OpenerDirector, info: DownloadInfo, writer: object) -> None:
        try:
            request = urllib.request.Request(info.url, method="GET")
        except ValueError as exc:
            raise DownloadError(f"create request failed: {exc}") from exc

        for key, value in info.headers.items():
            request.add_header(key, value)
        if info.user_agent:
            request.add_header("User-Agent", info.user_agent)

        if info.resume_download:
            try:
                size = os.stat(info.dest).st_size
            except OSError:
                pass
            else:
                request.add_header("Range", f"bytes={size}-")

        kwargs = {"timeout": info.timeout} if info.timeout else {}
        try:
            response = opener.open(request, **kwargs)
        except urllib.error.HTTPError as exc:
            exc.close()
            raise DownloadError(f"unexpected status code: {exc.code}") from exc
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise DownloadError(f"request failed: {exc}") from exc

        with response:
            if response.status not in (200, 206):
                raise DownloadError(f"unexpected status code: {response.status}")
            dest = self._destination(info)
            self._write(response, dest, info, writer)

        if info.checksum:
            try:
                verify_checksum(dest, info.checksum, info.checksum_type)
            except ChecksumError as exc:
                raise DownloadError(f"checksum verification failed: {exc}") from exc

    @staticmethod
    def _destination(info: DownloadInfo) -> str:
        dest = os.fspath(info.dest)
        if os.path.isdir(dest):
            filename = info.url.rstrip("/").rsplit("/", 1)[-1] or "downloaded_file"
            return os.path.join(dest, filename)
        if not os.path.exists(dest):
            parent = os.path.dirname(dest)
            if parent:
                try:
                    os.makedirs(parent, 0o755, exist_ok=True)
                except OSError as exc:
                    raise DownloadError(f"failed to create directory {parent}: {exc}") from exc
        return dest

    @staticmethod
    def _write(response, dest: str, info: DownloadInfo, writer: object) -> None:
        flags = os.O_CREAT | os.O_WRONLY | getattr(os, "O_BINARY", 0)
        flags |= os.O_APPEND if info.resume_download else os.O_TRUNC
        try:
            fd = os.open(dest, flags, info.file_mode)
        except OSError as exc:
            raise DownloadError(f"create file failed: {exc}") from exc

        if writer is not None and isinstance(writer, ProgressWriter):
            length = response.headers.get("Content-Length")
            try:
                total = int(length) if length is not None else -1
            except ValueError:
                total = -1
            writer.set_total(total)

        with os.fdopen(fd, "wb") as handle:
            try:
                for chunk in iter(lambda: response.read(_CHUNK_SIZE), b""):
                    handle.write(chunk)
                    if writer is not None:
                        writer.write(chunk)
            except OSError as exc:
                raise DownloadError(f"write file failed: {exc}") from exc


class WgetDownloader:
    """Downloads like wget: into a directory, naming the file after the URL path."""

    def __init__(self, options: DownloadOptions | None = None) -> None:
        self.options = options if options is not None else DownloadOptions()
        self._http = HTTPDownloader(self.options)

    def set_default_options(self, options: DownloadOptions) -> None:
        """Replace the default options here and in the underlying HTTP downloader."""
        self.options = options
        self._http.set_default_options(options)

    def download(self, info: DownloadInfo, writer: BinaryIO | ProgressWriter | None = None) -> None:
        """Download ``info.url``; a directory destination gets a file named from the URL."""
        if os.path.isdir(info.dest):
            try:
                parsed = urllib.parse.urlsplit(info.url)
            except ValueError as exc:
                raise DownloadError(f"parse URL failed: {exc}") from exc
            filename = posixpath.basename(parsed.path.rstrip("/")) or "index.html"
            info = dataclasses.replace(info, dest=os.path.join(info.dest, filename))
        self._http.download(info, writer)


def new_downloader(
    download_type: DownloadType | str, options: DownloadOptions | None = None
) -> HTTPDownloader | WgetDownloader:
    """Create a downloader of the given type; unknown types get an HTTP downloader."""
    options = options if options is not None else DownloadOptions()
    try:
        kind = DownloadType(download_type)
    except ValueError:
        kind = DownloadType.HTTP
    if kind is DownloadType.FTP:
        raise DownloadError("unsupported download type: FTP")
    if kind is DownloadType.WGET:
        return WgetDownloader(options)
    return HTTPDownloader(options)