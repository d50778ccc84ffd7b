import hashlib
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from tscserver.download import (
    DownloadError,
    DownloadOptions,
    DownloadType,
    HTTPDownloader,
    WgetDownloader,
    new_download_info,
    new_downloader,
)

CONTENT = b"test content"


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        self.server.requests.append((self.path, dict(self.headers)))
        if self.path.startswith("/status/"):
            code = int(self.path.rsplit("/", 1)[-1])
            self.send_response(code)
            self.send_header("Content-Length", "0")
            self.end_headers()
            return
        body = CONTENT
        code = 200
        rng = self.headers.get("Range")
        if rng:
            start = int(rng[len("bytes="):].rstrip("-"))
            body = CONTENT[start:]
            code = 206
        self.send_response(code)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, *args):
        pass


@pytest.fixture
def server():
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    httpd.requests = []
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{httpd.server_address[1]}", httpd
    finally:
        httpd.shutdown()
        httpd.server_close()


def test_http_download(server, tmp_path):
    url, _ = server
    dest = tmp_path / "http_test"
    dest.write_bytes(b"")
    downloader = HTTPDownloader(DownloadOptions(default_timeout=5.0))
    downloader.download(new_download_info(url, str(dest)))
    assert dest.read_bytes() == CONTENT


def test_http_download_with_checksum(server, tmp_path):
    url, _ = server
    dest = tmp_path / "http_checksum_test"
    downloader = HTTPDownloader(DownloadOptions())
    info = new_download_info(url, str(dest))
    info.checksum = hashlib.md5(CONTENT).hexdigest()
    info.checksum_type = "md5"
    downloader.download(info)
    assert dest.read_bytes() == CONTENT

    info.checksum = "wrong_checksum"
    info.retry_delay = 0
    with pytest.raises(DownloadError, match="checksum verification failed"):
        downloader.download(info)


def test_wget_download_to_directory(server, tmp_path):
    url, _ = server
    WgetDownloader(DownloadOptions()).download(new_download_info(url, str(tmp_path)))
    assert (tmp_path / "index.html").read_bytes() == CONTENT


def test_wget_download_with_filename(server, tmp_path):
    url, _ = server
    WgetDownloader(DownloadOptions()).download(new_download_info(url + "/testfile.txt", str(tmp_path)))
    assert (tmp_path / "testfile.txt").read_bytes() == CONTENT


def test_http_download_into_directory_uses_url_name(server, tmp_path):
    url, _ = server
    HTTPDownloader().download(new_download_info(url + "/data.bin", str(tmp_path)))
    assert (tmp_path / "data.bin").read_bytes() == CONTENT


def test_creates_parent_directories(server, tmp_path):
    url, _ = server
    dest = tmp_path / "a" / "b" / "file.txt"
    HTTPDownloader().download(new_download_info(url, str(dest)))
    assert dest.read_bytes() == CONTENT


def test_unexpected_status(server, tmp_path):
    url, _ = server
    info = new_download_info(url + "/status/404", str(tmp_path / "out"))
    info.max_retries = 1
    with pytest.raises(DownloadError, match="unexpected status code: 404"):
        HTTPDownloader().download(info)


def test_retries_until_limit(server, tmp_path):
    url, httpd = server
    info = new_download_info(url + "/status/500", str(tmp_path / "out"))
    info.max_retries = 2
    info.retry_delay = 0
    with pytest.raises(DownloadError, match="after 2 retries"):
        HTTPDownloader().download(info)
    assert len(httpd.requests) == 2


def test_headers_and_default_user_agent(server, tmp_path):
    url, httpd = server
    info = new_download_info(url, str(tmp_path / "out"))
    info.headers = {"X-Custom": "value"}
    HTTPDownloader(DownloadOptions(default_user_agent="tsc-agent")).download(info)
    with open(info.dest, "rb") as handle:
        assert handle.read() == CONTENT
    assert len(httpd.requests) == 1
    _, headers = httpd.requests[0]
    assert headers["X-Custom"] == "value"
    assert headers["User-Agent"] == "tsc-agent"


def test_resume_download(server, tmp_path):
    url, httpd = server
    dest = tmp_path / "partial"
    dest.write_bytes(CONTENT[:5])
    info = new_download_info(url, str(dest))
    info.resume_download = True
    HTTPDownloader().download(info)
    assert dest.read_bytes() == CONTENT
    assert httpd.requests[0][1]["Range"] == "bytes=5-"


def test_progress_writer_receives_total_and_data(server, tmp_path):
    url, _ = server

    class Progress:
        def __init__(self):
            self.total = None
            self.data = b""

        def write(self, data):
            self.data += data
            return len(data)

        def set_total(self, total):
            self.total = total

    progress = Progress()
    HTTPDownloader().download(new_download_info(url, str(tmp_path / "out")), progress)
    assert progress.total == len(CONTENT)
    assert progress.data == CONTENT


def test_set_default_options_applies_max_retries(server, tmp_path):
    url, httpd = server
    downloader = HTTPDownloader(DownloadOptions(default_max_retries=5))
    downloader.set_default_options(DownloadOptions(default_max_retries=1))
    info = new_download_info(url + "/status/500", str(tmp_path / "out"))
    info.max_retries = 0
    info.retry_delay = 0
    with pytest.raises(DownloadError, match="after 1 retries"):
        downloader.download(info)
    assert len(httpd.requests) == 1


def test_invalid_proxy_url(tmp_path):
    info = new_download_info("http://127.0.0.1:1/", str(tmp_path / "out"))
    info.proxy_url = "http://[bad"
    with pytest.raises(DownloadError, match="invalid proxy URL"):
        HTTPDownloader().download(info)


def test_new_download_info_defaults():
    info = new_download_info("http://example.com/file", "/tmp/file")
    assert info.max_retries == 3
    assert info.retry_delay == 5.0
    assert info.file_mode == 0o644
    assert info.timeout == 30.0
    assert info.checksum_type == "md5"
    assert info.headers == {}


def test_new_downloader_wget_downloads_to_index(server, tmp_path):
    url, _ = server
    downloader = new_downloader(DownloadType.WGET, DownloadOptions())
    downloader.download(new_download_info(url, str(tmp_path)))
    assert (tmp_path / "index.html").read_bytes() == CONTENT


def test_new_downloader_unknown_type_is_http(server, tmp_path):
    url, _ = server
    downloader = new_downloader("SOMETHING", DownloadOptions())
    assert isinstance(downloader, HTTPDownloader)
    dest = tmp_path / "out"
    downloader.download(new_download_info(url, str(dest)))
    assert dest.read_bytes() == CONTENT


def test_new_downloader_ftp_rejected():
    with pytest.raises(DownloadError, match="FTP"):
        new_downloader(DownloadType.FTP, DownloadOptions())