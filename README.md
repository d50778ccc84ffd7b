# tscserver

A small HTTP service whose every request must carry a shared key, together
with the tools it uses to fetch, verify and unpack service packages.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
tscserver --ip 0.0.0.0 --port 8080 --key secret
```

| Option    | Meaning                        | Default   |
|-----------|--------------------------------|-----------|
| `--ip`    | address to listen on           | `0.0.0.0` |
| `--port`  | port to listen on              | `8080`    |
| `--key`   | key that clients must present  | `secret`  |
| `--debug` | run the application in debug mode | off    |

The single-dash spellings (`-ip`, `-port`, `-key`, `-debug`) are accepted too.

On start the server prints its listen address, key and debug setting, then
serves until it receives SIGINT or SIGTERM. Each connection is given a
30-second timeout. If the address cannot be bound, the error is logged and the
command exits with status 1.

Every request is checked against the key. A client sends it either in the
`SECURITY_KEY_HEADER` header or in the `security-key` query parameter; the
header wins when it is present and non-empty. A request with a missing or
wrong key gets HTTP 401 and the JSON body `{"error": "invalid API key"}`.

The application can also be built in code:

```python
from tscserver.config import ServerConfig
from tscserver.server import create_app

app = create_app(ServerConfig(ip="127.0.0.1", port="8080", sec_key="secret", debug=False))
```

`tscserver.server` also provides `register_routes(app, config)`, which installs
the key check on an existing Flask application, `parse_args(argv)`, which turns
command-line arguments into a `ServerConfig`, and `startup_info(config)`, which
returns the start-up banner as a string.

### What the server does not do

The server registers no endpoints of its own. Once a request passes the key
check, Flask answers it with 404. Handlers are meant to be added to the
application returned by `create_app`.

## Configuration records

`tscserver.config` holds `ServerConfig` (`ip`, `port`, `sec_key`, `debug`)
and the service records `BaseConfig` and `CustomConfig`. Their `to_dict()`
gives the JSON form: `description`, `tags` and `extensions` are left out when
empty, times are written in ISO 8601 with a `Z` suffix for UTC, and
`CustomConfig` adds `config_data`.

## JSON responses

`tscserver.responses` builds the uniform response envelope used by handlers:
a body with `code`, `message` and, when set, `data` and `meta`. Each helper
returns a `(body, http_status)` pair that a Flask view can return directly.

| Helper                                    | HTTP status   | Body code     |
|-------------------------------------------|---------------|---------------|
| `success(data)`                           | 200           | 200           |
| `success_with_meta(data, meta)`           | 200           | 200           |
| `fail(message)`                           | 500           | 500           |
| `error(code, message)`                    | 200           | `code`        |
| `error_with_data(code, message, data)`    | 200           | `code`        |
| `custom(http_status, code, message, data)`| `http_status` | `code`        |
| `page_success(items, total, page, page_size)` | 200       | 200           |

`page_success` puts the items in `data` and a `meta` object holding `data`
(a `PageResponse` with `list`, `total`, `page`, `page_size`), `page`,
`pageSize` and `total`.

## Downloading files

```python
from tscserver.download import DownloadType, new_download_info, new_downloader

downloader = new_downloader(DownloadType.HTTP, None)
info = new_download_info("http://localhost:8000/service.zip", "downloads/service.zip")
info.checksum = "6fe13b5c9a94c9da9d3cc3e1977f778c"
info.checksum_type = "md5"
downloader.download(info, None)
```

`new_download_info` fills in 3 attempts 5 seconds apart, a 30-second timeout,
file mode `0o644` and md5 as the checksum type. Where a `DownloadInfo` leaves
the timeout, attempt count or User-Agent unset, the downloader's
`DownloadOptions` supply them. A response other than 200 or 206 counts as a
failed attempt; once all attempts fail, `DownloadError` is raised.

If the destination is an existing directory, the file is named after the last
part of the URL (`downloaded_file` if there is none); otherwise missing parent
directories are created. Resuming (a `Range` request appended to the existing
file), extra headers, a proxy and a custom User-Agent are set on the
`DownloadInfo`. When a checksum is given the file is verified after writing.

A writer passed to `download` receives a copy of the data; if it also has a
`set_total(total)` method (the `ProgressWriter` protocol) it is first told the
response's Content-Length, or -1 when unknown.

`DownloadType.WGET` gives a `WgetDownloader`, which also downloads over HTTP
but, for a directory destination, names the file after the URL path and uses
`index.html` when the path is empty. Other unknown types get an
`HTTPDownloader`. FTP downloads are not supported: `new_downloader` raises
`DownloadError` for `DownloadType.FTP`.

## Checking files

```python
from tscserver.server_check import HashType, calculate_file_hash, verify_file_hash

result = calculate_file_hash("service.zip", HashType.SHA256)
print(result.exists, result.size, result.hash_value)

matches = verify_file_hash("service.zip", HashType.MD5, "6fe13b5c9a94c9da9d3cc3e1977f778c")
```

`check_file_exists` and `calculate_file_hash` return a `FileCheckResult` and
report problems in its `error` field. `verify_file_hash` returns whether the
hash matches and raises `FileNotFoundError` for a missing file or `ValueError`
for other failures, such as an unsupported hash type.

`tscserver.checksum.verify_checksum(file_path, expected_checksum,
checksum_type)` checks a file against md5, sha1, sha256 or sha512 (the type is
case-insensitive) and raises `ChecksumError` when the file cannot be read, the
type is unsupported or the digest does not match.

## Unpacking packages

```python
from tscserver.package import ExtractOptions, open_package

pkg = open_package("service.zip")
pkg.print_summary()
pkg.extract(ExtractOptions(target_dir="output", overwrite=True, preserve_perm=True))
```

`open_package` returns a `PackageInfo` with the package's path, absolute
path, name, file count, total uncompressed size, modification time and a
`PackageEntry` for each file (directories are not listed). `summary()` returns
the same text that `print_summary()` prints.

When extracting, entries whose names match any shell pattern in
`ExtractOptions.exclude` are skipped, and an entry that would land outside the
target directory stops extraction with `PackageError`. Without `overwrite`,
files that already exist are left alone. With `preserve_perm`, each file gets
the permissions recorded in the archive.

The `tscserver-package` command lists the entries of a package and extracts
it, overwriting existing files and keeping permissions:

```
tscserver-package service.zip output
```

Both arguments are optional and default to `./testdata/main.zip` and
`testdata/output`. The command exits with status 1 if the package cannot be
opened or extracted.