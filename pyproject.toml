[build-system]
requires = ["hatchling>=1.18"]
build-backend = "hatchling.build"

[project]
name = "tscserver"
version = "0.1.0"
description = "Key-protected HTTP service with tools for downloading, verifying and unpacking service packages"
requires-python = ">=3.10"
dependencies = [
    "flask>=2.3",
]
keywords = [
    "http-server",
    "flask",
    "downloader",
    "checksum",
    "zip",
    "deployment",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: System :: Archiving :: Packaging",
    "Topic :: System :: Software Distribution",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[project.scripts]
tscserver = "tscserver.server:main"
tscserver-package = "tscserver.package:main"

[tool.hatch.build.targets.wheel]
packages = ["tscserver"]

[tool.hatch.build.targets.sdist]
include = [
    "tscserver",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
