"""Key-protected HTTP service with package download, verification and extraction tools."""

__version__ = "0.1.0"