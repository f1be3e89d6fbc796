# videocatalog/errors.py
from __future__ import annotations


class VideoCatalogError(Exception):
    """Base class for everything the catalog raises on purpose."""


class ConfigurationError(VideoCatalogError):
    """Required settings are missing or malformed. Fatal at startup."""


class StorageUnavailable(VideoCatalogError):
    """The media folder cannot be read."""

    def __init__(self, path, reason: str):
        super().__init__(f"media folder {path} is unavailable: {reason}")
        self.path = path
        self.reason = reason


class RangeNotSatisfiable(VideoCatalogError):
    def __init__(self, size: int):
        super().__init__(f"requested range not satisfiable for {size} bytes")
        self.size = size
