"""Catalog scanning errors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .scanner import ScanResult


class CatalogError(Exception):
    """Base exception for catalog operations."""


class CatalogListingError(CatalogError):
    """Raised when the content root itself cannot be listed."""


class MetadataError(CatalogError):
    """Base exception for failures tied to a single codelab directory."""


class MetadataUnreadableError(MetadataError):
    """Raised when a metadata file is missing or cannot be read."""


class MetadataMalformedError(MetadataError):
    """Raised when a metadata file does not parse into a codelab record."""


class DuplicateSourceError(MetadataError):
    """Raised when two directories declare the same source identifier."""


class ScanTimeoutError(MetadataError):
    """Raised when a directory did not report back before the scan deadline."""


class CatalogScanError(CatalogError):
    """Aggregate failure for a scan where one or more directories failed.

    The complete scan result, including every codelab that did parse, stays
    available on ``result``.
    """

    def __init__(self, result: "ScanResult") -> None:
        self.result = result
        super().__init__(result.error_message())


__all__ = [
    "CatalogError",
    "CatalogListingError",
    "MetadataError",
    "MetadataUnreadableError",
    "MetadataMalformedError",
    "DuplicateSourceError",
    "ScanTimeoutError",
    "CatalogScanError",
]
