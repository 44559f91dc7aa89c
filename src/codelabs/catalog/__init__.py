"""Codelab catalog discovery and maintenance."""

from .errors import (
    CatalogError,
    CatalogListingError,
    CatalogScanError,
    DuplicateSourceError,
    MetadataError,
    MetadataMalformedError,
    MetadataUnreadableError,
    ScanTimeoutError,
)
from .models import Codelab
from .removal import RemovalResult, remove_codelabs
from .scanner import (
    METADATA_FILENAME,
    MetadataScanner,
    ScanFailure,
    ScanResult,
    fetch_all_codelabs,
)

__all__ = [
    "Codelab",
    "MetadataScanner",
    "ScanResult",
    "ScanFailure",
    "fetch_all_codelabs",
    "METADATA_FILENAME",
    "RemovalResult",
    "remove_codelabs",
    "CatalogError",
    "CatalogListingError",
    "CatalogScanError",
    "MetadataError",
    "MetadataUnreadableError",
    "MetadataMalformedError",
    "DuplicateSourceError",
    "ScanTimeoutError",
]
