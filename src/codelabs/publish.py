"""Full rescan and publication of the codelabs API document."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from codelabs.api import ApiBuilder, ApiDocument, load_taxonomy
from codelabs.catalog import CatalogScanError, MetadataScanner, ScanResult
from codelabs.config import CodelabsConfig, ProjectPaths

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PublishResult:
    """Outcome of a publish run.

    Attributes:
        scan: Result of the full rescan.
        document: Document that was written, if any.
        output_path: Location of the written document, if any.
    """

    scan: ScanResult
    document: Optional[ApiDocument] = None
    output_path: Optional[Path] = None

    @property
    def published(self) -> bool:
        """Return True when a document was written."""
        return self.output_path is not None

    @property
    def partial(self) -> bool:
        """Return True when a document was written despite per-codelab failures."""
        return self.published and not self.scan.ok


def build_scanner(config: CodelabsConfig) -> MetadataScanner:
    """Return a scanner configured from the ``scan`` settings."""
    return MetadataScanner(
        metadata_filename=config.scan.metadata_filename,
        duplicate_policy=config.scan.duplicate_policy,
        timeout_seconds=config.scan.timeout_seconds,
    )


def scan_catalog(config: CodelabsConfig, paths: ProjectPaths) -> ScanResult:
    """Scan the configured content root without publishing anything."""
    return build_scanner(config).scan(paths.codelabs_dir)


def regenerate_api(
    config: CodelabsConfig,
    paths: ProjectPaths,
    *,
    allow_partial: bool | None = None,
) -> PublishResult:
    """Rescan every codelab and rewrite the API document.

    The taxonomy is loaded first so a broken categories file fails before any
    scanning happens. When directories fail to load, nothing is written unless
    partial publication is allowed, in which case the codelabs that did load are
    published and the failures remain on the returned scan result.

    Args:
        config: Effective configuration.
        paths: Resolved project paths.
        allow_partial: Overrides ``publish.allow_partial`` when given.

    Returns:
        PublishResult: Scan result and published document.

    Raises:
        TaxonomyError: If the categories file cannot be loaded.
        CatalogListingError: If the content root cannot be listed.
        CatalogScanError: If directories failed and partial publication is off.
        ApiSerializationError: If the document cannot be rendered.
        ApiWriteError: If the document cannot be written.
    """
    partial_ok = config.publish.allow_partial if allow_partial is None else allow_partial

    taxonomy = load_taxonomy(paths.categories_file)
    scan = scan_catalog(config, paths)
    if not scan.ok:
        if not partial_ok:
            raise CatalogScanError(scan)
        LOGGER.warning(
            "Publishing %d codelab(s) despite %d failure(s).", len(scan.codelabs), len(scan.failures)
        )

    builder = ApiBuilder(indent=config.publish.indent, sort_codelabs=config.publish.sort_codelabs)
    document = builder.build(scan.codelabs, taxonomy)
    output_path = builder.write(document, paths.output_file)
    return PublishResult(scan=scan, document=document, output_path=output_path)


__all__ = ["PublishResult", "build_scanner", "scan_catalog", "regenerate_api"]
