"""Configuration models describing codelabs tool settings."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class CodelabsBaseModel(BaseModel):
    """Shared configuration for settings models."""

    model_config = ConfigDict(extra="forbid")


class PathSettings(CodelabsBaseModel):
    """Locations of the catalog inputs and outputs.

    Relative paths are resolved against the project root.

    Attributes:
        root: Project root; discovered from the working directory when unset.
        codelabs_dir: Directory holding one subdirectory per codelab.
        api_dir: Directory receiving the published API document.
        categories_file: Taxonomy file with category themes and events.
    """

    root: Optional[str] = None
    codelabs_dir: str = "src/codelabs"
    api_dir: str = "api"
    categories_file: str = "categories-events.json"


class ScanOptions(CodelabsBaseModel):
    """Options governing the metadata scan.

    Attributes:
        metadata_filename: Metadata file expected inside every codelab directory.
        duplicate_policy: How repeated source identifiers are indexed.
        timeout_seconds: Overall scan deadline; waits indefinitely when unset.
    """

    metadata_filename: str = "codelab.json"
    duplicate_policy: Literal["reject", "first", "last"] = "reject"
    timeout_seconds: Optional[float] = Field(default=None, gt=0)


class PublishOptions(CodelabsBaseModel):
    """Options governing API document publication.

    Attributes:
        output_filename: Name of the document written into ``paths.api_dir``.
        indent: JSON indentation width.
        sort_codelabs: Whether codelabs are written sorted by source identifier.
        allow_partial: Publish the successful codelabs even if some failed.
    """

    output_filename: str = "codelabs.json"
    indent: int = Field(default=2, ge=0)
    sort_codelabs: bool = True
    allow_partial: bool = False


class LoggingSettings(CodelabsBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(CodelabsBaseModel):
    """CLI behavior defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
    """

    quiet_default: bool = False


class CodelabsConfig(CodelabsBaseModel):
    """Top-level configuration for the codelabs tool."""

    paths: PathSettings = Field(default_factory=PathSettings)
    scan: ScanOptions = Field(default_factory=ScanOptions)
    publish: PublishOptions = Field(default_factory=PublishOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "CodelabsBaseModel",
    "PathSettings",
    "ScanOptions",
    "PublishOptions",
    "LoggingSettings",
    "CLIOptions",
    "CodelabsConfig",
]
