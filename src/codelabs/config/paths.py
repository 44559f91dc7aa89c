"""Resolution of project directories from configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .exceptions import ConfigError
from .models import CodelabsConfig


@dataclass(frozen=True, slots=True)
class ProjectPaths:
    """Absolute locations used by a catalog run.

    Attributes:
        root: Project root directory.
        codelabs_dir: Content root holding one directory per codelab.
        api_dir: Directory receiving the API document.
        categories_file: Taxonomy file.
        output_file: Full path of the API document.
    """

    root: Path
    codelabs_dir: Path
    api_dir: Path
    categories_file: Path
    output_file: Path


def locate_project_root(start: Path, codelabs_dir: str) -> Path:
    """Walk up from start to the first directory containing codelabs_dir.

    Raises:
        ConfigError: If no ancestor contains the codelabs directory.
    """
    start = start.expanduser().resolve()
    for candidate in [start, *start.parents]:
        if (candidate / codelabs_dir).is_dir():
            return candidate
    raise ConfigError(f"Couldn't find a project containing '{codelabs_dir}' above {start}.")


def resolve_paths(
    config: CodelabsConfig,
    *,
    root: Path | None = None,
    cwd: Path | None = None,
) -> ProjectPaths:
    """Return absolute project paths.

    The root comes from the explicit argument, then ``paths.root``, then a
    search upwards from ``cwd``.

    Raises:
        ConfigError: If no project root can be determined.
    """
    settings = config.paths
    if root is None and settings.root:
        root = Path(settings.root)
    if root is None:
        root = locate_project_root(cwd or Path.cwd(), settings.codelabs_dir)
    root = root.expanduser().resolve()

    api_dir = root / settings.api_dir
    return ProjectPaths(
        root=root,
        codelabs_dir=root / settings.codelabs_dir,
        api_dir=api_dir,
        categories_file=root / settings.categories_file,
        output_file=api_dir / config.publish.output_filename,
    )


__all__ = ["ProjectPaths", "locate_project_root", "resolve_paths"]
