"""Removal of codelab directories by directory name or source identifier."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .scanner import ScanResult

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RemovalResult:
    """Outcome of a removal request.

    Attributes:
        removed: Directories deleted from the content root.
        missing: Targets matching neither a directory nor a source identifier.
        errors: Targets that were found but could not be deleted.
    """

    removed: list[Path] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True when every target was found and deleted."""
        return not self.missing and not self.errors


def remove_codelabs(root: Path, targets: Iterable[str], scan: ScanResult) -> RemovalResult:
    """Delete the codelab directories named by targets.

    Each target is first tried as a directory name under root, then as a
    source identifier resolved through ``scan.directories``. Every target is
    attempted even if an earlier one failed.

    Args:
        root: Content root holding the codelab directories.
        targets: Directory names or source identifiers.
        scan: Fresh scan of root used to resolve source identifiers.

    Returns:
        RemovalResult: Removed directories plus missing and failed targets.
    """
    root = root.expanduser()
    result = RemovalResult()
    seen: set[str] = set()
    for target in targets:
        if target in seen:
            continue
        seen.add(target)

        directory = _resolve(root, target, scan)
        if directory is None:
            LOGGER.warning("Couldn't find codelab %s under %s", target, root)
            result.missing.append(target)
            continue
        try:
            shutil.rmtree(directory)
        except OSError as exc:
            LOGGER.warning("Found, but couldn't remove %s: %s", directory, exc)
            result.errors.append(f"{target}: {exc}")
            continue
        LOGGER.info("Removed %s", directory)
        result.removed.append(directory)
    return result


def _resolve(root: Path, target: str, scan: ScanResult) -> Path | None:
    candidate = root / target
    if _is_child_directory(root, candidate):
        return candidate
    declared = scan.directories.get(target)
    if declared is not None and _is_child_directory(root, declared):
        return declared
    return None


def _is_child_directory(root: Path, candidate: Path) -> bool:
    # Only direct children of the content root are codelabs.
    if candidate.is_symlink() or not candidate.is_dir():
        return False
    return candidate.resolve().parent == root.resolve()


__all__ = ["RemovalResult", "remove_codelabs"]
