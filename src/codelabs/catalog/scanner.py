"""Concurrent discovery of codelab metadata under a content root."""

from __future__ import annotations

import json
import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

from pydantic import ValidationError

from .errors import (
    CatalogListingError,
    CatalogScanError,
    DuplicateSourceError,
    MetadataError,
    MetadataMalformedError,
    MetadataUnreadableError,
    ScanTimeoutError,
)
from .models import Codelab

LOGGER = logging.getLogger(__name__)

METADATA_FILENAME = "codelab.json"

DuplicatePolicy = Literal["reject", "first", "last"]
OutcomeKind = Literal["skip", "success", "failure"]


@dataclass(slots=True)
class ScanOutcome:
    """Message posted by a worker once it finished inspecting one entry.

    Attributes:
        entry: Root entry the worker was assigned.
        kind: ``skip`` for non-directories, ``success`` or ``failure`` otherwise.
        codelab: Parsed codelab when ``kind`` is ``success``.
        error: Failure details when ``kind`` is ``failure``.
    """

    entry: Path
    kind: OutcomeKind
    codelab: Optional[Codelab] = None
    error: Optional[MetadataError] = None


@dataclass(slots=True)
class ScanFailure:
    """A directory that did not produce a codelab."""

    entry: Path
    error: MetadataError

    def __str__(self) -> str:
        return f"{self.entry.name}: {self.error}"


@dataclass(slots=True)
class ScanResult:
    """Aggregated outcome of scanning a content root.

    Attributes:
        root: Content root that was scanned.
        codelabs: Parsed codelabs in worker completion order.
        index: Mapping of source identifiers to published URLs.
        directories: Mapping of source identifiers to the directory declaring them.
        failures: Directories that failed to load, ordered by directory name.
        skipped: Root entries that were not directories.
    """

    root: Path
    codelabs: list[Codelab] = field(default_factory=list)
    index: dict[str, str] = field(default_factory=dict)
    directories: dict[str, Path] = field(default_factory=dict)
    failures: list[ScanFailure] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True when every directory produced a codelab."""
        return not self.failures

    def error_message(self) -> str:
        """Return one message describing every failed directory.

        Returns:
            str: Combined failure text, or an empty string for clean scans.
        """
        if not self.failures:
            return ""
        lines = [f"{len(self.failures)} codelab(s) under {self.root} failed to load:"]
        lines.extend(f"  - {failure}" for failure in self.failures)
        return "\n".join(lines)

    def raise_for_failures(self) -> None:
        """Raise CatalogScanError if any directory failed.

        Raises:
            CatalogScanError: Carrying this result when failures were recorded.
        """
        if self.failures:
            raise CatalogScanError(self)


class MetadataScanner:
    """Read every codelab directory under a root concurrently.

    One worker thread is started per root entry. Workers never touch shared
    state; each posts a single :class:`ScanOutcome` to a queue and the
    collector in :meth:`scan` receives exactly one message per worker.
    """

    def __init__(
        self,
        *,
        metadata_filename: str = METADATA_FILENAME,
        duplicate_policy: DuplicatePolicy = "reject",
        timeout_seconds: float | None = None,
    ) -> None:
        if duplicate_policy not in ("reject", "first", "last"):
            raise ValueError(f"Unsupported duplicate policy '{duplicate_policy}'.")
        self.metadata_filename = metadata_filename
        self.duplicate_policy = duplicate_policy
        self.timeout_seconds = timeout_seconds

    def scan(self, root: Path) -> ScanResult:
        """Scan the immediate subdirectories of root.

        Args:
            root: Content root holding one directory per codelab.

        Returns:
            ScanResult: Parsed codelabs, index, and per-directory failures.

        Raises:
            CatalogListingError: If the root cannot be listed.
        """
        root = root.expanduser()
        try:
            entries = sorted(root.iterdir())
        except OSError as exc:
            raise CatalogListingError(f"Couldn't list codelab directory {root}: {exc}") from exc

        outcomes: queue.Queue[ScanOutcome] = queue.Queue()
        for entry in entries:
            worker = threading.Thread(
                target=self._inspect,
                args=(entry, outcomes),
                name=f"codelab-scan-{entry.name}",
                daemon=True,
            )
            worker.start()

        result = ScanResult(root=root)
        successes: list[tuple[Path, Codelab]] = []
        failures: list[ScanFailure] = []
        pending = set(entries)
        deadline = None if self.timeout_seconds is None else time.monotonic() + self.timeout_seconds

        for _ in range(len(entries)):
            wait = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                outcome = outcomes.get(timeout=wait)
            except queue.Empty:
                break
            pending.discard(outcome.entry)

            if outcome.kind == "skip":
                result.skipped.append(outcome.entry)
            elif outcome.kind == "success" and outcome.codelab is not None:
                result.codelabs.append(outcome.codelab)
                successes.append((outcome.entry, outcome.codelab))
            elif outcome.error is not None:
                LOGGER.warning("Skipping %s: %s", outcome.entry, outcome.error)
                failures.append(ScanFailure(outcome.entry, outcome.error))

        for entry in sorted(pending):
            error = ScanTimeoutError(f"no result after {self.timeout_seconds}s")
            LOGGER.warning("Skipping %s: %s", entry, error)
            failures.append(ScanFailure(entry, error))

        failures.extend(self._index(result, successes))
        result.failures = sorted(failures, key=lambda failure: failure.entry.name)
        result.skipped.sort()

        LOGGER.info(
            "Scanned %s: %d codelab(s), %d failure(s), %d skipped entr(ies).",
            root,
            len(result.codelabs),
            len(result.failures),
            len(result.skipped),
        )
        return result

    def _inspect(self, entry: Path, outcomes: queue.Queue[ScanOutcome]) -> None:
        """Worker body: classify one entry and post exactly one outcome."""
        try:
            if entry.is_symlink() or not entry.is_dir():
                outcome = ScanOutcome(entry, "skip")
            else:
                outcome = ScanOutcome(entry, "success", codelab=self.load(entry))
        except MetadataError as exc:
            outcome = ScanOutcome(entry, "failure", error=exc)
        except Exception as exc:  # pragma: no cover - the collector must always hear back
            outcome = ScanOutcome(entry, "failure", error=MetadataError(f"unexpected error: {exc}"))
        LOGGER.debug("Scanned %s: %s", entry, outcome.kind)
        outcomes.put(outcome)

    def load(self, directory: Path) -> Codelab:
        """Read and parse the metadata file inside one codelab directory.

        Args:
            directory: Codelab directory.

        Returns:
            Codelab: Parsed metadata.

        Raises:
            MetadataUnreadableError: If the metadata file is missing or unreadable.
            MetadataMalformedError: If its contents are not a valid codelab record.
        """
        path = directory / self.metadata_filename
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise MetadataUnreadableError(f"couldn't read {path}: {exc.strerror or exc}") from exc

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MetadataMalformedError(f"invalid JSON in {path}: {exc}") from exc

        try:
            return Codelab.model_validate(data)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
                for error in exc.errors()
            )
            raise MetadataMalformedError(f"invalid metadata in {path}: {problems}") from exc

    def _index(self, result: ScanResult, successes: list[tuple[Path, Codelab]]) -> list[ScanFailure]:
        """Populate the index from successes ordered by directory name.

        Returns:
            list[ScanFailure]: Duplicate failures when the policy rejects them.
        """
        duplicates: list[ScanFailure] = []
        for entry, codelab in sorted(successes, key=lambda item: item[0].name):
            owner = result.directories.get(codelab.source)
            if owner is not None:
                if self.duplicate_policy == "reject":
                    duplicates.append(
                        ScanFailure(
                            entry,
                            DuplicateSourceError(
                                f"source '{codelab.source}' is already declared by {owner.name}"
                            ),
                        )
                    )
                    result.codelabs.remove(codelab)
                    continue
                if self.duplicate_policy == "first":
                    continue
            result.index[codelab.source] = codelab.url
            result.directories[codelab.source] = entry
        return duplicates


def fetch_all_codelabs(
    root: Path,
    *,
    metadata_filename: str = METADATA_FILENAME,
    duplicate_policy: DuplicatePolicy = "reject",
    timeout_seconds: float | None = None,
) -> tuple[list[Codelab], dict[str, str]]:
    """Scan root and return its codelabs and index, failing on any bad directory.

    Raises:
        CatalogListingError: If the root cannot be listed.
        CatalogScanError: If one or more directories failed to load.
    """
    scanner = MetadataScanner(
        metadata_filename=metadata_filename,
        duplicate_policy=duplicate_policy,
        timeout_seconds=timeout_seconds,
    )
    result = scanner.scan(root)
    result.raise_for_failures()
    return result.codelabs, result.index


__all__ = [
    "METADATA_FILENAME",
    "DuplicatePolicy",
    "MetadataScanner",
    "ScanFailure",
    "ScanOutcome",
    "ScanResult",
    "fetch_all_codelabs",
]
