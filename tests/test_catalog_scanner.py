"""Tests for the concurrent metadata scanner."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path

import pytest

from codelabs.catalog import (
    CatalogListingError,
    CatalogScanError,
    DuplicateSourceError,
    MetadataMalformedError,
    MetadataScanner,
    MetadataUnreadableError,
    ScanTimeoutError,
    fetch_all_codelabs,
)
from codelabs.catalog.models import Codelab


def _write_codelab(root: Path, name: str, **overrides: object) -> Path:
    """Create a codelab directory with a valid metadata file.

    Args:
        root: Content root.
        name: Directory name; also the default source identifier.
        **overrides: Metadata fields replacing the defaults.

    Returns:
        Path: The created codelab directory.
    """
    directory = root / name
    directory.mkdir(parents=True)
    metadata = {
        "source": name,
        "title": f"Codelab {name}",
        "summary": "A summary",
        "category": ["intro"],
        "difficulty": 2,
        "duration": 15,
        "tags": ["web"],
        "updated": "2016-08-01T12:00:00Z",
        "url": f"/{name}/",
    }
    metadata.update(overrides)
    (directory / "codelab.json").write_text(json.dumps(metadata), encoding="utf-8")
    return directory


def test_scan_valid_directories(tmp_path: Path) -> None:
    for name in ("a", "b", "c"):
        _write_codelab(tmp_path, name)

    result = MetadataScanner().scan(tmp_path)

    assert result.ok
    assert len(result.codelabs) == 3
    assert len(result.index) == 3
    for codelab in result.codelabs:
        assert result.index[codelab.source] == codelab.url
    assert result.directories["b"] == tmp_path / "b"
    assert result.error_message() == ""


def test_scan_skips_plain_files(tmp_path: Path) -> None:
    _write_codelab(tmp_path, "a", url="/a/")
    _write_codelab(tmp_path, "b", url="/b/")
    (tmp_path / "readme.txt").write_text("not a codelab", encoding="utf-8")

    result = MetadataScanner().scan(tmp_path)

    assert result.ok
    assert sorted(codelab.source for codelab in result.codelabs) == ["a", "b"]
    assert result.index == {"a": "/a/", "b": "/b/"}
    assert result.skipped == [tmp_path / "readme.txt"]
    assert result.failures == []


def test_scan_does_not_follow_symlinks(tmp_path: Path) -> None:
    root = tmp_path / "codelabs"
    root.mkdir()
    _write_codelab(root, "a")
    outside = _write_codelab(tmp_path, "outside")
    try:
        os.symlink(outside, root / "linked", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks are not supported on this platform")

    result = MetadataScanner().scan(root)

    assert result.ok
    assert list(result.index) == ["a"]
    assert result.skipped == [root / "linked"]


def test_missing_metadata_is_reported_and_successes_kept(tmp_path: Path) -> None:
    _write_codelab(tmp_path, "a")
    (tmp_path / "c").mkdir()

    result = MetadataScanner().scan(tmp_path)

    assert not result.ok
    assert [codelab.source for codelab in result.codelabs] == ["a"]
    assert result.index == {"a": "/a/"}
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.entry == tmp_path / "c"
    assert isinstance(failure.error, MetadataUnreadableError)
    assert "couldn't read" in result.error_message()
    assert "c:" in result.error_message()

    with pytest.raises(CatalogScanError) as excinfo:
        result.raise_for_failures()
    assert str(excinfo.value)
    assert excinfo.value.result.index == {"a": "/a/"}


def test_malformed_metadata_is_reported(tmp_path: Path) -> None:
    _write_codelab(tmp_path, "good")
    broken = tmp_path / "broken"
    broken.mkdir()
    (broken / "codelab.json").write_text("{not json", encoding="utf-8")
    _write_codelab(tmp_path, "wrong-shape", difficulty="hard")
    missing_url = tmp_path / "missing-url"
    missing_url.mkdir()
    (missing_url / "codelab.json").write_text(json.dumps({"source": "x"}), encoding="utf-8")

    result = MetadataScanner().scan(tmp_path)

    assert list(result.index) == ["good"]
    failures = {failure.entry.name: failure.error for failure in result.failures}
    assert set(failures) == {"broken", "missing-url", "wrong-shape"}
    assert all(isinstance(error, MetadataMalformedError) for error in failures.values())
    assert "difficulty" in str(failures["wrong-shape"])
    assert "url" in str(failures["missing-url"])


def test_unknown_fields_are_ignored_and_defaults_applied(tmp_path: Path) -> None:
    directory = tmp_path / "minimal"
    directory.mkdir()
    metadata = {"source": "doc-1", "url": "minimal", "status": ["draft"], "feedback": "x"}
    (directory / "codelab.json").write_text(json.dumps(metadata), encoding="utf-8")

    result = MetadataScanner().scan(tmp_path)

    assert result.ok
    assert result.codelabs == [Codelab(source="doc-1", url="minimal")]
    assert result.codelabs[0].category == []
    assert result.codelabs[0].difficulty == 0


def test_custom_metadata_filename(tmp_path: Path) -> None:
    directory = tmp_path / "a"
    directory.mkdir()
    (directory / "meta.json").write_text(json.dumps({"source": "a", "url": "/a/"}), encoding="utf-8")

    result = MetadataScanner(metadata_filename="meta.json").scan(tmp_path)

    assert result.index == {"a": "/a/"}


def test_repeated_scans_yield_same_set(tmp_path: Path) -> None:
    for index in range(20):
        _write_codelab(tmp_path, f"lab-{index:02d}")
    scanner = MetadataScanner()

    first = scanner.scan(tmp_path)
    second = scanner.scan(tmp_path)

    assert {codelab.source for codelab in first.codelabs} == {codelab.source for codelab in second.codelabs}
    assert first.index == second.index


def test_empty_root_produces_empty_result(tmp_path: Path) -> None:
    result = MetadataScanner().scan(tmp_path)

    assert result.ok
    assert result.codelabs == []
    assert result.index == {}


def test_listing_failure_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(CatalogListingError):
        MetadataScanner().scan(tmp_path / "missing")

    not_a_dir = tmp_path / "file.txt"
    not_a_dir.write_text("x", encoding="utf-8")
    with pytest.raises(CatalogListingError):
        MetadataScanner().scan(not_a_dir)


def test_duplicate_sources_rejected_by_default(tmp_path: Path) -> None:
    _write_codelab(tmp_path, "a-first", source="shared", url="/first/")
    _write_codelab(tmp_path, "b-second", source="shared", url="/second/")

    result = MetadataScanner().scan(tmp_path)

    assert not result.ok
    assert result.index == {"shared": "/first/"}
    assert [codelab.url for codelab in result.codelabs] == ["/first/"]
    assert len(result.failures) == 1
    assert result.failures[0].entry.name == "b-second"
    assert isinstance(result.failures[0].error, DuplicateSourceError)
    assert "a-first" in str(result.failures[0].error)


@pytest.mark.parametrize(("policy", "expected"), [("first", "/first/"), ("last", "/second/")])
def test_duplicate_policy_first_and_last(tmp_path: Path, policy: str, expected: str) -> None:
    _write_codelab(tmp_path, "a-first", source="shared", url="/first/")
    _write_codelab(tmp_path, "b-second", source="shared", url="/second/")

    result = MetadataScanner(duplicate_policy=policy).scan(tmp_path)  # type: ignore[arg-type]

    assert result.ok
    assert result.index == {"shared": expected}
    assert len(result.codelabs) == 2


def test_invalid_duplicate_policy_rejected() -> None:
    with pytest.raises(ValueError):
        MetadataScanner(duplicate_policy="random")  # type: ignore[arg-type]


def test_timeout_reports_unfinished_directories(tmp_path: Path) -> None:
    _write_codelab(tmp_path, "fast")
    _write_codelab(tmp_path, "slow")
    release = threading.Event()

    class BlockingScanner(MetadataScanner):
        def load(self, directory: Path) -> Codelab:
            if directory.name == "slow":
                release.wait(5)
            return super().load(directory)

    try:
        result = BlockingScanner(timeout_seconds=0.2).scan(tmp_path)
    finally:
        release.set()

    assert result.index == {"fast": "/fast/"}
    assert [failure.entry.name for failure in result.failures] == ["slow"]
    assert isinstance(result.failures[0].error, ScanTimeoutError)


def test_fetch_all_codelabs(tmp_path: Path) -> None:
    _write_codelab(tmp_path, "a")
    _write_codelab(tmp_path, "b")

    codelabs, index = fetch_all_codelabs(tmp_path)

    assert len(codelabs) == 2
    assert index == {"a": "/a/", "b": "/b/"}

    (tmp_path / "c").mkdir()
    with pytest.raises(CatalogScanError) as excinfo:
        fetch_all_codelabs(tmp_path)
    assert len(excinfo.value.result.codelabs) == 2


def test_directories_are_loaded_concurrently(tmp_path: Path) -> None:
    names = ("one", "two", "three")
    for name in names:
        _write_codelab(tmp_path, name)
    barrier = threading.Barrier(len(names), timeout=5)

    class RendezvousScanner(MetadataScanner):
        def load(self, directory: Path) -> Codelab:
            # Each load blocks until every directory's worker has started.
            barrier.wait()
            return super().load(directory)

    result = RendezvousScanner().scan(tmp_path)

    assert result.ok, result.error_message()
    assert result.index == {name: f"/{name}/" for name in names}
    assert not barrier.broken
