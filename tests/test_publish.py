"""Tests for the rescan-and-publish pipeline."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from codelabs.api import TaxonomyError
from codelabs.catalog import CatalogScanError
from codelabs.config import CodelabsConfig, resolve_paths, resolve_with_precedence
from codelabs.publish import regenerate_api


def _project(tmp_path: Path) -> Path:
    """Create a project tree with two codelabs and a taxonomy file.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        Path: Project root.
    """
    root = tmp_path / "project"
    codelabs_dir = root / "src" / "codelabs"
    for name in ("a", "b"):
        directory = codelabs_dir / name
        directory.mkdir(parents=True)
        (directory / "codelab.json").write_text(
            json.dumps({"source": name, "url": f"/{name}/"}), encoding="utf-8"
        )
    (codelabs_dir / "readme.txt").write_text("x", encoding="utf-8")
    (root / "categories-events.json").write_text(
        json.dumps({"categories": {"intro": {"maincolor": "a", "secondarycolor": "b", "lightcolor": "c"}}}),
        encoding="utf-8",
    )
    return root


def test_regenerate_writes_document(tmp_path: Path) -> None:
    root = _project(tmp_path)
    config = CodelabsConfig()
    paths = resolve_paths(config, root=root)

    result = regenerate_api(config, paths)

    assert result.published
    assert not result.partial
    assert result.output_path == paths.output_file
    assert paths.output_file == root.resolve() / "api" / "codelabs.json"
    data = json.loads(result.output_path.read_text(encoding="utf-8"))
    assert [entry["url"] for entry in data["codelabs"]] == ["/a/", "/b/"]
    assert data["categories"]["intro"]["maincolor"] == "a"
    assert "events" not in data


def test_failures_block_publication(tmp_path: Path) -> None:
    root = _project(tmp_path)
    (root / "src" / "codelabs" / "c").mkdir()
    config = CodelabsConfig()
    paths = resolve_paths(config, root=root)

    with pytest.raises(CatalogScanError) as excinfo:
        regenerate_api(config, paths)

    assert not paths.output_file.exists()
    assert excinfo.value.result.index == {"a": "/a/", "b": "/b/"}


def test_partial_publication_when_allowed(tmp_path: Path) -> None:
    root = _project(tmp_path)
    (root / "src" / "codelabs" / "c").mkdir()
    config = resolve_with_precedence(defaults=CodelabsConfig(), cli_overrides={"publish.allow_partial": True})
    paths = resolve_paths(config, root=root)

    result = regenerate_api(config, paths)

    assert result.partial
    assert len(result.scan.failures) == 1
    data = json.loads(paths.output_file.read_text(encoding="utf-8"))
    assert len(data["codelabs"]) == 2


def test_allow_partial_argument_overrides_config(tmp_path: Path) -> None:
    root = _project(tmp_path)
    (root / "src" / "codelabs" / "c").mkdir()
    config = CodelabsConfig()
    paths = resolve_paths(config, root=root)

    result = regenerate_api(config, paths, allow_partial=True)

    assert result.published


def test_missing_taxonomy_is_fatal(tmp_path: Path) -> None:
    root = _project(tmp_path)
    (root / "categories-events.json").unlink()
    config = CodelabsConfig()
    paths = resolve_paths(config, root=root)

    with pytest.raises(TaxonomyError):
        regenerate_api(config, paths)
    assert not paths.output_file.exists()
