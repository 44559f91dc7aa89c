"""Construction and publication of the codelabs API document."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable

from codelabs.catalog.models import Codelab

from .errors import ApiSerializationError, ApiWriteError
from .models import ApiDocument, Taxonomy

LOGGER = logging.getLogger(__name__)

API_FILENAME = "codelabs.json"


class ApiBuilder:
    """Merge scanned codelabs with taxonomy data and write the result."""

    def __init__(self, *, indent: int = 2, sort_codelabs: bool = True) -> None:
        self.indent = indent
        self.sort_codelabs = sort_codelabs

    def build(self, codelabs: Iterable[Codelab], taxonomy: Taxonomy) -> ApiDocument:
        """Return a fresh document for the given codelabs and taxonomy.

        Category and event keys are ordered by name regardless of the order
        the taxonomy file lists them in.

        Args:
            codelabs: Codelabs to publish, in any order.
            taxonomy: Category themes and optional events.

        Returns:
            ApiDocument: Document ready for rendering.
        """
        entries = list(codelabs)
        if self.sort_codelabs:
            entries.sort(key=lambda codelab: (codelab.source, codelab.url))
        return ApiDocument(
            codelabs=entries,
            categories=dict(sorted(taxonomy.categories.items())),
            events=dict(sorted(taxonomy.events.items())) if taxonomy.events is not None else None,
        )

    def render(self, document: ApiDocument) -> str:
        """Serialize a document to indented JSON.

        Raises:
            ApiSerializationError: If the document cannot be serialized.
        """
        try:
            payload = document.model_dump(mode="json", exclude_none=True)
            return json.dumps(payload, indent=self.indent, ensure_ascii=False) + "\n"
        except (TypeError, ValueError) as exc:
            raise ApiSerializationError(f"Couldn't serialize API document: {exc}") from exc

    def write(self, document: ApiDocument, path: Path) -> Path:
        """Atomically replace path with the rendered document.

        The content is written to a temporary file beside ``path`` and renamed
        over it, so readers only ever observe the previous or the new document.

        Args:
            document: Document to publish.
            path: Destination file.

        Returns:
            Path: The destination path.

        Raises:
            ApiSerializationError: If the document cannot be serialized.
            ApiWriteError: If the file cannot be written.
        """
        content = self.render(document)
        path = path.expanduser()
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                LOGGER.debug("Couldn't clean up %s", tmp_path)
            raise ApiWriteError(f"Couldn't write API document {path}: {exc}") from exc

        LOGGER.info("Wrote %d codelab(s) to %s", len(document.codelabs), path)
        return path


def generate_codelabs_api(
    codelabs: Iterable[Codelab],
    taxonomy: Taxonomy,
    api_dir: Path,
    *,
    filename: str = API_FILENAME,
    builder: ApiBuilder | None = None,
) -> Path:
    """Build the API document and write it to ``api_dir / filename``."""
    builder = builder or ApiBuilder()
    document = builder.build(codelabs, taxonomy)
    return builder.write(document, api_dir / filename)


__all__ = ["API_FILENAME", "ApiBuilder", "generate_codelabs_api"]
