"""Loading of the categories/events taxonomy file."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from .errors import TaxonomyError
from .models import Taxonomy

CATEGORIES_FILENAME = "categories-events.json"


def load_taxonomy(path: Path) -> Taxonomy:
    """Load category themes and event descriptors from a JSON file.

    Args:
        path: Location of the taxonomy file.

    Returns:
        Taxonomy: Parsed taxonomy data.

    Raises:
        TaxonomyError: If the file is missing, unreadable, or invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TaxonomyError(f"Couldn't read categories file {path}: {exc}") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TaxonomyError(f"Invalid categories file {path}: {exc}") from exc

    try:
        return Taxonomy.model_validate(data)
    except ValidationError as exc:
        raise TaxonomyError(f"Invalid categories data in {path}: {exc}") from exc


__all__ = ["CATEGORIES_FILENAME", "load_taxonomy"]
