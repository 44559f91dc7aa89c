"""Codelab metadata models."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr


class Codelab(BaseModel):
    """Metadata describing one published codelab.

    Attributes:
        source: Identifier of the document the codelab was exported from.
        title: Human-readable title.
        summary: Short description shown on the index page.
        category: Ordered category names; the first one drives theming.
        difficulty: Difficulty rating.
        duration: Estimated completion time in minutes.
        tags: Free-form tags.
        updated: Last-updated timestamp as written by the exporter.
        url: Published URL of the codelab.
    """

    # The exporter writes extra keys (status, feedback, ...) that are not published.
    model_config = ConfigDict(extra="ignore")

    source: StrictStr
    title: StrictStr = ""
    summary: StrictStr = ""
    category: List[StrictStr] = Field(default_factory=list)
    difficulty: StrictInt = 0
    duration: StrictInt = 0
    tags: List[StrictStr] = Field(default_factory=list)
    updated: StrictStr = ""
    url: StrictStr


__all__ = ["Codelab"]
