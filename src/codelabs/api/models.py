"""Models for taxonomy data and the published API document."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from codelabs.catalog.models import Codelab


class Theme(BaseModel):
    """Display colors associated with a category."""

    maincolor: str
    secondarycolor: str
    lightcolor: str


class Event(BaseModel):
    """Descriptor for an event codelabs can be grouped under."""

    name: str
    logo: str = ""
    description: str = ""


class Taxonomy(BaseModel):
    """Category themes and optional event descriptors.

    Attributes:
        categories: Mapping of category names to themes.
        events: Mapping of event identifiers to descriptors, when supplied.
    """

    model_config = ConfigDict(extra="ignore")

    categories: Dict[str, Theme] = Field(default_factory=dict)
    events: Optional[Dict[str, Event]] = None


class ApiDocument(BaseModel):
    """The consolidated document published for the codelabs index page."""

    codelabs: List[Codelab] = Field(default_factory=list)
    categories: Dict[str, Theme] = Field(default_factory=dict)
    events: Optional[Dict[str, Event]] = None


__all__ = ["Theme", "Event", "Taxonomy", "ApiDocument"]
