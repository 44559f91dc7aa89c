"""API document generation for the codelabs index."""

from .builder import API_FILENAME, ApiBuilder, generate_codelabs_api
from .errors import ApiError, ApiSerializationError, ApiWriteError, TaxonomyError
from .models import ApiDocument, Event, Taxonomy, Theme
from .taxonomy import CATEGORIES_FILENAME, load_taxonomy

__all__ = [
    "API_FILENAME",
    "CATEGORIES_FILENAME",
    "ApiBuilder",
    "ApiDocument",
    "Event",
    "Taxonomy",
    "Theme",
    "generate_codelabs_api",
    "load_taxonomy",
    "ApiError",
    "ApiSerializationError",
    "ApiWriteError",
    "TaxonomyError",
]
