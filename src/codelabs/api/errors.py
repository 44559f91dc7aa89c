"""API document errors."""


class ApiError(Exception):
    """Base exception for API document generation."""


class TaxonomyError(ApiError):
    """Raised when the categories/events file cannot be loaded."""


class ApiSerializationError(ApiError):
    """Raised when an API document cannot be rendered to JSON."""


class ApiWriteError(ApiError):
    """Raised when the API document cannot be written to disk."""
