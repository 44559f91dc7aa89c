"""Custom exceptions for configuration management."""


class ConfigError(Exception):
    """Raised when configuration data cannot be processed or a path cannot be resolved."""
