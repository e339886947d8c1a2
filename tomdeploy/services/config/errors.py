class ConfigurationError(ValueError):
    """Raised when deployment configuration is missing or invalid."""
