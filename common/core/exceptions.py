class AppException(Exception):
    """Base application exception."""

    pass


class ConfigurationError(AppException):
    """Invalid or missing configuration."""

    pass


class ProviderError(AppException):
    """External provider call failed."""

    pass
