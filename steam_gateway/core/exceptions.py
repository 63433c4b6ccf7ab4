from typing import Optional


class AppException(Exception):
    """Base application exception."""

    pass


class ConfigurationError(AppException):
    """Invalid or incomplete configuration."""

    pass


class StorageError(AppException):
    """Shared store operation error exception."""

    pass


class RequestError(AppException):
    """Base class for failed Steam API requests."""

    def __init__(
        self, message: str, url: str, status_code: Optional[int] = None
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class TransportError(RequestError):
    """Network failure, timeout or non-2xx response."""

    pass


class RateLimitedError(TransportError):
    """The provider rejected the request with its throttling status."""

    pass
