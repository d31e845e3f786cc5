"""Flight provider errors — one class per way a caller has to react."""


class FlightProviderError(Exception):
    """Base class for failures talking to the flight-inventory provider."""

    status_code: int | None = None

    def __init__(self, message: str, *, status_code: int | None = None, detail: str | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail or message


class AuthenticationError(FlightProviderError):
    """Credential exchange failed or the provider rejected the bearer token."""


class InvalidRequestError(FlightProviderError):
    """The provider rejected the request as malformed. Do not retry unchanged."""


class RateLimitError(FlightProviderError):
    """The provider is throttling us. Retry after a backoff."""

    status_code = 429

    def __init__(self, message: str, *, retry_after: float | None = None, detail: str | None = None):
        super().__init__(message, detail=detail)
        self.retry_after = retry_after


class UpstreamUnavailableError(FlightProviderError):
    """Network failure, timeout or a 5xx from the provider."""
