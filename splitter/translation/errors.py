"""Provider-level failures raised by translation backends."""


class ProviderError(Exception):
    """A provider could not fulfil a request."""


class TransientProviderError(ProviderError):
    """Network error, timeout, HTTP 5xx or 429. Worth retrying."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderRateLimitedError(ProviderError):
    """The local per-provider rate limit rejected the call."""


class ProviderUnavailableError(ProviderError):
    """The provider is not configured."""
