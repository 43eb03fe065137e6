class CloudClientError(Exception):
    """Base exception for cloud OCR and vision provider calls."""


class ProviderError(CloudClientError):
    """Raised when a provider answers with a non-success HTTP status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500


class NetworkUnavailableError(CloudClientError):
    """Raised when the provider cannot be reached (connection, DNS, timeout)."""


class ParseError(CloudClientError):
    """Raised when a provider response does not match the expected schema."""
