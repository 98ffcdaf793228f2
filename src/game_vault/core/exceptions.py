"""Custom exceptions for the game-vault library."""

from __future__ import annotations


class VaultError(Exception):
    """Base exception for all game-vault errors."""


class ProviderError(VaultError):
    """Base exception for errors raised while talking to a catalog provider."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderAuthenticationError(ProviderError):
    """Raised when provider authentication fails."""

    def __init__(self, provider: str, details: str | None = None) -> None:
        message = f"Authentication failed for provider '{provider}'"
        if details:
            message += f": {details}"
        super().__init__(message, provider)


class ProviderConnectionError(ProviderError):
    """Raised when connection to a provider fails after all retries."""

    def __init__(self, provider: str, details: str | None = None) -> None:
        message = f"Connection failed for provider '{provider}'"
        if details:
            message += f": {details}"
        super().__init__(message, provider)


class ProviderRateLimitError(ProviderError):
    """Raised when a provider keeps rate limiting after all retries."""

    def __init__(
        self, provider: str, retry_after: float | None = None, details: str | None = None
    ) -> None:
        self.retry_after = retry_after
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after:g}s)"
        if details:
            message += f": {details}"
        super().__init__(message, provider)


class ProviderResponseError(ProviderError):
    """Raised when a provider answers with a non-retryable error status."""

    def __init__(self, provider: str, status_code: int, details: str | None = None) -> None:
        self.status_code = status_code
        message = f"Provider '{provider}' returned HTTP {status_code}"
        if details:
            message += f": {details}"
        super().__init__(message, provider)


class InvalidConfigurationError(VaultError):
    """Raised when configuration is invalid."""

    def __init__(self, details: str) -> None:
        super().__init__(f"Invalid configuration: {details}")
