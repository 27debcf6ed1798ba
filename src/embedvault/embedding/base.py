"""Base protocol and error classification for embedding services."""

from typing import Protocol

from embedvault.constants import TRANSIENT_STATUS_CODES
from embedvault.errors import EmbeddingProviderError


class EmbeddingService(Protocol):
    """Protocol defining the interface for embedding providers.

    Implementations translate their SDK errors into EmbeddingProviderError so
    that the dispatcher can decide which failures to retry.
    """

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """Generate embeddings for a list of texts.

        Args:
            texts: List of text strings to embed
            model: Optional embedding model name. If None, uses a default for the service.

        Returns:
            list[list[float]]: List of embedding vectors, one per text

        Raises:
            EmbeddingProviderError: If the provider call fails
        """
        ...


def is_transient_status(status_code: int | None) -> bool:
    """Return True for HTTP statuses worth retrying (timeouts, rate limits, 5xx)."""
    return status_code is not None and status_code in TRANSIENT_STATUS_CODES


def is_transient_error(exc: BaseException) -> bool:
    """Return True if exc is a provider failure that should be retried."""
    return isinstance(exc, EmbeddingProviderError) and exc.retryable
