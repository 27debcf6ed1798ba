"""Exception hierarchy shared by the ingestion and retrieval pipelines.

Errors fall into two groups:
- Fatal: the input stream or the vector index cannot be trusted, and the run stops
  (MalformedInputError, VectorIndexError).
- Per-item: one chunk or one result is skipped and the run continues
  (EmbeddingError, StorageError and their subclasses).
"""


class EmbedVaultError(Exception):
    """Base class for all embedvault errors."""


class MalformedInputError(EmbedVaultError, ValueError):
    """The input stream is structurally wrong (bad JSON, missing text field)."""


class EmbeddingError(EmbedVaultError):
    """An embedding could not be produced for one text."""


class EmptyTextError(EmbeddingError, ValueError):
    """Empty or whitespace-only text was submitted for embedding."""


class EmbeddingProviderError(EmbeddingError):
    """Raised by embedding services when the remote provider call fails.

    Attributes:
        provider: Name of the embedding service ("ollama", "gemini", "openai")
        retryable: True for transient failures (rate limits, timeouts, 5xx)
        status_code: HTTP status reported by the provider, if any
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        retryable: bool = False,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.retryable = retryable
        self.status_code = status_code

    def __str__(self) -> str:
        status = f" (status {self.status_code})" if self.status_code is not None else ""
        return f"{self.provider}: {self.args[0]}{status}"


class StorageError(EmbedVaultError):
    """A blob could not be written to or read from the content store."""


class BlobNotFoundError(StorageError):
    """No blob exists for the requested content hash."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"No stored blob for id {entry_id}")
        self.entry_id = entry_id


class VectorIndexError(EmbedVaultError):
    """A call to the vector index failed (upsert, query, delete, stats)."""
