"""Pipeline configuration built once and passed to every component."""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from dotenv import load_dotenv

from embedvault.constants import (
    DEFAULT_AZURE_API_VERSION,
    DEFAULT_CONCURRENCY,
    DEFAULT_EMBEDDING_SERVICE,
    DEFAULT_EMBEDDINGS_DIR,
    DEFAULT_MAX_TOKENS,
    DEFAULT_OLLAMA_HOST,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_INITIAL_SECONDS,
    DEFAULT_RETRY_JITTER_SECONDS,
    DEFAULT_RETRY_MAX_SECONDS,
    DEFAULT_TEXT_FIELD,
    DEFAULT_TOKENIZER_MODEL,
    DEFAULT_TOP_K,
    QUEUE_DEPTH_PER_WORKER,
    get_embedding_model,
)

# Load environment variables
load_dotenv()


def expand_storage_dir(path: str | Path) -> Path:
    """Expand ``~`` and return an absolute storage directory path."""
    return Path(path).expanduser().absolute()


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff settings for transient embedding failures.

    Attributes:
        max_attempts: Total attempts per request, including the first one
        initial_backoff: Seconds to wait before the first retry
        max_backoff: Upper bound on a single wait, in seconds
        jitter: Maximum random seconds added to each wait
    """

    max_attempts: int = DEFAULT_RETRY_ATTEMPTS
    initial_backoff: float = DEFAULT_RETRY_INITIAL_SECONDS
    max_backoff: float = DEFAULT_RETRY_MAX_SECONDS
    jitter: float = DEFAULT_RETRY_JITTER_SECONDS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_backoff < 0 or self.max_backoff < 0 or self.jitter < 0:
            raise ValueError("backoff settings must be non-negative")

    @classmethod
    def from_env(cls) -> "RetryPolicy":
        """Build a retry policy from EMBED_RETRY_* environment variables."""
        return cls(
            max_attempts=int(os.getenv("EMBED_RETRY_ATTEMPTS", str(DEFAULT_RETRY_ATTEMPTS))),
            initial_backoff=float(
                os.getenv("EMBED_RETRY_INITIAL", str(DEFAULT_RETRY_INITIAL_SECONDS))
            ),
            max_backoff=float(os.getenv("EMBED_RETRY_MAX", str(DEFAULT_RETRY_MAX_SECONDS))),
            jitter=float(os.getenv("EMBED_RETRY_JITTER", str(DEFAULT_RETRY_JITTER_SECONDS))),
        )


@dataclass(frozen=True)
class PipelineConfig:
    """Per-run settings shared by the ingestion and retrieval pipelines.

    Attributes:
        text_field: Record field holding the text to embed
        max_tokens: Token budget; longer texts are split into chunks
        storage_dir: Root directory of the content-addressed blob store
        namespace: Vector index namespace (None = default namespace)
        top_k: Number of nearest neighbours returned per query
        concurrency: Number of parallel embedding calls
        queue_size: Pending embedding requests before producers block
            (0 = concurrency * QUEUE_DEPTH_PER_WORKER)
        embedding_service: "ollama", "gemini" or "openai"
        embedding_model: Embedding model name (None = service default)
        tokenizer_model: Model name used to pick the tiktoken encoding
        metadata_fields: Record fields copied into index metadata
        dry_run: Chunk and count tokens without calling any remote service
        retry: Backoff policy for transient provider errors
        ollama_host: Ollama server URL
        azure_endpoint: Azure OpenAI endpoint (switches openai to Azure)
        azure_api_version: Azure OpenAI API version
    """

    text_field: str = DEFAULT_TEXT_FIELD
    max_tokens: int = DEFAULT_MAX_TOKENS
    storage_dir: Path = field(default_factory=lambda: expand_storage_dir(DEFAULT_EMBEDDINGS_DIR))
    namespace: str | None = None
    top_k: int = DEFAULT_TOP_K
    concurrency: int = DEFAULT_CONCURRENCY
    queue_size: int = 0
    embedding_service: str = DEFAULT_EMBEDDING_SERVICE
    embedding_model: str | None = None
    tokenizer_model: str = DEFAULT_TOKENIZER_MODEL
    metadata_fields: tuple[str, ...] = ()
    dry_run: bool = False
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ollama_host: str = DEFAULT_OLLAMA_HOST
    azure_endpoint: str | None = None
    azure_api_version: str = DEFAULT_AZURE_API_VERSION

    def __post_init__(self) -> None:
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        if self.top_k <= 0:
            raise ValueError("top_k must be positive")
        if self.concurrency <= 0:
            raise ValueError("concurrency must be positive")
        if self.queue_size < 0:
            raise ValueError("queue_size must not be negative")
        if not self.text_field:
            raise ValueError("text_field must not be empty")
        object.__setattr__(self, "storage_dir", expand_storage_dir(self.storage_dir))
        object.__setattr__(self, "metadata_fields", tuple(self.metadata_fields))
        if self.namespace == "":
            object.__setattr__(self, "namespace", None)

    @property
    def effective_queue_size(self) -> int:
        """Bounded queue depth for the embedding dispatcher."""
        return self.queue_size or self.concurrency * QUEUE_DEPTH_PER_WORKER

    @property
    def effective_embedding_model(self) -> str:
        """Configured embedding model, or the default for the service."""
        return self.embedding_model or get_embedding_model(self.embedding_service)

    @classmethod
    def from_env(cls, **overrides) -> "PipelineConfig":
        """Build a configuration from environment variables.

        Args:
            **overrides: Field values that take precedence over the environment
                (typically parsed CLI options). None values are ignored.

        Returns:
            PipelineConfig: The resolved configuration.
        """
        config = cls(
            text_field=os.getenv("TEXT_FIELD", DEFAULT_TEXT_FIELD),
            max_tokens=int(os.getenv("MAX_TOKENS", str(DEFAULT_MAX_TOKENS))),
            storage_dir=expand_storage_dir(os.getenv("EMBEDDINGS_DIR", DEFAULT_EMBEDDINGS_DIR)),
            namespace=os.getenv("INDEX_NAMESPACE") or None,
            top_k=int(os.getenv("TOP_K", str(DEFAULT_TOP_K))),
            concurrency=int(os.getenv("EMBED_CONCURRENCY", str(DEFAULT_CONCURRENCY))),
            embedding_service=os.getenv("EMBEDDING_SERVICE", DEFAULT_EMBEDDING_SERVICE),
            embedding_model=os.getenv("EMBEDDING_MODEL") or None,
            retry=RetryPolicy.from_env(),
            ollama_host=os.getenv("OLLAMA_HOST", DEFAULT_OLLAMA_HOST),
            azure_endpoint=os.getenv("AZURE_OPENAI_ENDPOINT") or None,
            azure_api_version=os.getenv("AZURE_OPENAI_API_VERSION", DEFAULT_AZURE_API_VERSION),
        )
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")
        return replace(config, **{k: v for k, v in overrides.items() if v is not None})
