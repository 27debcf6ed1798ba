"""Application-wide constants and defaults for embedvault.

This module provides a single source of truth for configuration defaults,
magic numbers, and other constants used throughout the application.
"""

import os

# =============================================================================
# Record Settings
# =============================================================================
DEFAULT_TEXT_FIELD = "search"  # Record field holding the text to embed
DEFAULT_MAX_TOKENS = 8191  # Token budget before a text is split into chunks
DEFAULT_TOKENIZER_MODEL = "gpt-3.5-turbo"
FALLBACK_TOKENIZER_ENCODING = "cl100k_base"

# =============================================================================
# Pipeline Settings
# =============================================================================
DEFAULT_TOP_K = 10  # Default number of results for vector search
DEFAULT_CONCURRENCY = 10  # Parallel embedding calls
QUEUE_DEPTH_PER_WORKER = 100  # Pending embedding requests per worker
INFLIGHT_RECORDS_PER_WORKER = 2  # Records admitted per ingestion worker

# =============================================================================
# Retry Settings
# =============================================================================
DEFAULT_RETRY_ATTEMPTS = 6
DEFAULT_RETRY_INITIAL_SECONDS = 0.5
DEFAULT_RETRY_MAX_SECONDS = 60.0
DEFAULT_RETRY_JITTER_SECONDS = 1.0
TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

# =============================================================================
# Storage Settings
# =============================================================================
DEFAULT_EMBEDDINGS_DIR = "~/.embedvault/embeddings/"
CONTENT_HASH_LENGTH = 64  # Hex characters in a SHA-256 digest

# =============================================================================
# Default URLs and Hosts
# =============================================================================
DEFAULT_OLLAMA_HOST = "http://localhost:11434"
DEFAULT_RAVENDB_URL = "http://localhost:8080"
DEFAULT_RAVENDB_DATABASE = "embedvault"
DEFAULT_COLLECTION = "Embeddings"  # Collection used when no namespace is given
DEFAULT_AZURE_API_VERSION = "2024-02-01"

# =============================================================================
# Embedding Model Defaults
# =============================================================================
DEFAULT_EMBEDDING_SERVICE = "ollama"
EMBEDDING_DEFAULTS = {
    "ollama": "nomic-embed-text",
    "gemini": "text-embedding-004",
    "openai": "text-embedding-ada-002",
}


def get_embedding_model(service: str | None = None) -> str:
    """Get the default embedding model for a given embedding service.

    Checks the EMBEDDING_MODEL environment variable first, then falls back
    to service-specific defaults.

    Args:
        service: The embedding service name ("ollama", "gemini" or "openai").
                If None, uses EMBEDDING_SERVICE env var or defaults to "ollama".

    Returns:
        str: The embedding model name to use.
    """
    # Environment variable takes precedence
    env_model = os.getenv("EMBEDDING_MODEL")
    if env_model:
        return env_model

    # Determine service if not provided
    if service is None:
        service = os.getenv("EMBEDDING_SERVICE", DEFAULT_EMBEDDING_SERVICE)

    # Return service-specific default
    return EMBEDDING_DEFAULTS.get(service, EMBEDDING_DEFAULTS[DEFAULT_EMBEDDING_SERVICE])
