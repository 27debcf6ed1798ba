"""Ollama embedding service implementation."""

import logging

import httpx
import ollama

from embedvault.constants import get_embedding_model
from embedvault.embedding.base import is_transient_status
from embedvault.errors import EmbeddingProviderError

logger = logging.getLogger(__name__)


class OllamaService:
    """Ollama embedding service implementation.

    This service uses the Ollama API to generate embeddings from local models.
    """

    provider = "ollama"

    def __init__(self, host: str) -> None:
        """Initialize the Ollama service.

        Args:
            host: The Ollama server host URL (e.g., "http://localhost:11434")
        """
        self.host = host
        logger.info(f"🤖 Initializing OllamaService: host={host}")
        # Configure the Ollama client with the specified host
        self.client = ollama.Client(host=host)

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """Generate embeddings for a list of texts using Ollama.

        Args:
            texts: List of text strings to embed
            model: Optional embedding model name. If None, uses EMBEDDING_MODEL env var
                   or service-specific default.

        Returns:
            list[list[float]]: List of embedding vectors

        Raises:
            EmbeddingProviderError: If the Ollama call fails
        """
        embedding_model = model or get_embedding_model(self.provider)
        embeddings = []

        for text in texts:
            try:
                response = self.client.embed(model=embedding_model, input=text)
            except ollama.ResponseError as e:
                raise EmbeddingProviderError(
                    e.error,
                    provider=self.provider,
                    retryable=is_transient_status(e.status_code),
                    status_code=e.status_code,
                ) from e
            except (ConnectionError, TimeoutError, httpx.TransportError) as e:
                raise EmbeddingProviderError(
                    f"{type(e).__name__}: {e}", provider=self.provider, retryable=True
                ) from e
            embeddings.append(list(response["embeddings"][0]))

        logger.debug(f"Generated {len(embeddings)} embeddings with {embedding_model}")
        return embeddings
