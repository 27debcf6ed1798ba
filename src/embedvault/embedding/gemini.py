"""Google Gemini embedding service implementation."""

import logging

import httpx
from google import genai
from google.genai import errors as genai_errors

from embedvault.constants import get_embedding_model
from embedvault.embedding.base import is_transient_status
from embedvault.errors import EmbeddingProviderError

logger = logging.getLogger(__name__)


class GeminiService:
    """Google Gemini embedding service implementation.

    The API key is automatically retrieved from the GEMINI_API_KEY environment variable.
    """

    provider = "gemini"

    def __init__(self) -> None:
        logger.info("🤖 Initializing GeminiService")
        # The client gets the API key from the GEMINI_API_KEY environment variable
        self.client = genai.Client()

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """Generate embeddings for a list of texts using Gemini.

        Args:
            texts: List of text strings to embed
            model: Optional embedding model name. If None, uses EMBEDDING_MODEL env var
                   or service-specific default.

        Returns:
            list[list[float]]: List of embedding vectors

        Raises:
            EmbeddingProviderError: If the Gemini call fails
        """
        embedding_model = model or get_embedding_model(self.provider)
        embeddings = []

        for text in texts:
            try:
                response = self.client.models.embed_content(model=embedding_model, contents=[text])
            except genai_errors.APIError as e:
                raise EmbeddingProviderError(
                    e.message or str(e),
                    provider=self.provider,
                    retryable=is_transient_status(e.code),
                    status_code=e.code,
                ) from e
            except httpx.TransportError as e:
                raise EmbeddingProviderError(
                    f"{type(e).__name__}: {e}", provider=self.provider, retryable=True
                ) from e
            embeddings.append(list(response.embeddings[0].values or []))

        logger.debug(f"Generated {len(embeddings)} embeddings with {embedding_model}")
        return embeddings
