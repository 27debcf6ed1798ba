"""OpenAI and Azure OpenAI embedding service implementation."""

import logging
import os

import openai

from embedvault.constants import DEFAULT_AZURE_API_VERSION, get_embedding_model
from embedvault.embedding.base import is_transient_status
from embedvault.errors import EmbeddingProviderError

logger = logging.getLogger(__name__)


class OpenAIService:
    """OpenAI embedding service implementation.

    Uses the OPENAI_API_KEY environment variable, or AZURE_OPENAI_API_KEY when
    an Azure endpoint is given. With Azure the model name is the deployment name.
    """

    provider = "openai"

    def __init__(
        self,
        azure_endpoint: str | None = None,
        api_version: str = DEFAULT_AZURE_API_VERSION,
    ) -> None:
        """Initialize the OpenAI service.

        Args:
            azure_endpoint: Azure OpenAI endpoint URL. If None, api.openai.com is used.
            api_version: Azure OpenAI API version

        Raises:
            RuntimeError: If the required API key environment variable is not set
        """
        self.azure_endpoint = azure_endpoint
        if azure_endpoint:
            api_key = os.getenv("AZURE_OPENAI_API_KEY")
            if not api_key:
                raise RuntimeError("AZURE_OPENAI_API_KEY environment variable not set")
            logger.info(f"🤖 Initializing OpenAIService: azure_endpoint={azure_endpoint}")
            # Retries are owned by the dispatcher's backoff policy
            self.client = openai.AzureOpenAI(
                api_key=api_key,
                azure_endpoint=azure_endpoint,
                api_version=api_version,
                max_retries=0,
            )
        else:
            api_key = os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise RuntimeError("OPENAI_API_KEY environment variable not set")
            logger.info("🤖 Initializing OpenAIService")
            self.client = openai.OpenAI(api_key=api_key, max_retries=0)

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """Generate embeddings for a list of texts using OpenAI.

        Args:
            texts: List of text strings to embed (sent as one batch)
            model: Optional embedding model name. If None, uses EMBEDDING_MODEL env var
                   or service-specific default.

        Returns:
            list[list[float]]: List of embedding vectors, in input order

        Raises:
            EmbeddingProviderError: If the OpenAI call fails
        """
        embedding_model = model or get_embedding_model(self.provider)
        try:
            response = self.client.embeddings.create(model=embedding_model, input=texts)
        except (openai.APITimeoutError, openai.APIConnectionError) as e:
            raise EmbeddingProviderError(str(e), provider=self.provider, retryable=True) from e
        except openai.APIStatusError as e:
            raise EmbeddingProviderError(
                e.message,
                provider=self.provider,
                retryable=is_transient_status(e.status_code),
                status_code=e.status_code,
            ) from e

        data = sorted(response.data, key=lambda item: item.index)
        logger.debug(f"Generated {len(data)} embeddings with {embedding_model}")
        return [list(item.embedding) for item in data]
