"""Factory function for creating embedding service instances."""

from embedvault.config import PipelineConfig
from embedvault.embedding.base import EmbeddingService
from embedvault.embedding.gemini import GeminiService
from embedvault.embedding.ollama import OllamaService
from embedvault.embedding.openai import OpenAIService


def get_embedding_service(config: PipelineConfig) -> EmbeddingService:
    """Factory function to create an embedding service instance.

    Args:
        config: Pipeline configuration. Uses 'embedding_service' to pick the
                provider and the provider's connection settings.

    Returns:
        EmbeddingService: An instance implementing the EmbeddingService protocol.
    """
    service_type = config.embedding_service

    if service_type == "ollama":
        return OllamaService(host=config.ollama_host)

    if service_type == "gemini":
        return GeminiService()

    if service_type == "openai":
        return OpenAIService(
            azure_endpoint=config.azure_endpoint,
            api_version=config.azure_api_version,
        )

    raise ValueError(f"Unsupported embedding service: {service_type}")
