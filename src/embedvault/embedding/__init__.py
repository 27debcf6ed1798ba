"""Embedding provider abstraction layer for embedvault.

This package provides a unified interface for multiple embedding providers:
- OllamaService: Local models via Ollama
- GeminiService: Google Gemini API
- OpenAIService: OpenAI or Azure OpenAI

All services implement the EmbeddingService protocol. EmbeddingDispatcher
fans requests out over a bounded worker pool with retries.

Usage:
    from embedvault.embedding import EmbeddingDispatcher, get_embedding_service

    service = get_embedding_service(config)
    with EmbeddingDispatcher(service, workers=10, queue_size=1000) as dispatcher:
        vector = dispatcher.embed("query text")
"""

from embedvault.embedding.base import EmbeddingService, is_transient_error
from embedvault.embedding.dispatcher import EmbeddingDispatcher
from embedvault.embedding.factory import get_embedding_service
from embedvault.embedding.gemini import GeminiService
from embedvault.embedding.ollama import OllamaService
from embedvault.embedding.openai import OpenAIService

__all__ = [
    "EmbeddingService",
    "EmbeddingDispatcher",
    "GeminiService",
    "OllamaService",
    "OpenAIService",
    "get_embedding_service",
    "is_transient_error",
]
