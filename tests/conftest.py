"""Pytest configuration and shared fixtures for the test suite."""

import hashlib
import threading
from typing import Any, Generator

import pytest
import requests

from embedvault.config import PipelineConfig, RetryPolicy
from embedvault.embedding import EmbeddingDispatcher
from embedvault.errors import VectorIndexError
from embedvault.service.content_store import ContentStore
from embedvault.service.index import QueryMatch, collection_for, cosine_similarity


# Service availability checks
def ollama_available() -> bool:
    """Check if Ollama server is running and accessible.

    Returns:
        True if Ollama is available, False otherwise
    """
    try:
        response = requests.get("http://localhost:11434/api/tags", timeout=2)
        return response.status_code == 200
    except requests.RequestException:
        return False


def ravendb_available() -> bool:
    """Check if RavenDB server is running and accessible.

    Returns:
        True if RavenDB is available, False otherwise
    """
    try:
        response = requests.get("http://localhost:8080/databases", timeout=2)
        return response.status_code == 200 or response.status_code == 401  # Auth required is OK
    except requests.RequestException:
        return False


class CharCounter:
    """TokenCounter stand-in where every character is one token."""

    def encode(self, text: str) -> list[int]:
        return [ord(c) for c in text]

    def count(self, text: str) -> int:
        return len(text)


class FakeEmbeddingService:
    """Deterministic EmbeddingService that records every call.

    Texts listed in ``errors`` raise the mapped exception instead.
    """

    def __init__(self, dimensions: int = 8) -> None:
        self.dimensions = dimensions
        self.calls: list[list[str]] = []
        self.errors: dict[str, Exception] = {}
        self._lock = threading.Lock()

    def vector_for(self, text: str) -> list[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [b / 255 - 0.5 for b in digest[: self.dimensions]]

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        with self._lock:
            self.calls.append(list(texts))
        for text in texts:
            if text in self.errors:
                raise self.errors[text]
        return [self.vector_for(text) for text in texts]

    @property
    def embedded_texts(self) -> list[str]:
        return [text for call in self.calls for text in call]


class InMemoryIndex:
    """VectorIndex stand-in ranking entries by cosine similarity."""

    def __init__(self) -> None:
        self.entries: dict[str, dict[str, tuple[list[float], dict[str, Any]]]] = {}
        self.upserts: list[str] = []
        self.fail_upserts = False
        self._lock = threading.Lock()

    def upsert(self, entry_id, vector, metadata=None, namespace=None) -> None:
        if self.fail_upserts:
            raise VectorIndexError("error upserting vectors: index unavailable")
        with self._lock:
            collection = self.entries.setdefault(collection_for(namespace), {})
            collection[entry_id] = (list(vector), dict(metadata or {}))
            self.upserts.append(entry_id)

    def query(self, vector, top_k, namespace=None) -> list[QueryMatch]:
        collection = self.entries.get(collection_for(namespace), {})
        scored = [
            QueryMatch(entry_id=entry_id, score=cosine_similarity(vector, stored), metadata=meta)
            for entry_id, (stored, meta) in collection.items()
        ]
        scored.sort(key=lambda match: match.score, reverse=True)
        return scored[:top_k]

    def delete_all(self, namespace=None) -> int:
        return len(self.entries.pop(collection_for(namespace), {}))

    def describe_stats(self) -> dict[str, int]:
        return {name: len(entries) for name, entries in self.entries.items()}


@pytest.fixture
def char_counter() -> CharCounter:
    """Provide a character-based token counter."""
    return CharCounter()


@pytest.fixture
def fake_service() -> FakeEmbeddingService:
    """Provide a deterministic embedding service."""
    return FakeEmbeddingService()


@pytest.fixture
def memory_index() -> InMemoryIndex:
    """Provide an empty in-memory vector index."""
    return InMemoryIndex()


@pytest.fixture
def content_store(tmp_path) -> ContentStore:
    """Provide a content store rooted in a temporary directory."""
    return ContentStore(tmp_path / "embeddings")


@pytest.fixture
def no_wait_retry() -> RetryPolicy:
    """Retry policy that never sleeps between attempts."""
    return RetryPolicy(max_attempts=3, initial_backoff=0, max_backoff=0, jitter=0)


@pytest.fixture
def pipeline_config(tmp_path, no_wait_retry) -> PipelineConfig:
    """Provide a small-budget configuration writing into tmp_path.

    Returns:
        PipelineConfig with a 50-token budget and 4 workers
    """
    return PipelineConfig(
        storage_dir=tmp_path / "embeddings",
        max_tokens=50,
        concurrency=4,
        top_k=3,
        retry=no_wait_retry,
    )


@pytest.fixture
def dispatcher(fake_service, no_wait_retry) -> Generator[EmbeddingDispatcher, None, None]:
    """Provide a dispatcher over the fake embedding service.

    Yields:
        Running EmbeddingDispatcher, closed after the test
    """
    dispatcher = EmbeddingDispatcher(
        fake_service, workers=4, queue_size=16, retry=no_wait_retry, model="fake-model"
    )
    yield dispatcher
    dispatcher.close()


@pytest.fixture
def ollama_service():
    """Provide OllamaService instance, skip if Ollama not available.

    Raises:
        pytest.skip: If Ollama server is not running
    """
    if not ollama_available():
        pytest.skip("Ollama server not running on localhost:11434")

    from embedvault.embedding import OllamaService

    return OllamaService(host="http://localhost:11434")


@pytest.fixture
def ravendb_index():
    """Provide a RavenDBIndex, skip if RavenDB not available.

    Raises:
        pytest.skip: If RavenDB server is not running
    """
    if not ravendb_available():
        pytest.skip("RavenDB server not running on localhost:8080")

    from embedvault.service.index import RavenDBIndex

    index = RavenDBIndex()
    yield index
    index.close()
