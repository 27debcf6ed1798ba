"""Tests for pipeline configuration and defaults."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from embedvault.config import PipelineConfig, RetryPolicy, expand_storage_dir
from embedvault.constants import get_embedding_model


class TestPipelineConfig:
    """Tests for PipelineConfig class."""

    def test_defaults(self, tmp_path):
        """Test the documented defaults."""
        config = PipelineConfig(storage_dir=tmp_path)

        assert config.text_field == "search"
        assert config.max_tokens == 8191
        assert config.top_k == 10
        assert config.concurrency == 10
        assert config.namespace is None
        assert config.effective_queue_size == 1000

    def test_default_storage_dir_is_expanded(self):
        """Test the default blob directory lives under the home directory."""
        config = PipelineConfig()

        assert config.storage_dir == Path.home() / ".embedvault" / "embeddings"

    def test_storage_dir_expands_user(self):
        """Test ~ in a storage path is expanded."""
        assert expand_storage_dir("~/blobs") == Path.home() / "blobs"

    @pytest.mark.parametrize(
        "field,value",
        [("max_tokens", 0), ("top_k", 0), ("concurrency", -1), ("queue_size", -1), ("text_field", "")],
    )
    def test_invalid_values_raise(self, tmp_path, field, value):
        """Test out-of-range settings are rejected."""
        with pytest.raises(ValueError):
            PipelineConfig(storage_dir=tmp_path, **{field: value})

    def test_empty_namespace_is_default(self, tmp_path):
        """Test an empty namespace means the default namespace."""
        assert PipelineConfig(storage_dir=tmp_path, namespace="").namespace is None

    def test_explicit_queue_size(self, tmp_path):
        """Test an explicit queue size overrides the per-worker depth."""
        assert PipelineConfig(storage_dir=tmp_path, queue_size=7).effective_queue_size == 7

    @patch.dict(os.environ, {}, clear=True)
    def test_effective_embedding_model_per_service(self, tmp_path):
        """Test each service falls back to its own default model."""
        assert PipelineConfig(storage_dir=tmp_path).effective_embedding_model == "nomic-embed-text"
        gemini = PipelineConfig(storage_dir=tmp_path, embedding_service="gemini")
        assert gemini.effective_embedding_model == "text-embedding-004"
        custom = PipelineConfig(storage_dir=tmp_path, embedding_model="custom")
        assert custom.effective_embedding_model == "custom"


class TestFromEnv:
    """Tests for PipelineConfig.from_env."""

    @patch.dict(
        os.environ,
        {
            "TEXT_FIELD": "body",
            "MAX_TOKENS": "512",
            "INDEX_NAMESPACE": "papers",
            "TOP_K": "3",
            "EMBED_CONCURRENCY": "4",
            "EMBEDDING_SERVICE": "gemini",
            "EMBED_RETRY_ATTEMPTS": "2",
        },
        clear=True,
    )
    def test_reads_environment(self, tmp_path):
        """Test settings are read from environment variables."""
        config = PipelineConfig.from_env(storage_dir=tmp_path)

        assert config.text_field == "body"
        assert config.max_tokens == 512
        assert config.namespace == "papers"
        assert config.top_k == 3
        assert config.concurrency == 4
        assert config.embedding_service == "gemini"
        assert config.retry.max_attempts == 2

    @patch.dict(os.environ, {"TOP_K": "3", "INDEX_NAMESPACE": "papers"}, clear=True)
    def test_overrides_take_precedence(self, tmp_path):
        """Test explicit values win and None values are ignored."""
        config = PipelineConfig.from_env(storage_dir=tmp_path, top_k=7, namespace=None)

        assert config.top_k == 7
        assert config.namespace == "papers"

    @patch.dict(os.environ, {"EMBEDDINGS_DIR": "/tmp/embedvault-blobs"}, clear=True)
    def test_storage_dir_from_environment(self):
        """Test EMBEDDINGS_DIR sets the blob directory."""
        assert PipelineConfig.from_env().storage_dir == Path("/tmp/embedvault-blobs")

    @patch.dict(os.environ, {}, clear=True)
    def test_unknown_override_raises(self):
        """Test misspelled overrides are reported."""
        with pytest.raises(TypeError, match="topk"):
            PipelineConfig.from_env(topk=3)

    @patch.dict(os.environ, {"MAX_TOKENS": "0"}, clear=True)
    def test_invalid_environment_raises(self):
        """Test invalid environment values are rejected."""
        with pytest.raises(ValueError):
            PipelineConfig.from_env()


class TestRetryPolicyFromEnv:
    """Tests for RetryPolicy.from_env."""

    @patch.dict(
        os.environ,
        {
            "EMBED_RETRY_ATTEMPTS": "4",
            "EMBED_RETRY_INITIAL": "0.1",
            "EMBED_RETRY_MAX": "2",
            "EMBED_RETRY_JITTER": "0.25",
        },
        clear=True,
    )
    def test_reads_environment(self):
        """Test every backoff setting comes from the environment."""
        policy = RetryPolicy.from_env()

        assert policy == RetryPolicy(
            max_attempts=4, initial_backoff=0.1, max_backoff=2.0, jitter=0.25
        )

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults_without_environment(self):
        """Test an empty environment gives the default policy."""
        assert RetryPolicy.from_env() == RetryPolicy()


class TestGetEmbeddingModel:
    """Tests for get_embedding_model function."""

    @patch.dict(os.environ, {}, clear=True)
    def test_service_defaults(self):
        """Test each service has a default model."""
        assert get_embedding_model("ollama") == "nomic-embed-text"
        assert get_embedding_model("openai") == "text-embedding-ada-002"

    @patch.dict(os.environ, {"EMBEDDING_MODEL": "custom-model"}, clear=True)
    def test_environment_wins(self):
        """Test EMBEDDING_MODEL overrides the service default."""
        assert get_embedding_model("gemini") == "custom-model"

    @patch.dict(os.environ, {"EMBEDDING_SERVICE": "gemini"}, clear=True)
    def test_service_from_environment(self):
        """Test the service falls back to EMBEDDING_SERVICE."""
        assert get_embedding_model() == "text-embedding-004"
