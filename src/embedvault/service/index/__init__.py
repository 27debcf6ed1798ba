"""Vector index client backed by RavenDB.

This package provides the key-vector store used by the pipelines:
- Configuration management (RavenDBConfig)
- Document store creation
- Upsert, top-K vector query, delete-all and per-namespace statistics

Usage:
    from embedvault.service.index import RavenDBIndex

    with RavenDBIndex() as index:
        index.upsert(entry_id, vector, namespace="papers")
        matches = index.query(vector, top_k=5, namespace="papers")
"""

# Re-export public API
from embedvault.service.index.config import RavenDBConfig
from embedvault.service.index.models import IndexEntry, QueryMatch
from embedvault.service.index.operations import (
    RavenDBIndex,
    VectorIndex,
    collection_for,
    create_document_store,
)
from embedvault.service.index.utils import cosine_similarity

__all__ = [
    # Config
    "RavenDBConfig",
    # Models
    "IndexEntry",
    "QueryMatch",
    # Operations
    "VectorIndex",
    "RavenDBIndex",
    "collection_for",
    "create_document_store",
    # Utils
    "cosine_similarity",
]
