"""Vector index operations backed by RavenDB - upsert, query, delete, stats."""

import logging
import re
from typing import Any, Protocol

import requests
from ravendb import DocumentStore

from embedvault.constants import DEFAULT_COLLECTION
from embedvault.errors import VectorIndexError
from embedvault.service.index.config import RavenDBConfig
from embedvault.service.index.models import IndexEntry, QueryMatch
from embedvault.service.index.utils import cosine_similarity

logger = logging.getLogger(__name__)

_NAMESPACE_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class VectorIndex(Protocol):
    """Key-vector store used by the ingestion and retrieval pipelines."""

    def upsert(
        self,
        entry_id: str,
        vector: list[float],
        metadata: dict[str, Any] | None = None,
        namespace: str | None = None,
    ) -> None:
        """Insert or replace the vector stored under entry_id."""
        ...

    def query(
        self, vector: list[float], top_k: int, namespace: str | None = None
    ) -> list[QueryMatch]:
        """Return up to top_k nearest entries, best match first."""
        ...

    def delete_all(self, namespace: str | None = None) -> int:
        """Delete every entry in a namespace and return how many were removed."""
        ...

    def describe_stats(self) -> dict[str, int]:
        """Return the number of entries per namespace."""
        ...


def create_document_store(url: str | None = None, database: str | None = None) -> DocumentStore:
    """Create and initialize a DocumentStore instance.

    Args:
        url: RavenDB server URL (defaults to RAVENDB_URL)
        database: Database name (defaults to RAVENDB_DATABASE)

    Returns:
        DocumentStore: Initialized DocumentStore instance
    """
    settings = RavenDBConfig.from_env()
    store = DocumentStore([url or settings.url], database or settings.database)
    store.initialize()
    return store


def collection_for(namespace: str | None) -> str:
    """Map an index namespace to its RavenDB collection name.

    Raises:
        ValueError: If the namespace contains characters unsafe in a query
    """
    if not namespace:
        return DEFAULT_COLLECTION
    if not _NAMESPACE_PATTERN.match(namespace):
        raise ValueError(f"Invalid namespace: {namespace!r}")
    return namespace


class RavenDBIndex:
    """VectorIndex implementation storing one RavenDB document per entry.

    Each namespace is a RavenDB collection. The DocumentStore is shared and
    thread-safe; every call opens its own session.
    """

    def __init__(self, url: str | None = None, database: str | None = None) -> None:
        """Connect to RavenDB.

        Args:
            url: RavenDB server URL (defaults to RAVENDB_URL)
            database: Database name (defaults to RAVENDB_DATABASE)

        Raises:
            VectorIndexError: If the document store cannot be initialized
        """
        settings = RavenDBConfig.from_env()
        self.url = url or settings.url
        self.database = database or settings.database
        try:
            self.store = create_document_store(self.url, self.database)
        except Exception as e:
            raise VectorIndexError(f"Could not connect to RavenDB at {self.url}: {e}") from e

    def __enter__(self) -> "RavenDBIndex":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.store.close()

    def upsert(
        self,
        entry_id: str,
        vector: list[float],
        metadata: dict[str, Any] | None = None,
        namespace: str | None = None,
    ) -> None:
        """Store a vector under "<collection>/<entry_id>", replacing any previous one.

        Raises:
            VectorIndexError: If RavenDB rejects the write
        """
        collection = collection_for(namespace)
        doc_id = f"{collection}/{entry_id}"
        doc = IndexEntry(
            Id=doc_id,
            entry_id=entry_id,
            embedding=list(vector),
            metadata=dict(metadata or {}),
            namespace=namespace or None,
        )
        try:
            with self.store.open_session() as session:
                session.store(doc, doc_id)
                # Set the collection in document metadata
                session.advanced.get_metadata_for(doc)["@collection"] = collection
                session.save_changes()
        except Exception as e:
            raise VectorIndexError(f"error upserting vector {entry_id}: {e}") from e
        logger.debug(f"Upserted {entry_id} into {collection}")

    def query(
        self, vector: list[float], top_k: int, namespace: str | None = None
    ) -> list[QueryMatch]:
        """Search for the nearest entries using RavenDB vector search.

        Args:
            vector: Query embedding
            top_k: Number of results to return
            namespace: Namespace to search (None = default)

        Returns:
            list[QueryMatch]: Matches in the index's ranking order

        Raises:
            VectorIndexError: If the query fails
        """
        collection = collection_for(namespace)
        try:
            with self.store.open_session() as session:
                results = list(
                    session.query_collection(collection, object_type=dict)
                    .vector_search("embedding", vector)
                    .order_by_score()
                    .take(top_k)
                )
        except Exception as e:
            raise VectorIndexError(f"error querying vectors from RavenDB: {e}") from e

        matches = []
        for result in results[:top_k]:
            metadata = result.get("@metadata", {})
            index_score = metadata.get("@index-score")
            if index_score is not None:
                score = float(index_score)
            else:
                score = cosine_similarity(vector, result.get("embedding", []))
            entry_id = result.get("entry_id") or metadata.get("@id", "").rsplit("/", 1)[-1]
            matches.append(
                QueryMatch(entry_id=entry_id, score=score, metadata=result.get("metadata") or {})
            )
        return matches

    def delete_all(self, namespace: str | None = None) -> int:
        """Delete all entries in a namespace.

        Stored blobs are not touched; only the index entries are removed.

        Returns:
            int: Number of entries deleted

        Raises:
            VectorIndexError: If the deletion fails
        """
        collection = collection_for(namespace)
        try:
            with self.store.open_session() as session:
                docs = list(
                    session.advanced.raw_query(f"from '{collection}'", object_type=dict)
                )
                for doc in docs:
                    session.delete(doc["@metadata"]["@id"])
                session.save_changes()
        except Exception as e:
            raise VectorIndexError(f"error deleting vectors from RavenDB: {e}") from e
        logger.info(f"🗑️  Deleted {len(docs)} entries from {collection}")
        return len(docs)

    def describe_stats(self) -> dict[str, int]:
        """Get entry counts per collection from RavenDB's collection statistics.

        Returns:
            dict[str, int]: Collection name to document count. The default
                namespace is reported as DEFAULT_COLLECTION.

        Raises:
            VectorIndexError: If the statistics endpoint is unreachable
        """
        try:
            response = requests.get(
                f"{self.url}/databases/{self.database}/collections/stats", timeout=10
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise VectorIndexError(f"error describing index stats: {e}") from e

        collections = data.get("Collections", {})
        return {
            name: int(count) for name, count in sorted(collections.items())
            if not name.startswith("@")
        }
