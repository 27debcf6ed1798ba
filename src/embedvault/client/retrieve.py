"""Retrieval pipeline: embed queries, look up neighbours, re-hydrate stored records."""

import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from embedvault.config import PipelineConfig
from embedvault.embedding.dispatcher import EmbeddingDispatcher
from embedvault.errors import EmbeddingError, StorageError
from embedvault.records import Record, extract_text
from embedvault.service.content_store import ContentStore
from embedvault.service.index import VectorIndex

logger = logging.getLogger(__name__)


@dataclass
class RetrievalEnvelope:
    """A query record paired with the stored records it matched, best first."""

    input: Record
    response: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"Input": self.input, "Response": self.response}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))


class RetrievalWorker:
    """Answer query records with the top-K stored records from the index."""

    def __init__(
        self,
        config: PipelineConfig,
        dispatcher: EmbeddingDispatcher,
        store: ContentStore,
        index: VectorIndex,
    ) -> None:
        self.config = config
        self.dispatcher = dispatcher
        self.store = store
        self.index = index

    def retrieve(self, record: Record) -> RetrievalEnvelope:
        """Run one query record through embedding, index lookup and blob loading.

        Queries are embedded whole; a query longer than the token budget is
        sent as-is.

        Args:
            record: Query record holding the designated text field

        Returns:
            RetrievalEnvelope: The query and its stored matches in ranking order.
                The response is empty if the query could not be embedded.

        Raises:
            MalformedInputError: If the text field is missing or not a string
            VectorIndexError: If the index query fails
        """
        text = extract_text(record, self.config.text_field)
        envelope = RetrievalEnvelope(input=record)

        try:
            vector = self.dispatcher.embed(text)
        except EmbeddingError as e:
            logger.error(f"❌ error computing query embedding: {e}")
            return envelope

        matches = self.index.query(vector, self.config.top_k, namespace=self.config.namespace)
        for match in matches:
            try:
                envelope.response.append(self.store.load(match.entry_id))
            except StorageError as e:
                logger.error(f"❌ Dropping result {match.entry_id}: {e}")

        logger.debug(f"Query matched {len(matches)} entries, {len(envelope.response)} loaded")
        return envelope

    def run(self, records: Iterable[Record]) -> Iterator[RetrievalEnvelope]:
        """Yield one envelope per query record, in input order."""
        for record in records:
            yield self.retrieve(record)
