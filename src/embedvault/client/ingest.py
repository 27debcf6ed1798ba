"""Ingestion pipeline: chunk, embed, store and index input records."""

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from embedvault.client.chunking import split_text
from embedvault.config import PipelineConfig
from embedvault.constants import INFLIGHT_RECORDS_PER_WORKER
from embedvault.embedding.dispatcher import EmbeddingDispatcher
from embedvault.errors import EmbeddingError, StorageError
from embedvault.records import Record, extract_text, serialize_record, with_text
from embedvault.service.content_store import ContentStore
from embedvault.service.index import VectorIndex
from embedvault.tokens import TokenCounter

logger = logging.getLogger(__name__)

_SCALAR_TYPES = (str, int, float, bool)


@dataclass
class RecordResult:
    """Outcome of ingesting one record."""

    chunks: int = 0
    failed: int = 0
    tokens: int = 0
    ids: list[str] = field(default_factory=list)


@dataclass
class IngestionSummary:
    """Totals for an ingestion run.

    Attributes:
        records: Records admitted for processing
        chunks: Chunks produced by splitting
        upserted: Chunks embedded, stored and indexed
        failed: Chunks skipped after an embedding or storage failure
        tokens: Total tokens across all chunks (dry runs only)
        ids: Content ids of the indexed chunks
    """

    records: int = 0
    chunks: int = 0
    upserted: int = 0
    failed: int = 0
    tokens: int = 0
    ids: list[str] = field(default_factory=list)

    def add(self, result: RecordResult) -> None:
        self.chunks += result.chunks
        self.upserted += len(result.ids)
        self.failed += result.failed
        self.tokens += result.tokens
        self.ids.extend(result.ids)


class IngestionWorker:
    """Fan records out over a thread pool and index every chunk.

    Embedding and storage failures skip the affected chunk. Index failures
    stop the run: no new records are admitted, in-flight records finish, and
    the error is re-raised from run().
    """

    def __init__(
        self,
        config: PipelineConfig,
        counter: TokenCounter,
        dispatcher: EmbeddingDispatcher | None = None,
        store: ContentStore | None = None,
        index: VectorIndex | None = None,
    ) -> None:
        if not config.dry_run and (dispatcher is None or store is None or index is None):
            raise ValueError("dispatcher, store and index are required unless dry_run is set")
        self.config = config
        self.counter = counter
        self.dispatcher = dispatcher
        self.store = store
        self.index = index
        self._cancelled = threading.Event()
        self._lock = threading.Lock()

    def cancel(self) -> None:
        """Stop admitting records; records already running finish their current chunk."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def chunk(self, text: str) -> list[str]:
        """Split text if it exceeds the configured token budget."""
        if self.counter.count(text) <= self.config.max_tokens:
            return [text]
        chunks = split_text(text, self.config.max_tokens, self.counter)
        logger.debug(f"Split input of {len(text)} characters into {len(chunks)} chunks")
        return chunks

    def build_metadata(self, record: Record, chunk_index: int, chunk_count: int) -> dict[str, Any]:
        """Index metadata for one chunk: its position plus selected scalar record fields."""
        metadata: dict[str, Any] = {"chunk_index": chunk_index, "chunk_count": chunk_count}
        for name in self.config.metadata_fields:
            value = record.get(name)
            if name != self.config.text_field and isinstance(value, _SCALAR_TYPES):
                metadata[name] = value
        return metadata

    def process_record(self, record: Record, text: str) -> RecordResult:
        """Chunk one record and index each chunk.

        Args:
            record: The input record
            text: The record's designated text field

        Returns:
            RecordResult: Chunk counts and the ids that were indexed

        Raises:
            VectorIndexError: If an upsert fails
        """
        chunks = self.chunk(text)
        result = RecordResult(chunks=len(chunks))

        if self.config.dry_run:
            result.tokens = sum(self.counter.count(chunk) for chunk in chunks)
            return result

        for chunk_index, chunk in enumerate(chunks):
            if self.cancelled:
                logger.warning(
                    f"⚠️ Run cancelled, skipping {len(chunks) - chunk_index} remaining chunks"
                )
                break
            entry_id = self.ingest_chunk(record, chunk, chunk_index, len(chunks))
            if entry_id is None:
                result.failed += 1
            else:
                result.ids.append(entry_id)
        return result

    def ingest_chunk(
        self, record: Record, chunk: str, chunk_index: int, chunk_count: int
    ) -> str | None:
        """Embed, store and index a single chunk.

        Returns:
            str | None: The content id, or None if the chunk was skipped
        """
        chunk_record = with_text(record, self.config.text_field, chunk)
        payload = serialize_record(chunk_record)
        entry_id = self.store.compute_id(payload)

        try:
            vector = self.dispatcher.embed(chunk)
        except EmbeddingError as e:
            logger.error(f"❌ error computing embedding for {entry_id}: {e}")
            return None

        try:
            self.store.put(payload)
        except StorageError as e:
            logger.error(f"❌ error storing blob {entry_id}: {e}")
            return None

        self.index.upsert(
            entry_id,
            vector,
            metadata=self.build_metadata(record, chunk_index, chunk_count),
            namespace=self.config.namespace,
        )
        return entry_id

    def run(self, records: Iterable[Record]) -> IngestionSummary:
        """Ingest every record and wait for all of them to finish.

        Args:
            records: Input records, consumed incrementally

        Returns:
            IngestionSummary: Totals for the run

        Raises:
            MalformedInputError: If a record lacks a string text field
            VectorIndexError: If the index rejects an upsert
        """
        summary = IngestionSummary()
        errors: list[BaseException] = []
        slots = threading.BoundedSemaphore(self.config.concurrency * INFLIGHT_RECORDS_PER_WORKER)
        executor = ThreadPoolExecutor(
            max_workers=self.config.concurrency, thread_name_prefix="embedvault-ingest"
        )

        def on_done(future: "Future[RecordResult]") -> None:
            # A failed record cancels the run before its slot is released
            try:
                if future.cancelled():
                    return
                exc = future.exception()
                with self._lock:
                    if exc is not None:
                        errors.append(exc)
                    else:
                        summary.add(future.result())
                if exc is not None:
                    logger.error(f"❌ Stopping ingestion: {exc}")
                    self.cancel()
            finally:
                slots.release()

        try:
            for record in records:
                if self.cancelled:
                    break
                text = extract_text(record, self.config.text_field)
                slots.acquire()
                if self.cancelled:
                    slots.release()
                    break
                with self._lock:
                    summary.records += 1
                executor.submit(self.process_record, record, text).add_done_callback(on_done)
        except BaseException:
            self.cancel()
            executor.shutdown(wait=True, cancel_futures=True)
            raise

        # Barrier: every admitted record finishes before the run reports
        executor.shutdown(wait=True)
        if errors:
            raise errors[0]

        logger.info(
            f"✅ Ingested {summary.records} records: {summary.upserted} chunks indexed, "
            f"{summary.failed} skipped"
        )
        return summary
