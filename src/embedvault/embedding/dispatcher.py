"""Bounded-concurrency embedding dispatcher.

A fixed pool of worker threads reads (text, future) requests from a bounded
queue, calls the embedding service with retries on transient failures, and
resolves each request's future exactly once. Producers block on a full queue,
which throttles ingestion to the provider's throughput.
"""

import logging
import queue
import threading
from concurrent.futures import CancelledError, Future

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from embedvault.config import RetryPolicy
from embedvault.embedding.base import EmbeddingService, is_transient_error
from embedvault.errors import EmbeddingError, EmptyTextError

logger = logging.getLogger(__name__)

_Request = tuple[str, "Future[list[float]]"]


def _preview(text: str, length: int = 60) -> str:
    return text if len(text) <= length else text[:length] + "..."


class EmbeddingDispatcher:
    """Embed texts through a fixed-size worker pool.

    Usage:
        with EmbeddingDispatcher(service, workers=10, queue_size=1000) as dispatcher:
            vector = dispatcher.embed("some text")
    """

    def __init__(
        self,
        service: EmbeddingService,
        *,
        workers: int,
        queue_size: int,
        retry: RetryPolicy | None = None,
        model: str | None = None,
    ) -> None:
        """Start the worker threads.

        Args:
            service: Embedding provider client
            workers: Number of concurrent provider calls
            queue_size: Maximum pending requests before submit() blocks
            retry: Backoff policy for transient provider errors
            model: Embedding model passed to the service
        """
        if workers <= 0:
            raise ValueError("workers must be positive")
        self._service = service
        self._model = model
        self._retry = retry or RetryPolicy()
        self._queue: "queue.Queue[_Request | None]" = queue.Queue(maxsize=max(1, queue_size))
        self._lock = threading.Lock()
        # Signalled whenever a producer leaves queue.put()
        self._producers_done = threading.Condition(self._lock)
        self._producers = 0
        self._closed = False
        self._threads = [
            threading.Thread(target=self._worker, name=f"embedvault-embed-{i}", daemon=True)
            for i in range(workers)
        ]
        for thread in self._threads:
            thread.start()

    def __enter__(self) -> "EmbeddingDispatcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close(cancel_pending=exc_type is not None)

    def submit(self, text: str) -> "Future[list[float]]":
        """Queue a text for embedding.

        Blocks while the queue is full.

        Raises:
            EmptyTextError: If text is empty or whitespace-only (never sent)
            RuntimeError: If the dispatcher has been closed
        """
        # Embedding computation fails on empty strings.
        if not text.strip():
            raise EmptyTextError("Empty string requested for embedding.")

        future: "Future[list[float]]" = Future()
        with self._lock:
            if self._closed:
                raise RuntimeError("Embedding dispatcher has been closed")
            self._producers += 1
        try:
            self._queue.put((text, future))
        finally:
            with self._lock:
                self._producers -= 1
                self._producers_done.notify_all()
        return future

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed

    def embed(self, text: str) -> list[float]:
        """Embed one text and wait for its vector.

        Raises:
            EmbeddingError: If the text is empty, the request was cancelled, or
                the provider failed after all retries
        """
        future = self.submit(text)
        try:
            return future.result()
        except CancelledError as e:
            raise EmbeddingError(f"Embedding request cancelled for [{_preview(text)}]") from e

    def close(self, cancel_pending: bool = False) -> None:
        """Stop the workers after the queued requests are handled.

        New submissions are refused as soon as close() is called. Producers
        already waiting on a full queue finish enqueuing before the workers
        are told to stop, so every accepted request is resolved.

        Args:
            cancel_pending: Cancel requests that no worker has started yet
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            while True:
                # Cancelling frees queue slots for producers still blocked in put()
                if cancel_pending:
                    self._cancel_queued()
                if not self._producers:
                    break
                self._producers_done.wait()
        # Sentinels go in last, behind every accepted request
        for _ in self._threads:
            self._queue.put(None)
        for thread in self._threads:
            thread.join()

    def _cancel_queued(self) -> None:
        cancelled = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is not None and item[1].cancel():
                cancelled += 1
            self._queue.task_done()
        if cancelled:
            logger.warning(f"⚠️ Cancelled {cancelled} pending embedding requests")

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                text, future = item
                if not future.set_running_or_notify_cancel():
                    continue
                try:
                    vector = self._embed_with_retry(text)
                except EmbeddingError as exc:
                    future.set_exception(exc)
                except Exception as exc:
                    # Every failure reaches the caller as an EmbeddingError
                    error = EmbeddingError(
                        f"Problem processing vector for input [{_preview(text)}]: {exc}"
                    )
                    error.__cause__ = exc
                    future.set_exception(error)
                else:
                    future.set_result(vector)
            finally:
                self._queue.task_done()

    def _embed_with_retry(self, text: str) -> list[float]:
        retrying = Retrying(
            retry=retry_if_exception(is_transient_error),
            stop=stop_after_attempt(self._retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self._retry.initial_backoff,
                max=self._retry.max_backoff,
                jitter=self._retry.jitter,
            ),
            before_sleep=self._log_retry,
            reraise=True,
        )
        vectors = retrying(self._service.generate_embeddings, [text], self._model)
        if not vectors or not vectors[0]:
            raise EmbeddingError(f"Problem processing vector for input [{_preview(text)}]")
        return vectors[0]

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"⚠️ Embedding retry {retry_state.attempt_number}/{self._retry.max_attempts} "
            f"after transient error: {exc}"
        )
