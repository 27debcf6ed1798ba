"""Helper functions for CLI commands."""

import logging
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click

from embedvault.client.ingest import IngestionSummary
from embedvault.config import PipelineConfig
from embedvault.embedding import EmbeddingDispatcher, get_embedding_service
from embedvault.service.content_store import ContentStore
from embedvault.service.index import RavenDBIndex

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str) -> None:
    """Send log output to stderr at the given level.

    stdout is reserved for pipeline output.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def pipeline_options(func: Callable) -> Callable:
    """Attach the options shared by every command that touches the index."""
    options = [
        click.option(
            "--namespace",
            type=str,
            default=None,
            help="Index namespace (default: from INDEX_NAMESPACE env or the default namespace)",
        ),
        click.option(
            "--log-level",
            "-l",
            type=click.Choice(LOG_LEVELS, case_sensitive=False),
            default=None,
            envvar="LOG_LEVEL",
            show_envvar=True,
            help="Log level (default: INFO)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def embedding_options(func: Callable) -> Callable:
    """Attach the options shared by the upsert and retrieve commands."""
    options = [
        click.option(
            "--param",
            "text_field",
            type=str,
            default=None,
            help="Name of JSON string field to compute embedding for (default: 'search')",
        ),
        click.option(
            "--edir",
            "storage_dir",
            type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
            default=None,
            help="Where to store the raw embedding content (default: ~/.embedvault/embeddings/)",
        ),
        click.option(
            "--concurrency",
            "-p",
            type=click.IntRange(min=1),
            default=None,
            help="How many parallel embedding calls to make (default: 10)",
        ),
        click.option(
            "--embedding-service",
            type=click.Choice(["ollama", "gemini", "openai"]),
            default=None,
            help="Embedding provider (default: from EMBEDDING_SERVICE env or 'ollama')",
        ),
        click.option(
            "--embedding-model",
            type=str,
            default=None,
            help="Embedding model to use (default: from EMBEDDING_MODEL env or service default)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_config(**options: Any) -> PipelineConfig:
    """Resolve the pipeline configuration from the environment and CLI options.

    Raises:
        click.UsageError: If the resulting configuration is invalid
    """
    try:
        return PipelineConfig.from_env(**options)
    except ValueError as e:
        raise click.UsageError(str(e)) from e


def log_index_stats(index: RavenDBIndex) -> dict[str, int]:
    """Log entry counts per namespace, as reported by the index."""
    stats = index.describe_stats()
    logger.info("Connected to RavenDB.")
    for namespace, count in stats.items():
        logger.info(f"Index Namespace: {namespace}: {count} entries")
    return stats


@contextmanager
def open_pipeline(
    config: PipelineConfig,
) -> Iterator[tuple[EmbeddingDispatcher, ContentStore, RavenDBIndex]]:
    """Connect every collaborator the pipelines need and close them afterwards.

    Yields:
        Tuple of (dispatcher, content store, index)
    """
    store = ContentStore(config.storage_dir)
    logger.info(f"Storing embedding chunks in {store.root}")

    with RavenDBIndex() as index:
        log_index_stats(index)
        service = get_embedding_service(config)
        with EmbeddingDispatcher(
            service,
            workers=config.concurrency,
            queue_size=config.effective_queue_size,
            retry=config.retry,
            model=config.effective_embedding_model,
        ) as dispatcher:
            yield dispatcher, store, index


def format_summary(summary: IngestionSummary, dry_run: bool = False) -> str:
    """Format an ingestion summary for display.

    Args:
        summary: Totals from an ingestion run
        dry_run: Whether the run only counted tokens

    Returns:
        Formatted string for display
    """
    if dry_run:
        return (
            f"📊 Dry run: {summary.records} record(s), {summary.chunks} chunk(s), "
            f"{summary.tokens} token(s)"
        )
    lines = [
        f"✓ Upsert complete! {summary.records} record(s), {summary.chunks} chunk(s)",
        f"   Indexed: {summary.upserted}",
        f"   Skipped: {summary.failed}",
    ]
    return "\n".join(lines)
