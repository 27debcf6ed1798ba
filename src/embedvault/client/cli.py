"""Command-line interface for embedvault using Click."""

import click
from dotenv import load_dotenv

from embedvault.client.cli_helpers import (
    build_config,
    embedding_options,
    format_summary,
    log_index_stats,
    open_pipeline,
    pipeline_options,
    setup_logging,
)
from embedvault.client.ingest import IngestionWorker
from embedvault.client.retrieve import RetrievalWorker
from embedvault.errors import EmbedVaultError
from embedvault.records import read_records
from embedvault.service.index import RavenDBIndex, collection_for
from embedvault.tokens import TiktokenCounter

# Load environment variables
load_dotenv()


@click.command()
@embedding_options
@click.option(
    "--tokens",
    "max_tokens",
    type=click.IntRange(min=1),
    default=None,
    help="Recursively bisect input that exceeds this many tokens (default: 8191)",
)
@click.option(
    "--metadata-field",
    "metadata_fields",
    multiple=True,
    help="Record field to copy into index metadata (repeatable)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Chunk and count tokens without embedding, storing or indexing",
)
@pipeline_options
def upsert(
    text_field: str | None,
    storage_dir,
    concurrency: int | None,
    embedding_service: str | None,
    embedding_model: str | None,
    max_tokens: int | None,
    metadata_fields: tuple[str, ...],
    dry_run: bool,
    namespace: str | None,
    log_level: str | None,
) -> None:
    """Embed JSON records read from stdin and store them in the index.

    Each record's text field is split into chunks when it exceeds the token
    budget. Every chunk is stored under the hash of its record and upserted
    into the index.

    Example:
        cat records.jsonl | embedvault-upsert
        cat records.jsonl | embedvault-upsert --param body --namespace papers
        cat records.jsonl | embedvault-upsert --dry-run
    """
    setup_logging(log_level or "INFO")
    config = build_config(
        text_field=text_field,
        storage_dir=storage_dir,
        concurrency=concurrency,
        embedding_service=embedding_service,
        embedding_model=embedding_model,
        max_tokens=max_tokens,
        metadata_fields=metadata_fields or None,
        dry_run=dry_run or None,
        namespace=namespace,
    )
    counter = TiktokenCounter(config.tokenizer_model)
    records = read_records(click.get_text_stream("stdin"))

    try:
        if config.dry_run:
            summary = IngestionWorker(config, counter).run(records)
        else:
            with open_pipeline(config) as (dispatcher, store, index):
                worker = IngestionWorker(config, counter, dispatcher, store, index)
                summary = worker.run(records)
    except EmbedVaultError as e:
        click.echo(f"✗ Error: {e}", err=True)
        raise click.Abort()
    except (RuntimeError, ValueError) as e:
        click.echo(f"✗ Configuration error: {e}", err=True)
        raise click.Abort()

    click.echo(format_summary(summary, dry_run=config.dry_run), err=True)


@click.command()
@embedding_options
@click.option(
    "--top-k",
    type=click.IntRange(min=1),
    default=None,
    help="Number of results to return per query (default: 10)",
)
@pipeline_options
def retrieve(
    text_field: str | None,
    storage_dir,
    concurrency: int | None,
    embedding_service: str | None,
    embedding_model: str | None,
    top_k: int | None,
    namespace: str | None,
    log_level: str | None,
) -> None:
    """Find stored records similar to each JSON query read from stdin.

    Writes one JSON object per query to stdout:
    {"Input": <query>, "Response": [<stored records, best match first>]}

    Example:
        echo '{"search": "vector databases"}' | embedvault-retrieve
        cat queries.jsonl | embedvault-retrieve --top-k 3
    """
    setup_logging(log_level or "INFO")
    config = build_config(
        text_field=text_field,
        storage_dir=storage_dir,
        concurrency=concurrency,
        embedding_service=embedding_service,
        embedding_model=embedding_model,
        top_k=top_k,
        namespace=namespace,
    )
    records = read_records(click.get_text_stream("stdin"))

    try:
        with open_pipeline(config) as (dispatcher, store, index):
            worker = RetrievalWorker(config, dispatcher, store, index)
            for envelope in worker.run(records):
                click.echo(envelope.to_json())
    except EmbedVaultError as e:
        click.echo(f"✗ Error: {e}", err=True)
        raise click.Abort()
    except (RuntimeError, ValueError) as e:
        click.echo(f"✗ Configuration error: {e}", err=True)
        raise click.Abort()


@click.command()
@click.option("--yes", "-y", is_flag=True, default=False, help="Skip confirmation prompt")
@pipeline_options
def delete_all(yes: bool, namespace: str | None, log_level: str | None) -> None:
    """Delete every index entry in a namespace.

    Stored record blobs are kept; only the index entries are removed.

    Example:
        embedvault-delete-all --namespace papers          # Will prompt for confirmation
        embedvault-delete-all --namespace papers --yes    # Skip confirmation
    """
    setup_logging(log_level or "INFO")
    config = build_config(namespace=namespace)

    try:
        collection = collection_for(config.namespace)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--namespace") from e

    if not yes:
        click.echo(f"⚠️  WARNING: You are about to delete all entries in '{collection}'")
        click.echo("Stored blobs are not deleted.\n")
        if not click.confirm("Are you sure you want to proceed?", default=False):
            click.echo("Deletion cancelled.")
            return

    try:
        with RavenDBIndex() as index:
            deleted = index.delete_all(config.namespace)
    except EmbedVaultError as e:
        click.echo(f"✗ Error deleting entries: {e}", err=True)
        raise click.Abort()

    click.echo(f"✓ Deleted all vectors ({deleted} entries) from '{collection}'")


@click.command()
@pipeline_options
def stats(namespace: str | None, log_level: str | None) -> None:
    """Show the number of index entries per namespace.

    Example:
        embedvault-stats
        embedvault-stats --namespace papers
    """
    setup_logging(log_level or "WARNING")

    try:
        with RavenDBIndex() as index:
            counts = log_index_stats(index)
    except EmbedVaultError as e:
        click.echo(f"✗ Error reading index stats: {e}", err=True)
        raise click.Abort()

    if namespace:
        counts = {name: count for name, count in counts.items() if name == namespace}
    if not counts:
        click.echo("Index is empty.")
        return
    for name, count in counts.items():
        click.echo(f"📊 {name}: {count} entr{'y' if count == 1 else 'ies'}")


if __name__ == "__main__":
    upsert()
