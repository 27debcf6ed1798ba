"""Entry pipelines (ingestion, retrieval) and the command-line interface."""
