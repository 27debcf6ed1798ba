"""embedvault: chunk, embed, and store text records for vector retrieval."""

__version__ = "0.1.0"
