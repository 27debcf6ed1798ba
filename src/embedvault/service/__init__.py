"""Storage services: the content-addressed blob store and the vector index."""
