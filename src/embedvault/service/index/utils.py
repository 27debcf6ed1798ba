"""Utility functions for vector index operations."""

import math


def cosine_similarity(vec_a: list[float], vec_b: list[float]) -> float:
    """Cosine similarity of two vectors, between -1 and 1.

    Empty, mismatched or zero-magnitude vectors score 0.0.
    """
    if not vec_a or len(vec_a) != len(vec_b):
        return 0.0
    norm = math.hypot(*vec_a) * math.hypot(*vec_b)
    if norm == 0:
        return 0.0
    return math.fsum(a * b for a, b in zip(vec_a, vec_b)) / norm
