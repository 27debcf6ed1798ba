"""Token-budget text splitting for oversized records."""

from embedvault.tokens import TokenCounter


def split_text(text: str, token_budget: int, counter: TokenCounter) -> list[str]:
    """Split text into chunks that each fit within a token budget.

    Lines are packed greedily first (blank lines dropped, surrounding
    whitespace trimmed). Any packed chunk that is still too long is bisected
    on spaces, then on characters once a single word remains. Chunks keep the
    reading order of the original text.

    Args:
        text: The text to split
        token_budget: Maximum tokens per chunk (must be positive)
        counter: Tokenizer used to measure chunks

    Returns:
        list[str]: The chunks, or [text] unchanged if it already fits.
            A single character is never split further, even if it alone
            exceeds the budget. Whitespace-only text is returned as
            [text] so it is never silently dropped.
    """
    if token_budget <= 0:
        raise ValueError("token_budget must be positive")
    if counter.count(text) <= token_budget:
        return [text]

    chunks = []
    for packed in _pack_lines(text, token_budget, counter):
        chunks.extend(_bisect(packed, token_budget, counter))
    # Whitespace-only text packs to nothing; keep it so the embedder rejects it
    return chunks or [text]


def _pack_lines(text: str, token_budget: int, counter: TokenCounter) -> list[str]:
    chunks = []
    current = ""
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        candidate = f"{current}\n{line}" if current else line
        if counter.count(candidate) <= token_budget:
            current = candidate
        else:
            if current:
                chunks.append(current)
            current = line
    if current:
        chunks.append(current)
    return chunks


def _bisect(fragment: str, token_budget: int, counter: TokenCounter) -> list[str]:
    if not fragment.strip():
        return []
    if len(fragment) <= 1 or counter.count(fragment) <= token_budget:
        return [fragment]

    words = fragment.split(" ")
    if len(words) > 1:
        mid = len(words) // 2
        left, right = " ".join(words[:mid]), " ".join(words[mid:])
    else:
        mid = len(fragment) // 2
        left, right = fragment[:mid], fragment[mid:]
    return _bisect(left, token_budget, counter) + _bisect(right, token_budget, counter)
