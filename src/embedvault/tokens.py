"""Token counting used to keep chunks within the embedding model's budget."""

import logging
from typing import Protocol

import tiktoken

from embedvault.constants import DEFAULT_TOKENIZER_MODEL, FALLBACK_TOKENIZER_ENCODING

logger = logging.getLogger(__name__)


class TokenCounter(Protocol):
    """Protocol for tokenizers that measure text against a token budget."""

    def encode(self, text: str) -> list[int]:
        """Encode text into token ids."""
        ...

    def count(self, text: str) -> int:
        """Return the number of tokens in text."""
        ...


class TiktokenCounter:
    """TokenCounter backed by a tiktoken encoding.

    tiktoken encodings are safe to share between threads, so one instance
    serves every ingestion unit.
    """

    def __init__(self, model_name: str = DEFAULT_TOKENIZER_MODEL) -> None:
        """Resolve the encoding for a model name.

        Args:
            model_name: Model whose tokenizer is used (e.g., "gpt-3.5-turbo").
                Unknown models fall back to the cl100k_base encoding.
        """
        self.model_name = model_name
        try:
            self.encoding = tiktoken.encoding_for_model(model_name)
        except KeyError:
            logger.warning(
                f"⚠️ No tiktoken encoding registered for {model_name}, "
                f"using {FALLBACK_TOKENIZER_ENCODING}"
            )
            self.encoding = tiktoken.get_encoding(FALLBACK_TOKENIZER_ENCODING)

    def encode(self, text: str) -> list[int]:
        # Special-token text in user records is ordinary content
        return self.encoding.encode(text, disallowed_special=())

    def count(self, text: str) -> int:
        return len(self.encode(text))
