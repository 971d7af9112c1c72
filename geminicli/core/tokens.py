"""
Token estimation heuristics.

These are NOT tokenizers. They approximate a token count as a linear function
of text length so budgets can be checked without a network round trip.
Treat the result as a rough upper bound.
"""

import math
from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenEstimator(Protocol):
    def estimate(self, text: str) -> int:
        ...


class WordTokenEstimator:
    """Word count x constant, rounded up."""

    def __init__(self, tokens_per_word: float = 1.33):
        if tokens_per_word <= 0:
            raise ValueError(f"tokens_per_word must be positive, got {tokens_per_word}")
        self.tokens_per_word = tokens_per_word

    def estimate(self, text: str) -> int:
        if not text:
            return 0
        return math.ceil(len(text.split()) * self.tokens_per_word)

    def __repr__(self) -> str:
        return f"WordTokenEstimator(tokens_per_word={self.tokens_per_word})"


class CharTokenEstimator:
    """One token per `chars_per_token` characters, rounded up."""

    def __init__(self, chars_per_token: int = 4):
        if chars_per_token <= 0:
            raise ValueError(f"chars_per_token must be positive, got {chars_per_token}")
        self.chars_per_token = chars_per_token

    def estimate(self, text: str) -> int:
        if not text:
            return 0
        return math.ceil(len(text) / self.chars_per_token)

    def __repr__(self) -> str:
        return f"CharTokenEstimator(chars_per_token={self.chars_per_token})"


DEFAULT_ESTIMATOR = WordTokenEstimator()


def estimate_tokens(text: str) -> int:
    return DEFAULT_ESTIMATOR.estimate(text)
