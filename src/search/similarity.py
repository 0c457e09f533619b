from typing import Protocol

from rapidfuzz import fuzz, utils


class Similarity(Protocol):
    """Distance between a query and a candidate name: 0.0 is exact, 1.0 is unrelated."""

    def __call__(self, query: str, candidate: str) -> float:
        ...


class RapidFuzzSimilarity:
    """Weighted token/partial ratio, case- and punctuation-insensitive."""

    def __call__(self, query: str, candidate: str) -> float:
        ratio = fuzz.WRatio(query, candidate, processor=utils.default_process)
        return round(1.0 - ratio / 100.0, 6)


default_similarity = RapidFuzzSimilarity()
