"""
Top-K reduction of crawled word counts.
"""

from typing import List, Mapping, Tuple


def word_count_sort_key(entry: Tuple[str, int]) -> Tuple[int, int, str]:
    """
    Sort key for (word, count) pairs:
    more frequent first, then longer words, then alphabetical.
    """
    word, count = entry
    return (-count, -len(word), word)


def rank_word_counts(counts: Mapping[str, int], k: int) -> List[Tuple[str, int]]:
    """
    Reduce a word count map to its top k entries.

    Args:
        counts: Word -> count map
        k: Number of popular words to keep

    Returns:
        Up to k (word, count) pairs in ranked order
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")

    if not counts:
        return []

    ranked = sorted(counts.items(), key=word_count_sort_key)
    return ranked[:min(k, len(ranked))]
