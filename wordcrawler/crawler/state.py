"""
Shared crawl state: the visited URL set and the word count accumulator.
"""

import threading
from typing import Dict, Iterator, Mapping, Set


class VisitedSet:
    """
    Set of URLs claimed during one crawl.
    A URL can be claimed by exactly one caller.
    """

    def __init__(self):
        self._urls: Set[str] = set()
        self._lock = threading.Lock()

    def claim(self, url: str) -> bool:
        """
        Atomically add a URL if absent.
        Returns True if this call claimed the URL, False if it was already claimed.
        """
        with self._lock:
            if url in self._urls:
                return False
            self._urls.add(url)
            return True

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)

    def snapshot(self) -> Set[str]:
        """Copy of the claimed URLs."""
        with self._lock:
            return set(self._urls)


class WordCountMap:
    """Word -> count accumulator shared by every task of one crawl."""

    def __init__(self):
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def add(self, word: str, delta: int) -> int:
        """Add delta to a single word and return the new count."""
        if delta < 0:
            raise ValueError(f"Negative count for {word!r}: {delta}")
        with self._lock:
            total = self._counts.get(word, 0) + delta
            self._counts[word] = total
            return total

    def merge(self, contribution: Mapping[str, int]):
        """
        Merge one page's word counts.
        The whole contribution is applied under a single lock acquisition.
        """
        for word, delta in contribution.items():
            if delta < 0:
                raise ValueError(f"Negative count for {word!r}: {delta}")

        with self._lock:
            for word, delta in contribution.items():
                self._counts[word] = self._counts.get(word, 0) + delta

    def get(self, word: str, default: int = 0) -> int:
        with self._lock:
            return self._counts.get(word, default)

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def is_empty(self) -> bool:
        return len(self) == 0

    def snapshot(self) -> Dict[str, int]:
        """Copy of the current counts."""
        with self._lock:
            return dict(self._counts)
