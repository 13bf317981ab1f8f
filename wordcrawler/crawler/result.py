"""
Crawl result value object.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple


@dataclass(frozen=True)
class CrawlResult:
    """Word counts (in ranked order when ranked) and number of distinct URLs visited."""
    word_counts: Mapping[str, int] = field(default_factory=dict)
    urls_visited: int = 0

    def __post_init__(self):
        # Freeze a private copy so callers cannot mutate the result
        object.__setattr__(self, 'word_counts', MappingProxyType(dict(self.word_counts)))

    @classmethod
    def from_ranking(cls, ranking: Iterable[Tuple[str, int]], urls_visited: int) -> 'CrawlResult':
        """Build a result from ranked (word, count) pairs, keeping their order."""
        return cls(word_counts=dict(ranking), urls_visited=urls_visited)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'wordCounts': dict(self.word_counts),
            'urlsVisited': self.urls_visited
        }
