"""
Test doubles: in-memory link graphs standing in for the page parser.
"""

import asyncio
import random
import threading
import time
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from wordcrawler.crawler.fetcher import PageFetchError
from wordcrawler.crawler.parser import PageResult
from wordcrawler.utils.config import CrawlRequest


Graph = Dict[str, Tuple[Dict[str, int], List[str]]]


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self.now

    def advance(self, seconds: float):
        with self._lock:
            self.now += seconds


class GraphPageParser:
    """Blocking parser over an in-memory graph that records every call."""

    def __init__(self, graph: Graph, failing: Iterable[str] = (), max_delay: float = 0.0,
                 clock: Optional[FakeClock] = None, tick: float = 0.0):
        self.graph = graph
        self.failing = set(failing)
        self.max_delay = max_delay
        self.clock = clock
        self.tick = tick
        self.calls: Counter = Counter()
        self._lock = threading.Lock()

    def parse(self, url: str) -> PageResult:
        with self._lock:
            self.calls[url] += 1
        if self.clock is not None:
            self.clock.advance(self.tick)
        if self.max_delay:
            time.sleep(random.uniform(0, self.max_delay))
        if url in self.failing:
            raise PageFetchError(f"Failed to fetch {url}: HTTP 500")
        words, links = self.graph.get(url, ({}, []))
        return PageResult(word_counts=dict(words), links=list(links))


class AsyncGraphPageParser:
    """Coroutine parser over an in-memory graph; tracks peak concurrency."""

    def __init__(self, graph: Graph, max_delay: float = 0.0):
        self.graph = graph
        self.max_delay = max_delay
        self.calls: Counter = Counter()
        self.in_flight = 0
        self.peak_in_flight = 0

    async def parse(self, url: str) -> PageResult:
        self.calls[url] += 1
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(random.uniform(0, self.max_delay))
        finally:
            self.in_flight -= 1
        words, links = self.graph.get(url, ({}, []))
        return PageResult(word_counts=dict(words), links=list(links))


def make_request(**overrides) -> CrawlRequest:
    values = dict(
        start_pages=("http://example.com/a",),
        timeout_seconds=30.0,
        max_depth=10,
        popular_word_count=10,
        parallelism=4,
        ignored_urls=(),
    )
    values.update(overrides)
    return CrawlRequest(**values)


