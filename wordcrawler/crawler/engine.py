"""
Parallel crawl engine: recursive crawl tasks over the link graph sharing one
visited set and one word count map per crawl.
"""

import asyncio
import inspect
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

import psutil

from .parser import PageParser, PageResult
from .ranking import rank_word_counts
from .result import CrawlResult
from .state import VisitedSet, WordCountMap
from .url_filter import URLFilter
from ..utils.config import CrawlConfigurationError, CrawlRequest
from ..utils.logger import get_crawler_logger
from ..utils.profiler import profiled


@dataclass
class CrawlStats:
    """Statistics for one crawl."""
    start_time: float
    urls_crawled: int = 0
    errors: int = 0
    duplicates_skipped: int = 0
    ignored_urls: int = 0
    deadline_skips: int = 0

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time

    @property
    def pages_per_minute(self) -> float:
        elapsed_minutes = self.elapsed_time / 60
        return self.urls_crawled / elapsed_minutes if elapsed_minutes > 0 else 0


@dataclass(frozen=True)
class CrawlTask:
    """Visit url with remaining_depth link levels left, before deadline."""
    url: str
    deadline: float
    remaining_depth: int

    def child(self, link: str) -> 'CrawlTask':
        return CrawlTask(url=link, deadline=self.deadline, remaining_depth=self.remaining_depth - 1)


class CrawlContext:
    """
    State shared by every task of a single crawl.
    Created fresh by each crawl() call and dropped when it returns.
    """

    def __init__(self, parser: PageParser, url_filter: URLFilter, clock: Callable[[], float],
                 parallelism: int, executor: Optional[ThreadPoolExecutor] = None):
        self.parser = parser
        self.url_filter = url_filter
        self.clock = clock
        self.executor = executor
        self.logger = get_crawler_logger(__name__)

        self.visited = VisitedSet()
        self.counts = WordCountMap()
        self.stats = CrawlStats(start_time=time.time())

        # Bounds the number of pages being fetched at once
        self.fetch_slots = asyncio.Semaphore(parallelism)

    def is_expired(self, deadline: float) -> bool:
        return self.clock() >= deadline

    async def process(self, task: CrawlTask):
        """
        Visit one URL, merge its word counts and crawl its links.
        Returns once every descendant task has completed.
        """
        if self.url_filter.matches(task.url):
            self.stats.ignored_urls += 1
            return

        if task.remaining_depth <= 0:
            return

        if self.is_expired(task.deadline):
            self.stats.deadline_skips += 1
            return

        async with self.fetch_slots:
            # The slot may have been granted after the deadline
            if self.is_expired(task.deadline):
                self.stats.deadline_skips += 1
                return

            if not self.visited.claim(task.url):
                self.stats.duplicates_skipped += 1
                return

            self.logger.log_url_event(logging.DEBUG, task.url, f"Visiting {task.url}")
            try:
                page = await self._parse(task.url)
                links = list(page.links)
                self.counts.merge(page.word_counts)
            except Exception as e:
                self.stats.errors += 1
                self.logger.log_url_event(logging.WARNING, task.url, f"Failed to crawl {task.url}: {e}")
                return

        self.stats.urls_crawled += 1

        if links:
            await asyncio.gather(*(self.process(task.child(link)) for link in links))

    async def _parse(self, url: str) -> PageResult:
        """Run the page parser, on the executor when it is blocking."""
        if inspect.iscoroutinefunction(self.parser.parse):
            return await self.parser.parse(url)

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.parser.parse, url)


class ParallelWebCrawler:
    """
    Crawls from a set of seed URLs with bounded parallelism and returns the
    most popular words across every visited page.
    """

    def __init__(self, request: CrawlRequest, parser: PageParser,
                 clock: Callable[[], float] = time.monotonic):
        if request.parallelism < 1:
            raise CrawlConfigurationError("parallelism must be at least 1")
        if request.max_depth < 0:
            raise CrawlConfigurationError("max_depth must be non-negative")
        if request.timeout_seconds < 0:
            raise CrawlConfigurationError("timeout_seconds must be non-negative")
        if request.popular_word_count < 0:
            raise CrawlConfigurationError("popular_word_count must be non-negative")

        self.request = request
        self.parser = parser
        self.clock = clock
        self.logger = get_crawler_logger(__name__)

        self.url_filter = URLFilter(request.ignored_urls)
        self.parallelism = min(request.parallelism, self.get_max_parallelism())
        self.last_stats: Optional[CrawlStats] = None

    @staticmethod
    def get_max_parallelism() -> int:
        """Number of CPUs available to the crawler."""
        return psutil.cpu_count() or 1

    @profiled
    async def crawl(self, seed_urls: Optional[Iterable[str]] = None) -> CrawlResult:
        """
        Crawl from the given seeds (the configured start pages by default).

        Returns:
            CrawlResult with the top popular_word_count words and the number of visited URLs

        Raises:
            CrawlConfigurationError: if a seed is not a non-empty string
        """
        seeds = self._validate_seeds(self.request.start_pages if seed_urls is None else seed_urls)
        deadline = self.clock() + self.request.timeout_seconds

        executor = None
        if not inspect.iscoroutinefunction(self.parser.parse):
            executor = ThreadPoolExecutor(max_workers=self.parallelism,
                                          thread_name_prefix='crawl-worker')

        context = CrawlContext(self.parser, self.url_filter, self.clock,
                               self.parallelism, executor)

        self.logger.info(f"Crawling {len(seeds)} seed URLs with parallelism={self.parallelism}, "
                         f"max_depth={self.request.max_depth}, "
                         f"timeout={self.request.timeout_seconds}s")
        try:
            await asyncio.gather(*(
                context.process(CrawlTask(url=url, deadline=deadline,
                                          remaining_depth=self.request.max_depth))
                for url in seeds
            ))
        finally:
            if executor is not None:
                executor.shutdown(wait=False, cancel_futures=True)

        self.last_stats = context.stats
        self._log_final_stats(context)

        urls_visited = len(context.visited)
        if context.counts.is_empty():
            return CrawlResult(word_counts={}, urls_visited=urls_visited)

        ranking = rank_word_counts(context.counts.snapshot(), self.request.popular_word_count)
        return CrawlResult.from_ranking(ranking, urls_visited)

    def run(self, seed_urls: Optional[Iterable[str]] = None) -> CrawlResult:
        """Blocking wrapper around crawl() for callers without an event loop."""
        return asyncio.run(self.crawl(seed_urls))

    def _validate_seeds(self, seed_urls: Iterable[str]) -> List[str]:
        if isinstance(seed_urls, str):
            raise CrawlConfigurationError("Seed URLs must be a list, not a single string")

        seeds = list(seed_urls)
        for url in seeds:
            if not isinstance(url, str) or not url.strip():
                raise CrawlConfigurationError(f"Invalid seed URL: {url!r}")

        if not seeds:
            self.logger.warning("No seed URLs to crawl")
        return seeds

    def _log_final_stats(self, context: CrawlContext):
        """Log final crawl statistics."""
        stats = context.stats
        self.logger.info(f"Crawl finished in {stats.elapsed_time:.2f}s")
        for name, value in (('urls_visited', len(context.visited)),
                            ('urls_crawled', stats.urls_crawled),
                            ('errors', stats.errors),
                            ('duplicates_skipped', stats.duplicates_skipped),
                            ('ignored_urls', stats.ignored_urls),
                            ('deadline_skips', stats.deadline_skips),
                            ('distinct_words', len(context.counts))):
            self.logger.log_crawler_stat(name, value)

    def get_stats(self) -> Dict:
        """Get statistics of the last crawl."""
        if self.last_stats is None:
            return {}
        return {
            'urls_crawled': self.last_stats.urls_crawled,
            'errors': self.last_stats.errors,
            'duplicates_skipped': self.last_stats.duplicates_skipped,
            'ignored_urls': self.last_stats.ignored_urls,
            'deadline_skips': self.last_stats.deadline_skips,
            'pages_per_minute': self.last_stats.pages_per_minute
        }
