"""
Word crawler core components.
"""

from .state import VisitedSet, WordCountMap
from .url_filter import URLFilter
from .ranking import rank_word_counts
from .result import CrawlResult
from .fetcher import WebFetcher, FetchResult, PageFetchError
from .parser import PageParser, PageResult, HtmlPageParser
from .engine import ParallelWebCrawler, CrawlTask, CrawlStats

__all__ = [
    'VisitedSet', 'WordCountMap', 'URLFilter', 'rank_word_counts', 'CrawlResult',
    'WebFetcher', 'FetchResult', 'PageFetchError',
    'PageParser', 'PageResult', 'HtmlPageParser',
    'ParallelWebCrawler', 'CrawlTask', 'CrawlStats'
]
