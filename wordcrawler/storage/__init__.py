"""
Output storage for crawl results.
"""

from .result_writer import CrawlResultWriter, ResultWriteError

__all__ = ['CrawlResultWriter', 'ResultWriteError']
