"""
Tests for logging utilities.
"""

import json
import logging

from wordcrawler.utils.logger import JSONFormatter, PerformanceFilter, get_crawler_logger


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def test_url_events_carry_context_into_json():
    handler = ListHandler()
    logger = logging.getLogger("tests.logger.url_events")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        adapter = get_crawler_logger("tests.logger.url_events", crawl="nightly")
        adapter.log_url_event(logging.WARNING, "http://example.com/", "Failed to crawl")
    finally:
        logger.removeHandler(handler)

    record = handler.records[0]
    assert record.crawl == "nightly"
    entry = json.loads(JSONFormatter().format(record))
    assert entry["level"] == "WARNING"
    assert entry["message"] == "Failed to crawl"
    assert entry["url"] == "http://example.com/"
    assert entry["event_type"] == "url_event"


def test_performance_filter_drops_noisy_loggers():
    noisy = logging.LogRecord("aiohttp.access", logging.INFO, __file__, 1, "GET /", None, None)
    useful = logging.LogRecord("wordcrawler.crawler.engine", logging.INFO, __file__, 1,
                               "Crawl finished", None, None)

    log_filter = PerformanceFilter()

    assert log_filter.filter(noisy) is False
    assert log_filter.filter(useful) is True
