"""
Ignored-URL rules for the crawler.
"""

import re
import logging
from typing import Iterable, List, Pattern, Union

from ..utils.config import CrawlConfigurationError


class URLFilter:
    """
    Set of regex rules checked against whole URLs.
    A URL matching any rule is never fetched, counted or descended into.
    """

    def __init__(self, patterns: Iterable[Union[str, Pattern]] = ()):
        self.logger = logging.getLogger(__name__)
        self.patterns: List[Pattern] = []

        for pattern in patterns:
            if isinstance(pattern, str):
                try:
                    pattern = re.compile(pattern)
                except re.error as e:
                    raise CrawlConfigurationError(f"Invalid ignored URL pattern {pattern!r}: {e}")
            self.patterns.append(pattern)

    def matches(self, url: str) -> bool:
        """Return True if the full URL matches any ignored pattern."""
        for pattern in self.patterns:
            if pattern.fullmatch(url):
                self.logger.debug(f"URL {url} matches ignored pattern {pattern.pattern!r}")
                return True
        return False

    def __len__(self) -> int:
        return len(self.patterns)
