"""
Page parser: fetches a page and turns it into word counts and outbound links.
"""

import re
import logging
from collections import Counter
from typing import Iterable, List, Dict, Optional, Pattern, Union
from urllib.parse import urljoin, urlparse, urlunparse
from dataclasses import dataclass, field
from bs4 import BeautifulSoup, Comment

from .fetcher import WebFetcher, PageFetchError
from ..utils.config import CrawlConfigurationError, CrawlerConfig


@dataclass
class PageResult:
    """Word counts and outbound links of one parsed page."""
    word_counts: Dict[str, int] = field(default_factory=dict)
    links: List[str] = field(default_factory=list)


class PageParser:
    """
    Contract for page parsers used by the crawler.

    parse() may be a plain (possibly blocking) method or a coroutine.
    It must be safe to call concurrently for different URLs and should
    raise on failure rather than return partial results.
    """

    def parse(self, url: str) -> PageResult:
        """Fetch and parse a page."""
        raise NotImplementedError


class HtmlPageParser(PageParser):
    """
    Parses HTML pages into word counts and links.
    """

    LINK_SCHEMES = ('http', 'https', 'file')

    def __init__(self, fetcher: WebFetcher,
                 ignored_words: Iterable[Union[str, Pattern]] = ()):
        self.fetcher = fetcher
        self.logger = logging.getLogger(__name__)

        self.ignored_words: List[Pattern] = []
        for pattern in ignored_words:
            if isinstance(pattern, str):
                try:
                    pattern = re.compile(pattern)
                except re.error as e:
                    raise CrawlConfigurationError(f"Invalid ignored word pattern {pattern!r}: {e}")
            self.ignored_words.append(pattern)

        # Patterns for cleaning content
        self.whitespace_pattern = re.compile(r'\s+')
        self.non_word_pattern = re.compile(r'\W')

    @classmethod
    def from_config(cls, config: CrawlerConfig) -> 'HtmlPageParser':
        """Build a parser and its fetcher from the crawler configuration."""
        fetcher = WebFetcher(
            user_agent=config.user_agent,
            request_timeout=config.request_timeout,
            max_concurrent_requests=config.parallelism,
            max_size=config.max_page_bytes
        )
        return cls(fetcher, config.ignored_words)

    async def parse(self, url: str) -> PageResult:
        """
        Fetch a page and extract its words and links.

        Raises:
            PageFetchError: if the page cannot be fetched
        """
        fetch_result = await self.fetcher.fetch(url)
        if fetch_result.error or fetch_result.content is None:
            raise PageFetchError(f"Failed to fetch {url}: {fetch_result.error}")

        return self.parse_html(url, fetch_result.content)

    def parse_html(self, url: str, html_content: str) -> PageResult:
        """
        Parse HTML content into a PageResult.

        Args:
            url: The URL of the page, used to resolve relative links
            html_content: Raw HTML content
        """
        soup = BeautifulSoup(html_content, 'lxml')

        # Remove script and style elements
        for script in soup(["script", "style", "noscript"]):
            script.decompose()

        # Remove comments
        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

        content_element = soup.find('body') or soup
        text_content = content_element.get_text(separator=' ', strip=True)

        result = PageResult(
            word_counts=self._count_words(text_content),
            links=self._extract_links(content_element, url)
        )

        self.logger.debug(f"Parsed {url}: {len(result.word_counts)} distinct words, "
                          f"{len(result.links)} links")
        return result

    def _count_words(self, text: str) -> Dict[str, int]:
        """Split text into lowercase words and count the ones not ignored."""
        counts: Counter = Counter()
        for raw_word in self.whitespace_pattern.split(text):
            word = self.non_word_pattern.sub('', raw_word.lower())
            if not word or self._is_ignored_word(word):
                continue
            counts[word] += 1
        return dict(counts)

    def _is_ignored_word(self, word: str) -> bool:
        return any(pattern.fullmatch(word) for pattern in self.ignored_words)

    def _extract_links(self, soup, base_url: str) -> List[str]:
        """Extract and normalize links in document order, without duplicates."""
        links: Dict[str, None] = {}

        for link in soup.find_all('a', href=True):
            href = link['href'].strip()
            if not href or href.startswith('#'):
                continue

            # Resolve relative URLs
            normalized_url = self._normalize_url(urljoin(base_url, href))
            if normalized_url and self._is_valid_url(normalized_url):
                links[normalized_url] = None

        return list(links)

    def _normalize_url(self, url: str) -> Optional[str]:
        """Normalize URL by removing the fragment and lowercasing the host."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return None
        return urlunparse((
            parsed.scheme,
            parsed.netloc.lower(),
            parsed.path,
            parsed.params,
            parsed.query,
            ''  # Remove fragment
        ))

    def _is_valid_url(self, url: str) -> bool:
        """Check if URL is valid for crawling."""
        parsed = urlparse(url)
        if parsed.scheme not in self.LINK_SCHEMES:
            return False
        if parsed.scheme == 'file':
            return bool(parsed.path)
        return bool(parsed.netloc)
