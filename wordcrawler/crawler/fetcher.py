"""
Web page fetcher for the page parser: http(s) through aiohttp, file:// from disk.
"""

import asyncio
import aiohttp
import logging
import time
from pathlib import Path
from typing import Optional, Dict
from urllib.parse import urlparse
from urllib.request import url2pathname
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError


class PageFetchError(Exception):
    """Raised when a page cannot be fetched or decoded."""
    pass


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: Optional[str] = None
    error: Optional[str] = None
    fetch_time: float = 0.0
    content_type: Optional[str] = None


class WebFetcher:
    """
    Fetches web pages with a bounded number of concurrent requests.
    Errors are reported on the FetchResult, never raised.
    """

    def __init__(self, user_agent: str, request_timeout: int = 10,
                 max_concurrent_requests: int = 10, max_size: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_concurrent_requests = max_concurrent_requests
        self.max_size = max_size

        self.logger = logging.getLogger(__name__)

        # Session management
        self.session: Optional[ClientSession] = None
        self.semaphore = asyncio.Semaphore(max_concurrent_requests)

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.max_concurrent_requests * 2,
                    limit_per_host=10,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch (http, https or file)

        Returns:
            FetchResult object containing the response data or error information
        """
        if urlparse(url).scheme == 'file':
            return await self._fetch_file(url)

        start_time = time.time()

        async with self.semaphore:
            if self.session is None:
                await self.start()

            try:
                self.stats['total_requests'] += 1

                async with self.session.get(url) as response:
                    fetch_time = time.time() - start_time
                    content_type = response.headers.get('content-type', '').lower()

                    if response.status >= 400:
                        self.stats['failed_requests'] += 1
                        return FetchResult(
                            url=url,
                            status_code=response.status,
                            content_type=content_type,
                            error=f"HTTP {response.status}",
                            fetch_time=fetch_time
                        )

                    # Only download text content
                    if not self._is_text_content(content_type):
                        self.stats['failed_requests'] += 1
                        self.logger.debug(f"Skipping non-text content: {url} ({content_type})")
                        return FetchResult(
                            url=url,
                            status_code=response.status,
                            content_type=content_type,
                            error="Non-text content type",
                            fetch_time=fetch_time
                        )

                    content = await self._read_content_safely(response)
                    if content is None:
                        self.stats['failed_requests'] += 1
                        return FetchResult(
                            url=url,
                            status_code=response.status,
                            content_type=content_type,
                            error="Content too large or unreadable",
                            fetch_time=fetch_time
                        )

                    self.stats['total_bytes_downloaded'] += len(content)
                    self.stats['successful_requests'] += 1

                    self.logger.debug(f"Fetched {url}: {response.status} ({len(content)} chars)")
                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        content=content,
                        content_type=content_type,
                        fetch_time=fetch_time
                    )

            except asyncio.TimeoutError:
                self.stats['failed_requests'] += 1
                error_msg = "Request timeout"
                self.logger.warning(f"Timeout fetching {url}")

            except ClientError as e:
                self.stats['failed_requests'] += 1
                error_msg = f"Client error: {str(e)}"
                self.logger.warning(f"Client error fetching {url}: {e}")

            return FetchResult(
                url=url,
                status_code=0,
                error=error_msg,
                fetch_time=time.time() - start_time
            )

    async def _fetch_file(self, url: str) -> FetchResult:
        """Read a file:// URL from the local filesystem, off the event loop."""
        start_time = time.time()
        path = Path(url2pathname(urlparse(url).path))
        self.stats['total_requests'] += 1

        loop = asyncio.get_running_loop()
        try:
            content_bytes = await loop.run_in_executor(None, self._read_file, path)
        except OSError as e:
            self.stats['failed_requests'] += 1
            self.logger.warning(f"Could not read {url}: {e}")
            return FetchResult(url=url, status_code=404, error=f"File error: {e}",
                               fetch_time=time.time() - start_time)

        if content_bytes is None:
            self.stats['failed_requests'] += 1
            return FetchResult(url=url, status_code=0, error="Content too large",
                               fetch_time=time.time() - start_time)

        content = self._decode(content_bytes)
        self.stats['total_bytes_downloaded'] += len(content)
        self.stats['successful_requests'] += 1
        return FetchResult(
            url=url,
            status_code=200,
            content=content,
            content_type='text/html',
            fetch_time=time.time() - start_time
        )

    def _read_file(self, path: Path) -> Optional[bytes]:
        """Read a local file, or return None when it exceeds max_size."""
        if path.stat().st_size > self.max_size:
            return None
        return path.read_bytes()

    def _is_text_content(self, content_type: str) -> bool:
        """Check if content type is text-based."""
        text_types = [
            'text/html',
            'text/plain',
            'application/xhtml+xml',
        ]

        return any(text_type in content_type for text_type in text_types)

    async def _read_content_safely(self, response) -> Optional[str]:
        """
        Read response content, giving up beyond max_size bytes.

        Returns:
            Content string or None if too large
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_size:
            self.logger.warning(f"Content too large ({content_length} bytes): {response.url}")
            return None

        # Read content in chunks to respect size limit
        content_bytes = b''
        async for chunk in response.content.iter_chunked(8192):
            content_bytes += chunk
            if len(content_bytes) > self.max_size:
                self.logger.warning(f"Content exceeded size limit during reading: {response.url}")
                return None

        return self._decode(content_bytes, response.charset)

    def _decode(self, content_bytes: bytes, encoding: Optional[str] = None) -> str:
        """Decode bytes with the declared charset, falling back to common encodings."""
        for candidate in [encoding or 'utf-8', 'utf-8', 'cp1252']:
            try:
                return content_bytes.decode(candidate)
            except (UnicodeDecodeError, LookupError):
                continue

        # If all else fails, decode with errors ignored
        return content_bytes.decode('utf-8', errors='ignore')

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()

