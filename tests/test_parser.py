"""
Tests for the HTML page parser and its fetcher.
"""

import threading

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from wordcrawler.crawler.engine import ParallelWebCrawler
from wordcrawler.crawler.fetcher import PageFetchError, WebFetcher
from wordcrawler.crawler.parser import HtmlPageParser
from wordcrawler.utils.config import CrawlConfigurationError, CrawlerConfig

from tests.helpers import make_request


PAGE = """
<html>
  <head>
    <title>Title words stay out</title>
    <script>var hidden = "script";</script>
    <style>.hidden { color: red; }</style>
  </head>
  <body>
    <p>The quick brown fox. The lazy dog's bone!</p>
    <!-- commented words -->
    <a href="/next#section">Next page</a>
    <a href="http://Other.COM/x">elsewhere</a>
    <a href="mailto:someone@example.com">mail</a>
    <a href="#top">top</a>
    <a href="/next">again</a>
  </body>
</html>
"""


@pytest.fixture
def parser():
    return HtmlPageParser(WebFetcher(user_agent="wordcrawler-tests"))


def test_words_counted_from_body_text(parser):
    result = parser.parse_html("http://example.com/start", PAGE)

    assert result.word_counts == {
        "the": 2, "quick": 1, "brown": 1, "fox": 1, "lazy": 1, "dogs": 1, "bone": 1,
        "next": 1, "page": 1, "elsewhere": 1, "mail": 1, "top": 1, "again": 1,
    }


def test_links_resolved_deduplicated_and_filtered(parser):
    result = parser.parse_html("http://example.com/start", PAGE)

    assert result.links == ["http://example.com/next", "http://other.com/x"]


def test_ignored_words_use_full_match():
    parser = HtmlPageParser(WebFetcher(user_agent="wordcrawler-tests"),
                            ignored_words=["the", "^.{1,3}$"])

    result = parser.parse_html("http://example.com/", "<body>The theory of the fox jumps</body>")

    assert result.word_counts == {"theory": 1, "jumps": 1}


def test_invalid_ignored_word_pattern():
    with pytest.raises(CrawlConfigurationError):
        HtmlPageParser(WebFetcher(user_agent="wordcrawler-tests"), ignored_words=["(oops"])


def test_from_config_uses_crawler_settings():
    config = CrawlerConfig(start_pages=["http://example.com/"], ignored_words=["a"],
                           parallelism=3, request_timeout=7, max_page_bytes=1024)

    parser = HtmlPageParser.from_config(config)

    assert parser.fetcher.request_timeout == 7
    assert parser.fetcher.max_concurrent_requests == 3
    assert parser.fetcher.max_size == 1024
    assert len(parser.ignored_words) == 1


@pytest.mark.asyncio
async def test_parse_local_file(tmp_path, parser):
    (tmp_path / "a.html").write_text('<body>hello world <a href="b.html">next</a></body>')

    result = await parser.parse((tmp_path / "a.html").as_uri())

    assert result.word_counts == {"hello": 1, "world": 1, "next": 1}
    assert result.links == [(tmp_path / "b.html").as_uri()]


@pytest.mark.asyncio
async def test_missing_local_file_raises(tmp_path, parser):
    with pytest.raises(PageFetchError):
        await parser.parse((tmp_path / "missing.html").as_uri())


@pytest.mark.asyncio
async def test_crawl_local_site(tmp_path):
    (tmp_path / "index.html").write_text(
        '<body>crawler crawler words <a href="one.html">one</a> <a href="two.html">two</a></body>')
    (tmp_path / "one.html").write_text(
        '<body>crawler words <a href="index.html">home</a> <a href="missing.html">gone</a></body>')
    (tmp_path / "two.html").write_text('<body>crawler <a href="secret.html">secret</a></body>')
    (tmp_path / "secret.html").write_text('<body>hidden hidden hidden</body>')

    parser = HtmlPageParser(WebFetcher(user_agent="wordcrawler-tests"), ignored_words=["one", "two"])
    request = make_request(popular_word_count=3, ignored_urls=(r".*/secret\.html",))
    crawler = ParallelWebCrawler(request, parser)

    result = await crawler.crawl([(tmp_path / "index.html").as_uri()])

    # "secret" beats "home" and "gone" on length; the page it names is ignored
    assert list(result.word_counts.items()) == [("crawler", 4), ("words", 2), ("secret", 1)]
    # index, one, two and the missing page, which was claimed before it failed
    assert result.urls_visited == 4


@pytest.mark.asyncio
async def test_fetch_over_http():
    async def index(request):
        return web.Response(text='<body>served page <a href="/missing">broken</a></body>',
                            content_type='text/html')

    async def image(request):
        return web.Response(body=b'\x89PNG', content_type='image/png')

    app = web.Application()
    app.router.add_get('/', index)
    app.router.add_get('/logo.png', image)

    server = TestServer(app)
    await server.start_server()
    try:
        async with WebFetcher(user_agent="wordcrawler-tests", request_timeout=5) as fetcher:
            parser = HtmlPageParser(fetcher)

            page = await parser.parse(str(server.make_url('/')))
            assert page.word_counts == {"served": 1, "page": 1, "broken": 1}
            assert page.links == [str(server.make_url('/missing'))]

            with pytest.raises(PageFetchError, match="HTTP 404"):
                await parser.parse(str(server.make_url('/missing')))

            with pytest.raises(PageFetchError, match="Non-text"):
                await parser.parse(str(server.make_url('/logo.png')))

            stats = fetcher.get_stats()
            assert stats['successful_requests'] == 1
            assert stats['failed_requests'] == 2
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_oversized_local_file_rejected(tmp_path):
    (tmp_path / "big.html").write_text("<body>" + "word " * 100 + "</body>")
    parser = HtmlPageParser(WebFetcher(user_agent="wordcrawler-tests", max_size=50))

    with pytest.raises(PageFetchError, match="too large"):
        await parser.parse((tmp_path / "big.html").as_uri())


@pytest.mark.asyncio
async def test_local_file_read_off_the_event_loop(tmp_path, monkeypatch):
    (tmp_path / "page.html").write_text("<body>hello</body>")
    fetcher = WebFetcher(user_agent="wordcrawler-tests")
    readers = []
    read_file = fetcher._read_file

    def recording_read(path):
        readers.append(threading.current_thread())
        return read_file(path)

    monkeypatch.setattr(fetcher, "_read_file", recording_read)

    result = await fetcher.fetch((tmp_path / "page.html").as_uri())

    assert result.content == "<body>hello</body>"
    assert readers and readers[0] is not threading.main_thread()
