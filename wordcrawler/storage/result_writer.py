"""
JSON serialization of crawl results.
"""

import json
import logging
from pathlib import Path
from typing import TextIO

from ..crawler.result import CrawlResult


class ResultWriteError(Exception):
    """Raised when a crawl result cannot be written."""
    pass


class CrawlResultWriter:
    """Writes a CrawlResult as JSON, keeping the ranked word order."""

    def __init__(self, result: CrawlResult):
        self.result = result
        self.logger = logging.getLogger(__name__)

    def write_stream(self, stream: TextIO):
        """Write the result to a text stream."""
        json.dump(self.result.to_dict(), stream, ensure_ascii=False, indent=2)
        stream.write("\n")

    def write(self, path: str):
        """Write the result to a file, replacing any previous content."""
        file_path = Path(path)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                self.write_stream(f)
        except OSError as e:
            raise ResultWriteError(f"Failed to write crawl result to {file_path}: {e}")

        self.logger.info(f"Crawl result written to {file_path}")
