"""
Word Crawler

A parallel web crawler that reports the most popular words across the pages it visits.
"""

__version__ = "1.0.0"
__description__ = "A parallel web crawler that counts the most popular words"
