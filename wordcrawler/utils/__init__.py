"""
Utility modules for the word crawler.
"""

from .config import Config, ConfigManager, CrawlConfigurationError, CrawlRequest, load_config, get_config

__all__ = ['Config', 'ConfigManager', 'CrawlConfigurationError', 'CrawlRequest', 'load_config', 'get_config']
