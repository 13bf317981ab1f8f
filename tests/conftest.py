"""
Shared fixtures.
"""

import pytest

from tests.helpers import Graph


@pytest.fixture
def diamond_graph() -> Graph:
    """a links to b and c, both link to d, d links back to a."""
    return {
        "http://example.com/a": ({"apple": 1, "shared": 1}, ["http://example.com/b", "http://example.com/c"]),
        "http://example.com/b": ({"banana": 2, "shared": 1}, ["http://example.com/d"]),
        "http://example.com/c": ({"cherry": 3, "shared": 1}, ["http://example.com/d"]),
        "http://example.com/d": ({"date": 4, "shared": 1}, ["http://example.com/a"]),
    }


@pytest.fixture
def chain_graph() -> Graph:
    """a -> b -> c -> d, one word per page."""
    return {
        "http://example.com/a": ({"alpha": 1}, ["http://example.com/b"]),
        "http://example.com/b": ({"bravo": 1}, ["http://example.com/c"]),
        "http://example.com/c": ({"charlie": 1}, ["http://example.com/d"]),
        "http://example.com/d": ({"delta": 1}, []),
    }
