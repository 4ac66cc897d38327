"""Shared pytest configuration for the xmlnav test suite."""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from xmlnav import configure, get_cache
from xmlnav.testing import document, element, sample_document


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: long-running tests excluded by run_tests.py")


@pytest.fixture(autouse=True)
def reset_query_state():
    """Give every test the default config and an empty expression cache."""
    configure(cache_enabled=True, cache_max_entries=50)
    get_cache().clear()
    yield
    configure(cache_enabled=True, cache_max_entries=50)
    get_cache().clear()


@pytest.fixture
def ab_doc():
    """<a><b id="1">x</b><b id="2">y</b></a>"""
    return document(
        element("a", None,
                element("b", {"id": "1"}, "x"),
                element("b", {"id": "2"}, "y")),
    )


@pytest.fixture
def catalog():
    return sample_document()
