"""
Pytest configuration for the adaptive optimizer test suite.

Root conftest.py - shared fixtures live in tests/fixtures/.
"""

import gc

import pytest

from tests.fixtures import *


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        if "/unit/" in item.nodeid:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in item.nodeid:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if "sampler" in item.nodeid or "feedback_loop" in item.nodeid:
            item.add_marker(pytest.mark.threading)
        if "config" in item.nodeid.lower():
            item.add_marker(pytest.mark.config)


def pytest_runtest_teardown(item):
    """Teardown after each test run."""
    gc.collect()
