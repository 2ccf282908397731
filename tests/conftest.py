"""
Root pytest configuration for multi-dist.
"""

import pytest

# Bootstrap logging for all tests
from multi_dist.build.config.logging import bootstrap_logging
bootstrap_logging('multi_dist.tests')


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "network: test talks to a real remote (skipped by default)")


def pytest_collection_modifyitems(config, items):
    """Skip tests that need the network unless explicitly selected with -m network."""
    if config.getoption("-m"):
        return
    skip_network = pytest.mark.skip(reason="needs network, run with -m network")
    for item in items:
        if "network" in item.keywords:
            item.add_marker(skip_network)
