import logging

import pytest


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    """Capture mysqllite logs at DEBUG for every test."""
    caplog.set_level(logging.DEBUG, logger='mysqllite')
    yield


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.sqlite',
]
