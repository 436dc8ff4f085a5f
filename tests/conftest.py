"""
Shared fixtures for the NodeFlow test suite.
"""

import os

# Built-in handlers simulate latency; tests run them without sleeping.
os.environ["HANDLER_LATENCY_SCALE"] = "0"

import pytest
from fastapi.testclient import TestClient

from nodeflow.main import create_app


@pytest.fixture
def client():
    """A test client for a fresh app, with templates seeded."""
    with TestClient(create_app()) as test_client:
        yield test_client
